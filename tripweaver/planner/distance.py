"""Great-circle distance and travel-time estimation."""

from __future__ import annotations

import math
from typing import Optional

from tripweaver.domain.models import Coordinates
from tripweaver.shared.exceptions import ToolError

SPEED_MAP = {
    "walking": 5.0,
    "public_transit": 25.0,
    "taxi": 35.0,
    "driving": 40.0,
}

# urban street grid vs. straight line
ROUTE_FACTOR = 1.4


def haversine(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    radius_km = 6371.0
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    return radius_km * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(a: Coordinates, b: Coordinates) -> float:
    return haversine(a.lat, a.lng, b.lat, b.lng)


def estimate_travel_minutes(
    origin: Optional[Coordinates],
    target: Optional[Coordinates],
    mode: str = "public_transit",
) -> int:
    """Door-to-door estimate between two stops; 0 when either end is unknown."""
    if origin is None or target is None:
        return 0
    speed = SPEED_MAP.get(mode)
    if speed is None:
        raise ToolError("travel_estimate", f"unknown transport mode: {mode}")
    km = distance_km(origin, target)
    if km < 0.3:
        return 5
    if km < 1.2:
        # short hops are walked regardless of the configured mode
        return max(5, math.ceil(km * ROUTE_FACTOR / SPEED_MAP["walking"] * 60))
    return math.ceil(km * ROUTE_FACTOR / speed * 60) + 5
