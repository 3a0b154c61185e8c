"""Candidate clean-up before scheduling and the per-day pre-allocation."""

from __future__ import annotations

import re
import unicodedata
from typing import Mapping, Optional

from tripweaver.domain.constants import (
    DEFAULT_ACTIVITY_MINUTES,
    MAX_ACTIVITY_MINUTES,
    MIN_ACTIVITY_MINUTES,
)
from tripweaver.domain.enums import DataReliability
from tripweaver.domain.models import CandidateAttraction, Coordinates
from tripweaver.infrastructure.logging import StructuredLogger, get_logger
from tripweaver.planner.distance import distance_km

# per-day quotas for the pre-allocation
EDGE_DAY_QUOTA = 3
MIDDLE_DAY_QUOTA = 5

_SEPARATORS = re.compile(r"[,;\n]+")


def fold_text(text: str) -> str:
    """Lowercase and strip accents: "Colisée" and "colisee" fold to the same key."""
    decomposed = unicodedata.normalize("NFD", text or "")
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return " ".join(stripped.lower().split())


def must_include_terms(text: str) -> list[str]:
    return [fold_text(part) for part in _SEPARATORS.split(text or "") if len(fold_text(part)) >= 3]


def names_match(name: str, term: str) -> bool:
    folded = fold_text(name)
    return bool(folded) and (folded == term or term in folded or folded in term)


def mark_must_see(candidates: list[CandidateAttraction], must_include: str) -> list[CandidateAttraction]:
    terms = must_include_terms(must_include)
    if not terms:
        return candidates
    marked = []
    for candidate in candidates:
        if not candidate.must_see and any(names_match(candidate.name, term) for term in terms):
            candidate = candidate.model_copy(update={"must_see": True})
        marked.append(candidate)
    return marked


def clamp_duration(minutes: Optional[int]) -> int:
    if not minutes or minutes <= 0:
        return DEFAULT_ACTIVITY_MINUTES
    return max(MIN_ACTIVITY_MINUTES, min(MAX_ACTIVITY_MINUTES, int(minutes)))


def _has_usable_coords(candidate: CandidateAttraction) -> bool:
    return candidate.coordinates is not None and not candidate.coordinates.is_null_island()


def _replacement(
    pool: list[CandidateAttraction],
    taken: set[str],
    city_center: Coordinates,
    radius_km: float,
) -> Optional[CandidateAttraction]:
    for candidate in pool:
        if candidate.id in taken or candidate.data_reliability != DataReliability.VERIFIED:
            continue
        if not _has_usable_coords(candidate):
            continue
        if distance_km(candidate.coordinates, city_center) <= radius_km:
            return candidate
    return None


def normalize_candidates(
    candidates: list[CandidateAttraction],
    *,
    city_center: Coordinates,
    must_include: str = "",
    geocoded: Optional[Mapping[str, Coordinates]] = None,
    replacement_radius_km: float = 15.0,
    logger: Optional[StructuredLogger] = None,
) -> list[CandidateAttraction]:
    """Clamp durations, zero negative costs, resolve or drop coordinate-less records.

    A record without usable coordinates is geocoded from ``geocoded`` (keyed by
    name), else swapped for a verified pool alternative near the city centre,
    else dropped. It is never parked on the city centre.
    """
    log = logger or get_logger()
    geocoded = geocoded or {}
    cleaned: list[CandidateAttraction] = []
    taken: set[str] = set()
    seen_ids: set[str] = set()

    for candidate in mark_must_see(candidates, must_include):
        if candidate.id in seen_ids:
            continue
        seen_ids.add(candidate.id)
        update = {
            "duration_minutes": clamp_duration(candidate.duration_minutes),
            "estimated_cost": max(0.0, candidate.estimated_cost),
        }
        if not _has_usable_coords(candidate):
            resolved = geocoded.get(candidate.name)
            if resolved is not None and not resolved.is_null_island():
                update["coordinates"] = resolved
                update["data_reliability"] = DataReliability.ESTIMATED
            else:
                swap = _replacement(candidates, taken | seen_ids, city_center, replacement_radius_km)
                if swap is None:
                    log.warning("normalize", f"dropped '{candidate.name}': no coordinates, no replacement")
                    continue
                log.warning("normalize", f"replaced '{candidate.name}' with '{swap.name}'")
                seen_ids.add(swap.id)
                candidate = swap.model_copy(update={"must_see": candidate.must_see or swap.must_see})
                update["duration_minutes"] = clamp_duration(candidate.duration_minutes)
                update["estimated_cost"] = max(0.0, candidate.estimated_cost)
        normalized = candidate.model_copy(update=update)
        taken.add(normalized.id)
        cleaned.append(normalized)
    return cleaned


def _day_order(total_days: int) -> list[int]:
    """Middle days first, then the arrival day, then the departure day."""
    if total_days <= 2:
        return list(range(1, total_days + 1))
    return list(range(2, total_days)) + [1, total_days]


def day_quota(day_number: int, total_days: int) -> int:
    if total_days == 1 or 1 < day_number < total_days:
        return MIDDLE_DAY_QUOTA
    return EDGE_DAY_QUOTA


def preallocate(candidates: list[CandidateAttraction], total_days: int) -> dict[int, list[CandidateAttraction]]:
    """Round-robin the ranked pool across days, must-see items first.

    Middle days receive the larger share; whatever does not fit the quotas stays
    in the pool for gap filling.
    """
    by_day: dict[int, list[CandidateAttraction]] = {day: [] for day in range(1, total_days + 1)}
    if total_days < 1:
        return by_day
    ranked = [c for c in candidates if c.must_see] + [c for c in candidates if not c.must_see]
    order = _day_order(total_days)
    position = 0
    for candidate in ranked:
        placed = False
        for step in range(len(order)):
            day = order[(position + step) % len(order)]
            if len(by_day[day]) < day_quota(day, total_days):
                by_day[day].append(candidate)
                position = (position + step + 1) % len(order)
                placed = True
                break
        if not placed:
            break
    return by_day
