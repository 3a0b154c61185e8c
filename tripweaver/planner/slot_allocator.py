"""Per-day time cursor and interval bookkeeping.

Two placement modes live side by side:

* ``add_item`` is sequential: it starts after the cursor plus travel time and
  moves the cursor to the end of what it placed (attraction visits).
* ``insert_fixed_item`` pins an interval to a real-world clock time and only
  checks for overlap; the cursor is left alone (logistics legs, meals).
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from tripweaver.domain.models import ScheduleSlot
from tripweaver.planner.clock import add_minutes, minutes_between


@dataclass(frozen=True)
class PlacedEntry:
    slot: ScheduleSlot
    kind: str
    label: str = ""


class SlotAllocator:
    def __init__(self, day_start: dt.datetime, day_end: dt.datetime):
        if day_end < day_start:
            # an inverted window degrades to zero width: nothing fits
            day_end = day_start
        self._day_start = day_start
        self._day_end = day_end
        self._cursor = day_start
        self._entries: list[PlacedEntry] = []

    @property
    def day_start(self) -> dt.datetime:
        return self._day_start

    @property
    def day_end(self) -> dt.datetime:
        return self._day_end

    @property
    def cursor(self) -> dt.datetime:
        return self._cursor

    @property
    def entries(self) -> tuple[PlacedEntry, ...]:
        return tuple(self._entries)

    def remaining_minutes(self) -> float:
        return max(0.0, minutes_between(self._cursor, self._day_end))

    def overlapping(self, start: dt.datetime, end: dt.datetime) -> list[PlacedEntry]:
        return [e for e in self._entries if e.slot.start < end and start < e.slot.end]

    def blocks_of(self, kind: str) -> list[PlacedEntry]:
        return [e for e in self._entries if e.kind == kind]

    def probe(
        self,
        duration_minutes: float,
        travel_minutes: float = 0,
        min_start: Optional[dt.datetime] = None,
    ) -> Optional[ScheduleSlot]:
        """Where ``add_item`` would land, without placing anything."""
        if duration_minutes <= 0:
            return None
        start = add_minutes(self._cursor, max(travel_minutes, 0))
        if min_start is not None and min_start > start:
            start = min_start
        while True:
            end = add_minutes(start, duration_minutes)
            if end > self._day_end:
                return None
            clashes = self.overlapping(start, end)
            if not clashes:
                return ScheduleSlot(start=start, end=end)
            start = max(e.slot.end for e in clashes)

    def add_item(
        self,
        duration_minutes: float,
        travel_minutes: float = 0,
        min_start: Optional[dt.datetime] = None,
        *,
        kind: str = "activity",
        label: str = "",
    ) -> Optional[ScheduleSlot]:
        slot = self.probe(duration_minutes, travel_minutes, min_start)
        if slot is None:
            return None
        self._place(PlacedEntry(slot=slot, kind=kind, label=label))
        self._cursor = slot.end
        return slot

    def insert_fixed_item(
        self,
        start: dt.datetime,
        end: dt.datetime,
        *,
        kind: str = "fixed",
        label: str = "",
    ) -> Optional[ScheduleSlot]:
        if start >= end:
            return None
        if start < self._day_start or end > self._day_end:
            return None
        if self.overlapping(start, end):
            return None
        slot = ScheduleSlot(start=start, end=end)
        self._place(PlacedEntry(slot=slot, kind=kind, label=label))
        return slot

    def can_fit(self, duration_minutes: float, buffer_minutes: float = 0) -> bool:
        return self.probe(duration_minutes, buffer_minutes) is not None

    def advance_to(self, timestamp: dt.datetime) -> None:
        if timestamp > self._cursor:
            self._cursor = timestamp

    def release(self, slot: ScheduleSlot) -> bool:
        """Forget a placed interval; the cursor is not rewound."""
        for index, entry in enumerate(self._entries):
            if entry.slot == slot:
                del self._entries[index]
                return True
        return False

    def _place(self, entry: PlacedEntry) -> None:
        self._entries.append(entry)
        self._entries.sort(key=lambda e: e.slot.start)
