"""Slot allocator tests."""

from helpers import START_DATE, at

from tripweaver.planner.clock import hour_of, minutes_between, parse_clock
from tripweaver.planner.slot_allocator import SlotAllocator


def _allocator(start: str = "08:00", end: str = "22:00") -> SlotAllocator:
    return SlotAllocator(at(START_DATE, start), at(START_DATE, end))


def test_parse_clock_midnight_rolls_to_next_day():
    assert parse_clock(START_DATE, "24:00") == at(START_DATE, "00:00").replace(day=START_DATE.day + 1)
    assert hour_of(parse_clock(START_DATE, "24:00"), START_DATE) == 24.0


def test_add_item_moves_cursor_after_travel():
    alloc = _allocator()
    slot = alloc.add_item(60, travel_minutes=15)
    assert slot.start == at(START_DATE, "08:15")
    assert slot.end == at(START_DATE, "09:15")
    assert alloc.cursor == slot.end


def test_add_item_skips_past_fixed_block():
    alloc = _allocator()
    alloc.insert_fixed_item(at(START_DATE, "09:00"), at(START_DATE, "10:00"), kind="meal")
    slot = alloc.add_item(90)
    assert slot.start == at(START_DATE, "10:00")


def test_fixed_insert_refuses_overlap_and_leaves_cursor():
    alloc = _allocator()
    assert alloc.insert_fixed_item(at(START_DATE, "12:00"), at(START_DATE, "13:00")) is not None
    assert alloc.insert_fixed_item(at(START_DATE, "12:30"), at(START_DATE, "13:30")) is None
    assert alloc.cursor == at(START_DATE, "08:00")


def test_nothing_is_placed_past_day_end():
    alloc = _allocator(end="10:00")
    assert alloc.add_item(150) is None
    assert alloc.insert_fixed_item(at(START_DATE, "09:30"), at(START_DATE, "10:30")) is None
    assert not alloc.can_fit(121)
    assert alloc.can_fit(120)


def test_inverted_window_fits_nothing():
    alloc = SlotAllocator(at(START_DATE, "18:00"), at(START_DATE, "09:00"))
    assert alloc.remaining_minutes() == 0
    assert alloc.add_item(30) is None


def test_probe_respects_min_start_and_does_not_place():
    alloc = _allocator()
    slot = alloc.probe(45, min_start=at(START_DATE, "19:00"))
    assert slot.start == at(START_DATE, "19:00")
    assert alloc.entries == ()


def test_release_keeps_cursor():
    alloc = _allocator()
    slot = alloc.add_item(60)
    assert alloc.release(slot)
    assert alloc.entries == ()
    assert alloc.cursor == slot.end
    assert minutes_between(alloc.day_start, alloc.cursor) == 60
