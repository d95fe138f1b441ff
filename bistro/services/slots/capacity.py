# bistro/services/slots/capacity.py
"""
Capacity gating for reservation slots.

Demand per slot is the summed party size of active bookings, converted to
table units with a fixed seats-per-table assumption:

  units_used = ceil(total_party_size / seats_per_table)
  remaining  = max_capacity - units_used
  available  = remaining > 0

This is coarse gating by policy, not a table-assignment solver.
"""

from collections import defaultdict
from math import ceil
from typing import Iterable

from .config import normalize_time
from .generator import TimeSlot

ACTIVE_STATUSES = frozenset({"pending", "confirmed"})

DEFAULT_SEATS_PER_TABLE = 4


def _booking_key(booking) -> tuple[str, str]:
    return str(booking.reservation_date), normalize_time(booking.reservation_time)


def party_size_by_slot(bookings: Iterable) -> dict[tuple[str, str], int]:
    """Sum party sizes of active bookings per (date, "HH:MM")."""
    totals: dict[tuple[str, str], int] = defaultdict(int)
    for booking in bookings:
        if booking.status not in ACTIVE_STATUSES:
            continue
        totals[_booking_key(booking)] += booking.party_size or 0
    return totals


def table_units(total_party_size: int, seats_per_table: int = DEFAULT_SEATS_PER_TABLE) -> int:
    if total_party_size <= 0:
        return 0
    return ceil(total_party_size / max(seats_per_table, 1))


def units_used(
    bookings: Iterable,
    day: str,
    time_str: str,
    seats_per_table: int = DEFAULT_SEATS_PER_TABLE,
) -> int:
    """Table units already taken at one slot."""
    totals = party_size_by_slot(bookings)
    return table_units(totals.get((day, normalize_time(time_str)), 0), seats_per_table)


def annotate(
    candidates: Iterable[TimeSlot],
    bookings: Iterable,
    max_capacity: int,
    seats_per_table: int = DEFAULT_SEATS_PER_TABLE,
) -> list[TimeSlot]:
    """Set `available` and `remaining_capacity` on each candidate slot."""
    totals = party_size_by_slot(bookings)
    result = []
    for slot in candidates:
        used = table_units(totals.get((slot.date.isoformat(), slot.time), 0), seats_per_table)
        result.append(slot.with_capacity(max_capacity - used))
    return result
