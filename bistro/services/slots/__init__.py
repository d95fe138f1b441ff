# bistro/services/slots/__init__.py
"""
Slots calculation module.

Calendar:  weekly hours + closed days → open/close window for a date
Generator: window + lead time → candidate slots
Capacity:  candidate slots + active bookings → available/remaining
"""

from .config import ReservationConfig, load_reservation_config
from .calendar import DayHours, OperatingCalendar, load_order_calendar
from .generator import TimeSlot, generate_day_slots, generate_slots
from .capacity import annotate
from .availability import calculate_availability, calculate_order_time_slots

__all__ = [
    "ReservationConfig",
    "load_reservation_config",
    "DayHours",
    "OperatingCalendar",
    "load_order_calendar",
    "TimeSlot",
    "generate_day_slots",
    "generate_slots",
    "annotate",
    "calculate_availability",
    "calculate_order_time_slots",
]
