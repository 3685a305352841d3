from availability_engine.models.availability_settings import AvailabilitySettings, AvailabilitySettingsBase
from availability_engine.models.booking import ACTIVE_BOOKING_STATUSES, Booking, BookingDayLock, BookingStatus
from availability_engine.models.calendar_block import BlockType, CalendarBlock

__all__ = [
    "AvailabilitySettings",
    "AvailabilitySettingsBase",
    "ACTIVE_BOOKING_STATUSES",
    "Booking",
    "BookingDayLock",
    "BookingStatus",
    "BlockType",
    "CalendarBlock",
]
