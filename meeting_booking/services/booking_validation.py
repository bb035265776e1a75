from dataclasses import dataclass

from meeting_booking.utils.exceptions import InvalidDateException
from meeting_booking.utils.normalize import is_valid_time, normalize_date, time_to_minutes


@dataclass
class ValidationResult:
    valid:   bool
    message: str
    field:   str | None = None


def _fail(message: str, field: str | None = None) -> ValidationResult:
    return ValidationResult(valid=False, message=message, field=field)


def validate_booking_data(data: dict) -> ValidationResult:
    """
    Structural checks on a booking request, independent of other bookings.

    Stops at the first violated rule and reports only that one.
    """
    room_id      = data.get("room_id")
    booking_date = data.get("date")
    end_date     = data.get("end_date")
    start_time   = data.get("start_time")
    end_time     = data.get("end_time")
    is_multi_day = bool(data.get("is_multi_day"))
    all_day      = bool(data.get("all_day"))

    if not room_id or not booking_date:
        return _fail("Missing required fields: room_id and date are required")

    try:
        start_day = normalize_date(booking_date, "date")
    except InvalidDateException as e:
        return _fail(e.message, "date")

    if is_multi_day:
        if not end_date:
            return _fail("Missing required field: end_date is required for multi-day bookings", "end_date")
        try:
            end_day = normalize_date(end_date, "end_date")
        except InvalidDateException as e:
            return _fail(e.message, "end_date")
        # Canonical YYYY-MM-DD strings order the same way as the dates they name
        if end_day <= start_day:
            return _fail("End date must be after start date for multi-day bookings", "end_date")

    if not all_day:
        if not start_time or not end_time:
            return _fail("Missing required fields: start_time and end_time are required for non-all-day bookings")
        if not is_valid_time(start_time):
            return _fail("Invalid start_time format. Use HH:MM format (e.g., 09:00)", "start_time")
        if not is_valid_time(end_time):
            return _fail("Invalid end_time format. Use HH:MM format (e.g., 17:00)", "end_time")
        if time_to_minutes(end_time) <= time_to_minutes(start_time):
            return _fail("End time must be after start time", "end_time")

    return ValidationResult(valid=True, message="Booking data is valid")
