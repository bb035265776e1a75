"""
Interval overlap rules.

Dates denote whole days, so date ranges are inclusive on both ends: a booking
ending on the 10th and one starting on the 10th share that day. Times are
half-open: 09:00-10:00 and 10:00-11:00 merely touch and do not overlap.
"""

from meeting_booking.utils.normalize import MINUTES_PER_DAY


def date_ranges_overlap(start_a, end_a, start_b, end_b) -> bool:
    return start_a <= end_b and end_a >= start_b


def time_ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and end_a > start_b


def effective_date_range(booking):
    """(first_day, last_day) of a booking; single-day bookings end on their own date."""
    end = booking.end_date if booking.is_multi_day and booking.end_date else booking.date
    return booking.date, end


def effective_time_range(booking) -> tuple[int, int]:
    """A booking's minute window, or the whole day when it is all-day."""
    if booking.all_day:
        return 0, MINUTES_PER_DAY
    return booking.start_time, booking.end_time
