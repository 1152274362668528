"""Bookable slot resolution.

A doctor's window for a weekday is cut into fixed-length slots starting at
the window's opening time; a trailing partial slot is dropped. Slots that
intersect an existing booking are removed. Nothing is cached: every call
recomputes from the availability and bookings it is given.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator

from frontdesk.scheduling.availability import WeeklyAvailability


@dataclass(frozen=True, order=True)
class TimeSlot:
    date: date
    start: time
    end: time

    @property
    def duration_minutes(self) -> int:
        delta = datetime.combine(self.date, self.end) - datetime.combine(self.date, self.start)
        return int(delta.total_seconds() // 60)

    def overlaps(self, start: time, end: time) -> bool:
        return intervals_overlap(self.start, self.end, start, end)


def intervals_overlap(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    """Half-open overlap test: touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def iterate_slots(
    availability: WeeklyAvailability,
    slot_date: date,
    duration_minutes: int,
) -> Iterator[TimeSlot]:
    if duration_minutes <= 0:
        raise ValueError('Slot duration must be positive.')

    window = availability.window_for(slot_date.weekday())
    if not window.available:
        return

    step = timedelta(minutes=duration_minutes)
    current = datetime.combine(slot_date, window.start)
    window_end = datetime.combine(slot_date, window.end)

    while current + step <= window_end:
        yield TimeSlot(date=slot_date, start=current.time(), end=(current + step).time())
        current += step


def find_slots(
    availability: WeeklyAvailability,
    slot_date: date,
    booked: Iterable[tuple[time, time]],
    duration_minutes: int,
) -> list[TimeSlot]:
    """Return the open slots for ``slot_date`` in chronological order.

    ``booked`` holds the ``(start, end)`` pairs of the doctor's non-cancelled
    appointments on that date.
    """
    booked_intervals = list(booked)

    return [
        slot
        for slot in iterate_slots(availability, slot_date, duration_minutes)
        if not any(slot.overlaps(booked_start, booked_end) for booked_start, booked_end in booked_intervals)
    ]
