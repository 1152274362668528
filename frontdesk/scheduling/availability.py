"""Recurring weekly opening hours for a doctor.

A doctor's availability is seven independent day records, one per weekday,
stored on the doctor row as JSON::

    {"monday": {"start": "09:00", "end": "17:00", "available": true}, ...}

Lookups are keyed by ``date.weekday()`` (Monday is 0).
"""

from datetime import time

from pydantic import BaseModel, model_validator

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


class DayAvailability(BaseModel):
    start: time = time(9, 0)
    end: time = time(17, 0)
    available: bool = False

    class Config:
        frozen = True

    @model_validator(mode='after')
    def check_window(self) -> 'DayAvailability':
        # start/end only matter for days the doctor works.
        if self.available and self.start >= self.end:
            raise ValueError('Availability start must be before end.')
        return self


class WeeklyAvailability(BaseModel):
    monday: DayAvailability = DayAvailability()
    tuesday: DayAvailability = DayAvailability()
    wednesday: DayAvailability = DayAvailability()
    thursday: DayAvailability = DayAvailability()
    friday: DayAvailability = DayAvailability()
    saturday: DayAvailability = DayAvailability()
    sunday: DayAvailability = DayAvailability()

    class Config:
        frozen = True

    def window_for(self, weekday: int | str) -> DayAvailability:
        if isinstance(weekday, int):
            if not 0 <= weekday < len(WEEKDAYS):
                raise ValueError(f'Weekday index out of range: {weekday}')
            weekday = WEEKDAYS[weekday]

        normalized = weekday.strip().lower()
        if normalized not in WEEKDAYS:
            raise ValueError(f'Unknown weekday: {weekday}')

        return getattr(self, normalized)

    def working_days(self) -> list[str]:
        return [day for day in WEEKDAYS if getattr(self, day).available]

    def to_json(self) -> dict:
        return self.model_dump(mode='json')

    @classmethod
    def from_json(cls, payload: dict | None) -> 'WeeklyAvailability':
        return cls.model_validate(payload or {})
