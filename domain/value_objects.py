"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import datetime, timedelta
from typing import Dict

from domain.dates import start_of_day


class OccupancyInterval(BaseModel):
    """Half-open [start, end) span a reservation holds its room for"""
    start: datetime
    end: datetime

    @validator('end')
    def end_not_before_start(cls, v, values):
        if 'start' in values and v < values['start']:
            raise ValueError('Interval end must not precede its start')
        return v

    def overlaps(self, other: "OccupancyInterval") -> bool:
        """Strict overlap; touching endpoints do not overlap"""
        return self.start < other.end and other.start < self.end

    def to_day_span(self, is_day_use: bool = False) -> "OccupancyInterval":
        """Civil days held, as [first day, day after last day).

        A stay holds its check-in day up to but excluding its checkout day,
        and at least the check-in day. A day-use session holds every day it
        touches.
        """
        first_day = start_of_day(self.start)
        if is_day_use:
            last_touched = self.end - timedelta(microseconds=1) if self.end > self.start else self.end
            end_day = start_of_day(last_touched) + timedelta(days=1)
        else:
            end_day = max(start_of_day(self.end), first_day + timedelta(days=1))
        return OccupancyInterval(start=first_day, end=end_day)

    class Config:
        frozen = True


class RoomAvailability(BaseModel):
    """Remaining stock of one room type on one date"""
    remain: int
    stock: int = Field(ge=0)
    occupied: int = Field(ge=0, default=0)

    @property
    def is_sold_out(self) -> bool:
        return self.remain <= 0

    @property
    def is_overbooked(self) -> bool:
        return self.remain < 0

    class Config:
        frozen = True


# yyyy-MM-dd -> lower-cased room_info -> RoomAvailability
AvailabilityByDate = Dict[str, Dict[str, RoomAvailability]]
