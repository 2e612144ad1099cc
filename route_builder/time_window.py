"""
Time Window Calculator.

Segment 0 is searched over the whole user-selected date range. Every later
segment is searched from the earliest arrival of the previous segment to 24h
after its latest arrival, shifted by the stopover length when the junction
airport is the nominated stopover.
"""
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence

from pydantic import BaseModel

from route_builder.models import FlightOption, StopoverSpec


class TimeWindow(BaseModel):
    start: datetime
    end: datetime
    is_stopover: bool = False
    stopover_days: int = 0

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def dates(self) -> List[date]:
        """Every calendar date whose day overlaps the window."""
        days = []
        current = self.start.date()
        while current <= self.end.date():
            days.append(current)
            current += timedelta(days=1)
        return days

    def __str__(self) -> str:
        return f"[{self.start:%Y-%m-%d %H:%M} .. {self.end:%Y-%m-%d %H:%M}]"


def date_range_window(start_date: date, end_date: date) -> TimeWindow:
    return TimeWindow(
        start=datetime.combine(start_date, time.min),
        end=datetime.combine(end_date, time.max),
    )


def segment_window(
    segment_index: int,
    route: Sequence[str],
    start_date: date,
    end_date: date,
    previous_flights: Optional[Sequence[FlightOption]] = None,
    stopover: Optional[StopoverSpec] = None,
) -> TimeWindow:
    """
    Window of candidate departures for segment `segment_index` of `route`.

    Falls back to the full date range for segment 0 and whenever the previous
    segment resolved no flights.
    """
    if segment_index == 0 or not previous_flights:
        return date_range_window(start_date, end_date)

    arrivals = sorted(f.arrives_at for f in previous_flights)
    earliest, latest = arrivals[0], arrivals[-1]

    junction = route[segment_index]
    if stopover is not None and junction == stopover.airport:
        offset = timedelta(days=stopover.days)
        return TimeWindow(
            start=earliest + offset,
            end=latest + offset + timedelta(hours=24),
            is_stopover=True,
            stopover_days=stopover.days,
        )

    return TimeWindow(start=earliest, end=latest + timedelta(hours=24))
