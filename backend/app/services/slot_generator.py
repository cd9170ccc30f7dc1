from __future__ import annotations

from dataclasses import dataclass
import logging

from app.schemas.timetable import TimeConfiguration, minutes_to_time, parse_time_to_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeSlot:
    start: int
    end: int

    @property
    def label(self) -> str:
        return f"{minutes_to_time(self.start)}-{minutes_to_time(self.end)}"

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and self.end > start


def generate_time_slots(config: TimeConfiguration) -> list[TimeSlot]:
    """Build the canonical daily grid for a time configuration.

    Slots that would touch the lunch window are skipped, never truncated, so a
    class does not straddle the break. An unusable configuration (end not after
    start, non-positive duration) produces an empty grid.
    """
    day_start = parse_time_to_minutes(config.start_time)
    day_end = parse_time_to_minutes(config.end_time)
    period = config.class_duration
    if period <= 0 or day_end <= day_start:
        logger.warning(
            "Unusable time configuration start=%s end=%s duration=%s; no slots generated",
            config.start_time,
            config.end_time,
            period,
        )
        return []

    lunch = config.lunch_break.window if config.lunch_break is not None else None

    slots: list[TimeSlot] = []
    cursor = day_start
    while cursor + period <= day_end:
        candidate = TimeSlot(start=cursor, end=cursor + period)
        if lunch is not None and candidate.overlaps(*lunch):
            _, lunch_end = lunch
            cursor = max(cursor + 1, lunch_end)
            continue
        slots.append(candidate)
        cursor = candidate.end
    return slots
