from __future__ import annotations

from collections import defaultdict

from app.schemas.timetable import ScheduleEntry


class ConflictChecker:
    """Availability predicates over a weekly schedule keyed by day.

    Each check scans the entries of a single day; schedules stay in the tens to
    low hundreds of entries so no secondary index is kept.
    """

    def __init__(self, days: list[str] | None = None) -> None:
        self.schedule: dict[str, list[ScheduleEntry]] = defaultdict(list)
        for day in days or []:
            self.schedule[day] = []

    def _day_entries(self, day: str) -> list[ScheduleEntry]:
        return self.schedule.get(day, [])

    def teacher_free(self, teacher_id: str, day: str, slot: str) -> bool:
        return not any(
            entry.teacher_id == teacher_id and entry.time_slot == slot for entry in self._day_entries(day)
        )

    def room_free(self, room: str, day: str, slot: str) -> bool:
        return not any(entry.room == room and entry.time_slot == slot for entry in self._day_entries(day))

    def course_unplaced_today(self, course_code: str, day: str, section: str | None = None) -> bool:
        for entry in self._day_entries(day):
            if entry.course_code != course_code:
                continue
            if section is None or entry.section == section:
                return False
        return True

    def slot_load(self, day: str, slot: str) -> int:
        return sum(1 for entry in self._day_entries(day) if entry.time_slot == slot)

    def add(self, entry: ScheduleEntry) -> None:
        self.schedule[entry.day].append(entry)

    def entries(self) -> list[ScheduleEntry]:
        return [entry for day_entries in self.schedule.values() for entry in day_entries]
