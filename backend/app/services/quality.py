from __future__ import annotations

from collections import Counter
from collections.abc import Collection

from app.schemas.timetable import QualityScores, ScheduleEntry

# (teacher_satisfaction, student_satisfaction) baselines per optimization tag.
SATISFACTION_BASELINES: dict[str, tuple[float, float]] = {
    "balanced": (90.0, 91.0),
    "teacher-focused": (94.0, 82.0),
    "student-focused": (83.0, 96.0),
}
DEFAULT_BASELINE = (85.0, 85.0)

UTILIZATION_FLOOR = 70.0
UTILIZATION_CEILING = 95.0


def count_conflicts(
    entries: list[ScheduleEntry],
    repeat_allowed: Collection[tuple[str, str]] = (),
) -> int:
    """Re-check a finished schedule for same-day course repeats and teacher double-booking."""
    conflicts = 0

    course_days = Counter((entry.course_code, entry.section, entry.day) for entry in entries)
    for (course_code, section, _day), count in course_days.items():
        if count > 1 and (course_code, section) not in repeat_allowed:
            conflicts += count - 1

    teacher_slots = Counter((entry.teacher_id, entry.day, entry.time_slot) for entry in entries)
    conflicts += sum(count - 1 for count in teacher_slots.values() if count > 1)
    return conflicts


def resource_utilization(entries: list[ScheduleEntry]) -> float:
    if not entries:
        return 0.0
    distinct_rooms = len({entry.room for entry in entries})
    return min(UTILIZATION_CEILING, UTILIZATION_FLOOR + distinct_rooms / len(entries) * 100)


def score_quality(entries: list[ScheduleEntry], optimization: str) -> QualityScores:
    teacher_satisfaction, student_satisfaction = SATISFACTION_BASELINES.get(optimization, DEFAULT_BASELINE)
    utilization = resource_utilization(entries)
    overall = (teacher_satisfaction + student_satisfaction + utilization) / 3
    return QualityScores(
        overall_score=round(overall, 1),
        teacher_satisfaction=round(teacher_satisfaction, 1),
        student_satisfaction=round(student_satisfaction, 1),
        resource_utilization=round(utilization, 1),
    )
