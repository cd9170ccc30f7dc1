from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
import logging
import random

from app.schemas.timetable import CourseObligation, ScheduleEntry, Shortfall
from app.services.conflict_checker import ConflictChecker
from app.services.room_allocator import RoomAllocator
from app.services.slot_generator import TimeSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementUnit:
    obligation: CourseObligation
    section: str
    day_offset: int


@dataclass
class PlacementResult:
    entries: list[ScheduleEntry] = field(default_factory=list)
    shortfalls: list[Shortfall] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # (course_code, section) keys whose weekly demand exceeds the working days.
    repeat_allowed: set[tuple[str, str]] = field(default_factory=set)
    requested_classes: int = 0


def rotate(days: list[str], offset: int) -> list[str]:
    if not days:
        return []
    start = offset % len(days)
    return days[start:] + days[:start]


def weekly_demand(obligations: list[CourseObligation]) -> dict[str, int]:
    demand: dict[str, int] = defaultdict(int)
    for obligation in obligations:
        demand[obligation.course_code] += obligation.classes_per_week
    return dict(demand)


class PlacementStrategy:
    """Greedy, non-backtracking weekly placement.

    Abstract base: subclasses must implement ``order_units``. They decide the
    order in which (obligation, section) units are placed, the day each unit
    starts searching from, and whether a slot may accept one more class.
    Day/slot walking, conflict checks and room allocation are shared so the
    three outputs stay comparable.
    """

    key = ""
    solution_id = ""
    name = ""
    reasoning = ""

    def __init__(self, *, room_allocator: RoomAllocator | None = None) -> None:
        self.rooms = room_allocator or RoomAllocator(rng=random.Random())

    def order_units(self, obligations: list[CourseObligation], sections: list[str]) -> list[PlacementUnit]:
        raise NotImplementedError

    def slot_accepts(self, checker: ConflictChecker, day: str, slot: TimeSlot) -> bool:
        return True

    def run(
        self,
        obligations: list[CourseObligation],
        *,
        sections: list[str],
        days: list[str],
        slots: list[TimeSlot],
    ) -> PlacementResult:
        checker = ConflictChecker(days)
        result = PlacementResult()
        demand = weekly_demand(obligations)
        units = self.order_units(obligations, sections)
        result.requested_classes = sum(unit.obligation.classes_per_week for unit in units)

        if not slots or not days:
            result.warnings.append("No time slots available for the configured working days; nothing was placed")

        for unit in units:
            obligation = unit.obligation
            repeat_ok = demand[obligation.course_code] > len(days)
            if repeat_ok:
                result.repeat_allowed.add((obligation.course_code, unit.section))
            placed = self._place_unit(unit, days, slots, checker, result.entries, repeat_ok=repeat_ok)
            if placed < obligation.classes_per_week:
                shortfall = Shortfall(
                    course_code=obligation.course_code,
                    session_type=obligation.session_type,
                    section=unit.section,
                    teacher_id=obligation.teacher_id,
                    required=obligation.classes_per_week,
                    placed=placed,
                )
                result.shortfalls.append(shortfall)
                result.warnings.append(
                    f"{self.name}: placed {placed}/{obligation.classes_per_week} "
                    f"{obligation.session_type} classes for {obligation.course_code} (section {unit.section})"
                )
                logger.warning(
                    "Strategy %s could only place %s/%s classes for %s %s section=%s",
                    self.key,
                    placed,
                    obligation.classes_per_week,
                    obligation.course_code,
                    obligation.session_type,
                    unit.section,
                )

        for room in self.rooms.synthesized:
            result.warnings.append(f"{self.name}: room pool exhausted, synthesized {room}")
        return result

    def _place_unit(
        self,
        unit: PlacementUnit,
        days: list[str],
        slots: list[TimeSlot],
        checker: ConflictChecker,
        entries: list[ScheduleEntry],
        *,
        repeat_ok: bool,
    ) -> int:
        obligation = unit.obligation
        required = obligation.classes_per_week
        ordered_days = rotate(days, unit.day_offset)
        placed = 0

        for day in ordered_days:
            if placed >= required:
                break
            if not checker.course_unplaced_today(obligation.course_code, day, unit.section):
                continue
            entry = self._place_on_day(unit, day, slots, checker)
            if entry is not None:
                entries.append(entry)
                placed += 1

        # Demand beyond one class per working day: add repeats one day per round.
        while repeat_ok and placed < required:
            progressed = False
            for day in ordered_days:
                if placed >= required:
                    break
                entry = self._place_on_day(unit, day, slots, checker)
                if entry is not None:
                    entries.append(entry)
                    placed += 1
                    progressed = True
            if not progressed:
                break
        return placed

    def _place_on_day(
        self,
        unit: PlacementUnit,
        day: str,
        slots: list[TimeSlot],
        checker: ConflictChecker,
    ) -> ScheduleEntry | None:
        obligation = unit.obligation
        for slot in slots:
            label = slot.label
            if not self.slot_accepts(checker, day, slot):
                continue
            if not checker.teacher_free(obligation.teacher_id, day, label):
                continue
            room = self.rooms.allocate(
                session_type=obligation.session_type,
                course_code=obligation.course_code,
                course_name=obligation.course_name,
                day=day,
                slot=label,
                checker=checker,
            )
            if not checker.room_free(room, day, label):
                continue
            entry = ScheduleEntry(
                day=day,
                time_slot=label,
                course_code=obligation.course_code,
                course_name=obligation.course_name,
                teacher_id=obligation.teacher_id,
                teacher_name=obligation.teacher_name,
                room=room,
                session_type=obligation.session_type,
                section=unit.section,
                department_id=obligation.department_id,
                department_name=obligation.department_name,
                semester=obligation.semester,
            )
            checker.add(entry)
            logger.debug("Strategy %s placed %s on %s %s in %s", self.key, obligation.course_code, day, label, room)
            return entry
        return None


class BalancedStrategy(PlacementStrategy):
    key = "balanced"
    solution_id = "csp-balanced-1"
    name = "Balanced Optimization"
    reasoning = (
        "Balanced distribution across days with equal weight to teacher and student preferences. "
        "Each course scheduled on different days."
    )

    def order_units(self, obligations: list[CourseObligation], sections: list[str]) -> list[PlacementUnit]:
        ordered = sorted(obligations, key=lambda item: -item.classes_per_week)
        return [
            PlacementUnit(obligation=obligation, section=section, day_offset=0)
            for obligation in ordered
            for section in sections
        ]


class TeacherFocusedStrategy(PlacementStrategy):
    key = "teacher-focused"
    solution_id = "csp-teacher-optimized-2"
    name = "Teacher-Optimized"
    reasoning = (
        "Minimizes teacher transitions between days. Groups teacher courses together while "
        "distributing each course across different days."
    )

    def order_units(self, obligations: list[CourseObligation], sections: list[str]) -> list[PlacementUnit]:
        by_teacher: dict[str, list[CourseObligation]] = {}
        for obligation in obligations:
            by_teacher.setdefault(obligation.teacher_id, []).append(obligation)

        units: list[PlacementUnit] = []
        for teacher_index, teacher_obligations in enumerate(by_teacher.values()):
            for obligation in teacher_obligations:
                for section in sections:
                    units.append(PlacementUnit(obligation=obligation, section=section, day_offset=teacher_index))
        return units


class StudentFocusedStrategy(PlacementStrategy):
    key = "student-focused"
    solution_id = "csp-student-optimized-3"
    name = "Student-Optimized"
    reasoning = (
        "Balanced daily workload for students. Each course distributed across different days "
        "with theory classes in morning slots."
    )

    def __init__(self, *, room_allocator: RoomAllocator | None = None, max_parallel_classes: int = 3) -> None:
        super().__init__(room_allocator=room_allocator)
        self.max_parallel_classes = max_parallel_classes

    def order_units(self, obligations: list[CourseObligation], sections: list[str]) -> list[PlacementUnit]:
        ordered = sorted(obligations, key=lambda item: item.session_type != "theory")
        units: list[PlacementUnit] = []
        for obligation in ordered:
            for section in sections:
                units.append(PlacementUnit(obligation=obligation, section=section, day_offset=len(units)))
        return units

    def slot_accepts(self, checker: ConflictChecker, day: str, slot: TimeSlot) -> bool:
        return checker.slot_load(day, slot.label) < self.max_parallel_classes


STRATEGY_TYPES: tuple[type[PlacementStrategy], ...] = (
    BalancedStrategy,
    TeacherFocusedStrategy,
    StudentFocusedStrategy,
)
