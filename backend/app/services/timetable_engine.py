from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
import random
from time import perf_counter
from typing import Any

from app.core.config import Settings, get_settings
from app.core.exceptions import ConfigurationError
from app.schemas.timetable import (
    CourseObligation,
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    GenerationSummary,
    InputSummary,
    Recommendations,
    Solution,
    SolutionMetadata,
    StrategyDescriptor,
)
from app.services.input_normalizer import normalize_course_assignments
from app.services.placement import (
    STRATEGY_TYPES,
    BalancedStrategy,
    PlacementStrategy,
    StudentFocusedStrategy,
    TeacherFocusedStrategy,
)
from app.services.quality import count_conflicts, score_quality
from app.services.room_allocator import RoomAllocator
from app.services.slot_generator import TimeSlot, generate_time_slots

logger = logging.getLogger(__name__)


def describe_strategies() -> list[StrategyDescriptor]:
    return [
        StrategyDescriptor(
            id=strategy.solution_id,
            name=strategy.name,
            optimization=strategy.key,
            optimization_reasoning=strategy.reasoning,
        )
        for strategy in STRATEGY_TYPES
    ]


def recommend(solutions: list[Solution]) -> Recommendations:
    if not solutions:
        return Recommendations(reasoning="No solutions generated")

    # max() keeps the first solution on ties, so balanced wins a draw.
    best_overall = max(solutions, key=lambda item: item.quality.overall_score)
    best_for_teachers = max(solutions, key=lambda item: item.quality.teacher_satisfaction)
    best_for_students = max(solutions, key=lambda item: item.quality.student_satisfaction)
    return Recommendations(
        best_overall=best_overall.id,
        best_for_teachers=best_for_teachers.id,
        best_for_students=best_for_students.id,
        reasoning=(
            f"Analyzed {len(solutions)} solutions. "
            f"Best overall score: {best_overall.quality.overall_score:.1f}"
        ),
    )


class TimetableGenerator:
    """Produces one schedule per placement strategy for a generation request.

    Every call builds fresh strategies, schedule maps and room allocators, so a
    single generator can be shared across requests and threads.
    """

    def __init__(self, *, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        if self.settings.max_parallel_classes < 1:
            raise ConfigurationError("max_parallel_classes must be at least 1")

    def _build_strategies(self) -> list[PlacementStrategy]:
        seed = self.settings.room_fallback_seed

        def allocator() -> RoomAllocator:
            return RoomAllocator(rng=random.Random(seed))

        return [
            BalancedStrategy(room_allocator=allocator()),
            TeacherFocusedStrategy(room_allocator=allocator()),
            StudentFocusedStrategy(
                room_allocator=allocator(),
                max_parallel_classes=self.settings.max_parallel_classes,
            ),
        ]

    def _run_strategy(
        self,
        strategy: PlacementStrategy,
        obligations: list[CourseObligation],
        *,
        sections: list[str],
        days: list[str],
        slots: list[TimeSlot],
        input_warnings: list[str],
    ) -> Solution:
        started = perf_counter()
        result = strategy.run(obligations, sections=sections, days=days, slots=slots)
        conflicts = count_conflicts(result.entries, result.repeat_allowed)
        quality = score_quality(result.entries, strategy.key)
        logger.info(
            "Strategy %s placed %s/%s classes conflicts=%s score=%s in %.3fs",
            strategy.key,
            len(result.entries),
            result.requested_classes,
            conflicts,
            quality.overall_score,
            perf_counter() - started,
        )
        return Solution(
            id=strategy.solution_id,
            name=strategy.name,
            optimization=strategy.key,
            score=quality.overall_score,
            conflicts=conflicts,
            quality=quality,
            timetable_entries=result.entries,
            metadata=SolutionMetadata(
                total_classes=len(result.entries),
                requested_classes=result.requested_classes,
                teachers_involved=len({entry.teacher_id for entry in result.entries}),
                rooms_used=len({entry.room for entry in result.entries}),
                optimization_reasoning=strategy.reasoning,
            ),
            warnings=[*input_warnings, *result.warnings],
            shortfalls=result.shortfalls,
        )

    def generate(self, request: GenerateTimetableRequest) -> GenerateTimetableResponse:
        started = perf_counter()
        normalized = normalize_course_assignments(request.course_assignments)
        config = request.time_configuration
        sections = request.sections or [self.settings.default_section]
        days = list(config.working_days)
        slots = generate_time_slots(config)

        input_warnings = list(normalized.warnings)
        if not slots:
            input_warnings.append(
                f"Time configuration {config.start_time}-{config.end_time} with "
                f"{config.class_duration} minute classes yields no time slots"
            )
        if not days:
            input_warnings.append("No working days configured")

        logger.info(
            "Timetable generation obligations=%s sections=%s days=%s slots_per_day=%s",
            len(normalized.obligations),
            len(sections),
            len(days),
            len(slots),
        )

        strategies = self._build_strategies()

        def run(strategy: PlacementStrategy) -> Solution:
            return self._run_strategy(
                strategy,
                normalized.obligations,
                sections=sections,
                days=days,
                slots=slots,
                input_warnings=input_warnings,
            )

        if self.settings.parallel_strategies:
            with ThreadPoolExecutor(max_workers=len(strategies)) as executor:
                solutions = list(executor.map(run, strategies))
        else:
            solutions = [run(strategy) for strategy in strategies]

        elapsed = perf_counter() - started
        generation_time = f"{elapsed:.2f}s"
        solutions = [item.model_copy(update={"generation_time": generation_time}) for item in solutions]

        course_codes = {item.course_code for item in normalized.obligations}
        return GenerateTimetableResponse(
            success=any(item.timetable_entries for item in solutions),
            solutions=solutions,
            warnings=input_warnings,
            generation_summary=GenerationSummary(
                total_solutions_attempted=len(strategies),
                successful_solutions=sum(1 for item in solutions if item.timetable_entries),
                total_generation_time_ms=int(elapsed * 1000),
                input_summary=InputSummary(
                    total_courses=len(course_codes),
                    total_obligations=len(normalized.obligations),
                    total_sections=len(sections),
                    available_days=len(days),
                    slots_per_day=len(slots),
                ),
            ),
            recommendations=recommend(solutions),
        )


def generate_timetables(payload: dict[str, Any], *, settings: Settings | None = None) -> GenerateTimetableResponse:
    """Validate a raw request payload and run every placement strategy over it."""
    request = GenerateTimetableRequest.model_validate(payload)
    return TimetableGenerator(settings=settings).generate(request)
