from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator

from app.core.config import get_settings

DAY_VALUES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DAY_SHORT_MAP = {day[:3]: day for day in DAY_VALUES}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

SessionType = Literal["theory", "lab", "tutorial"]
SESSION_TYPES: tuple[str, ...] = ("theory", "lab", "tutorial")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def normalize_day(value: str) -> str:
    day = value.strip().capitalize()
    return DAY_SHORT_MAP.get(day, day)


def _default_working_days() -> list[str]:
    return list(get_settings().default_working_days)


def _default_start_time() -> str:
    return get_settings().default_start_time


def _default_end_time() -> str:
    return get_settings().default_end_time


def _default_class_duration() -> int:
    return get_settings().default_class_duration


class CourseObligation(BaseModel):
    model_config = ConfigDict(frozen=True)

    course_code: str = Field(min_length=1, max_length=50)
    course_name: str = Field(min_length=1, max_length=200)
    teacher_id: str = Field(min_length=1, max_length=64)
    teacher_name: str = Field(min_length=1, max_length=200)
    session_type: SessionType = "theory"
    classes_per_week: int = Field(ge=1, le=50)
    department_id: int | str | None = None
    department_name: str | None = None
    semester: int | None = Field(default=None, ge=1, le=20)


class LunchBreak(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    start_time: str = Field(validation_alias=AliasChoices("start_time", "startTime"))
    end_time: str = Field(validation_alias=AliasChoices("end_time", "endTime"))

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @property
    def window(self) -> tuple[int, int] | None:
        """Lunch window in minutes, or None when the break does not apply."""
        if not self.enabled:
            return None
        start = parse_time_to_minutes(self.start_time)
        end = parse_time_to_minutes(self.end_time)
        if end <= start:
            return None
        return start, end


class TimeConfiguration(BaseModel):
    """Daily grid definition shared by every working day.

    Start/end ordering and class duration are deliberately not validated here:
    an unusable configuration yields an empty slot grid instead of an error.
    """

    model_config = ConfigDict(frozen=True)

    working_days: list[str] = Field(
        default_factory=_default_working_days,
        validation_alias=AliasChoices("working_days", "workingDays"),
    )
    start_time: str = Field(
        default_factory=_default_start_time,
        validation_alias=AliasChoices("start_time", "startTime"),
    )
    end_time: str = Field(
        default_factory=_default_end_time,
        validation_alias=AliasChoices("end_time", "endTime"),
    )
    class_duration: int = Field(
        default_factory=_default_class_duration,
        validation_alias=AliasChoices("class_duration", "classDuration"),
    )
    lunch_break: LunchBreak | None = Field(
        default=None,
        validation_alias=AliasChoices("lunch_break", "lunchBreak"),
    )

    @field_validator("working_days")
    @classmethod
    def normalize_working_days(cls, value: list[str]) -> list[str]:
        days: list[str] = []
        for item in value:
            if not item or not item.strip():
                continue
            day = normalize_day(item)
            if day not in DAY_VALUES:
                raise ValueError(f"Invalid day value: {item}")
            if day not in days:
                days.append(day)
        return days

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value


class ScheduleEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: str
    time_slot: str
    course_code: str
    course_name: str
    teacher_id: str
    teacher_name: str
    room: str
    session_type: SessionType
    section: str
    department_id: int | str | None = None
    department_name: str | None = None
    semester: int | None = None


class QualityScores(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_score: float
    teacher_satisfaction: float
    student_satisfaction: float
    resource_utilization: float


class SolutionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_classes: int
    requested_classes: int
    teachers_involved: int
    rooms_used: int
    optimization_reasoning: str


class Shortfall(BaseModel):
    model_config = ConfigDict(frozen=True)

    course_code: str
    session_type: SessionType
    section: str
    teacher_id: str
    required: int
    placed: int

    @computed_field
    @property
    def missing(self) -> int:
        return self.required - self.placed


class Solution(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    optimization: str
    score: float
    conflicts: int
    quality: QualityScores
    timetable_entries: list[ScheduleEntry] = Field(default_factory=list)
    generation_time: str = "0.00s"
    metadata: SolutionMetadata
    warnings: list[str] = Field(default_factory=list)
    shortfalls: list[Shortfall] = Field(default_factory=list)


class StrategyDescriptor(BaseModel):
    id: str
    name: str
    optimization: str
    optimization_reasoning: str


class InputSummary(BaseModel):
    total_courses: int
    total_obligations: int
    total_sections: int
    available_days: int
    slots_per_day: int


class GenerationSummary(BaseModel):
    total_solutions_attempted: int
    successful_solutions: int
    total_generation_time_ms: int
    input_summary: InputSummary


class Recommendations(BaseModel):
    best_overall: str = ""
    best_for_teachers: str = ""
    best_for_students: str = ""
    reasoning: str


class GenerateTimetableRequest(BaseModel):
    # Records stay loosely typed: two historical shapes are accepted and normalized later.
    course_assignments: list[Any] = Field(
        default_factory=list,
        validation_alias=AliasChoices("course_assignments", "courseAssignments"),
    )
    sections: list[str] = Field(default_factory=list)
    time_configuration: TimeConfiguration = Field(
        default_factory=TimeConfiguration,
        validation_alias=AliasChoices("time_configuration", "timeConfiguration"),
    )

    @field_validator("sections")
    @classmethod
    def normalize_sections(cls, value: list[str]) -> list[str]:
        unique: list[str] = []
        for item in value:
            label = str(item).strip()
            if label and label not in unique:
                unique.append(label)
        return unique


class GenerateTimetableResponse(BaseModel):
    success: bool
    solutions: list[Solution]
    warnings: list[str] = Field(default_factory=list)
    generation_summary: GenerationSummary
    recommendations: Recommendations


class TimeSlotPreview(BaseModel):
    working_days: list[str]
    slots: list[str]
    slots_per_day: int
