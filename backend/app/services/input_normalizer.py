from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import Any

from pydantic import ValidationError

from app.core.exceptions import InvalidGenerationInputError
from app.schemas.timetable import SESSION_TYPES, CourseObligation

logger = logging.getLogger(__name__)

PLACEHOLDER_TEACHER_NAME = "TBD"
PLACEHOLDER_TEACHER_ID = "unassigned"


@dataclass
class NormalizationResult:
    obligations: list[CourseObligation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _pick(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        return None
    if isinstance(value, float) and count != value:
        return None
    return count


def _course_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    semester = _as_int(_pick(record, "semester"))
    return {
        "course_name": _text(_pick(record, "course_name", "courseName")) or _text(_pick(record, "course_code", "courseCode")),
        "department_id": _pick(record, "department_id", "departmentId"),
        "department_name": _text(_pick(record, "department_name", "departmentName")),
        "semester": semester if semester and semester >= 1 else None,
    }


def _teacher_fields(record: Mapping[str, Any]) -> dict[str, str]:
    return {
        "teacher_id": _text(_pick(record, "teacher_id", "teacherId")) or PLACEHOLDER_TEACHER_ID,
        "teacher_name": _text(_pick(record, "teacher_name", "teacherName")) or PLACEHOLDER_TEACHER_NAME,
    }


def _append(result: NormalizationResult, course_code: str, **fields: Any) -> None:
    try:
        result.obligations.append(CourseObligation(course_code=course_code, **fields))
    except ValidationError as exc:
        fields_in_error = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
        result.warnings.append(f"Course {course_code}: skipped, invalid field(s) {', '.join(fields_in_error)}")


def _normalize_grouped(
    record: Mapping[str, Any],
    course_code: str,
    sessions: Mapping[str, Any],
    result: NormalizationResult,
) -> None:
    unknown = sorted(str(key) for key in sessions if str(key).lower() not in SESSION_TYPES)
    if unknown:
        result.warnings.append(f"Course {course_code}: ignored unknown session type(s) {', '.join(unknown)}")

    lowered = {str(key).lower(): value for key, value in sessions.items()}
    for session_type in SESSION_TYPES:
        session = lowered.get(session_type)
        if not isinstance(session, Mapping):
            continue
        count = _as_int(_pick(session, "classes_per_week", "classesPerWeek"))
        if not count or count < 1:
            continue
        _append(
            result,
            course_code,
            **_course_fields(record),
            **_teacher_fields(session),
            session_type=session_type,
            classes_per_week=count,
        )


def _normalize_flat(record: Mapping[str, Any], course_code: str, result: NormalizationResult) -> None:
    raw_count = _pick(record, "classes_per_week", "classesPerWeek")
    count = _as_int(raw_count)
    if not count or count < 1:
        result.warnings.append(f"Course {course_code}: skipped, classes_per_week={raw_count!r} is not a positive integer")
        return

    session_type = (_text(_pick(record, "session_type", "sessionType")) or "theory").lower()
    if session_type not in SESSION_TYPES:
        result.warnings.append(f"Course {course_code}: skipped, unknown session type {session_type!r}")
        return

    _append(
        result,
        course_code,
        **_course_fields(record),
        **_teacher_fields(record),
        session_type=session_type,
        classes_per_week=count,
    )


def normalize_course_assignments(raw: Any) -> NormalizationResult:
    """Flatten grouped and flat course records into one list of obligations.

    Grouped records carry a ``sessions`` mapping keyed by session type; flat
    records describe one (course, session type) pair each. Records without a
    course code are skipped and reported in ``warnings``.
    """
    if raw is None:
        return NormalizationResult()
    if not isinstance(raw, (list, tuple)):
        raise InvalidGenerationInputError(type(raw).__name__)

    result = NormalizationResult()
    for index, record in enumerate(raw):
        if not isinstance(record, Mapping):
            result.warnings.append(f"Record {index}: skipped, expected an object but got {type(record).__name__}")
            continue
        course_code = _text(_pick(record, "course_code", "courseCode"))
        if course_code is None:
            result.warnings.append(f"Record {index}: skipped, missing course_code")
            continue

        sessions = record.get("sessions")
        if isinstance(sessions, Mapping):
            _normalize_grouped(record, course_code, sessions, result)
        else:
            _normalize_flat(record, course_code, result)

    for message in result.warnings:
        logger.warning("Course normalization: %s", message)
    logger.info("Normalized %s course record(s) into %s obligation(s)", len(raw), len(result.obligations))
    return result
