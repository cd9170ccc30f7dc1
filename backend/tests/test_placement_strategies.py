from collections import Counter

import pytest

from app.schemas.timetable import CourseObligation, TimeConfiguration
from app.services.placement import (
    BalancedStrategy,
    StudentFocusedStrategy,
    TeacherFocusedStrategy,
    rotate,
    weekly_demand,
)
from app.services.slot_generator import generate_time_slots

ALL_STRATEGIES = [BalancedStrategy, TeacherFocusedStrategy, StudentFocusedStrategy]


def obligation(code, teacher_id="t1", classes=1, session_type="theory", name=None):
    return CourseObligation(
        course_code=code,
        course_name=name or f"{code} course",
        teacher_id=teacher_id,
        teacher_name=f"Teacher {teacher_id}",
        session_type=session_type,
        classes_per_week=classes,
    )


def assert_no_double_booking(entries):
    teacher_keys = Counter((entry.teacher_id, entry.day, entry.time_slot) for entry in entries)
    room_keys = Counter((entry.room, entry.day, entry.time_slot) for entry in entries)
    assert all(count == 1 for count in teacher_keys.values())
    assert all(count == 1 for count in room_keys.values())


@pytest.fixture
def slots(time_config):
    return generate_time_slots(time_config)


@pytest.mark.parametrize("strategy_type", ALL_STRATEGIES)
def test_single_course_spread_over_distinct_days(strategy_type, weekdays, slots):
    result = strategy_type().run([obligation("CS101", classes=3)], sections=["A"], days=weekdays, slots=slots)

    assert len(result.entries) == 3
    assert len({entry.day for entry in result.entries}) == 3
    labels = {slot.label for slot in slots}
    for entry in result.entries:
        assert entry.time_slot in labels
        assert entry.room.startswith("Room-")
        assert entry.section == "A"
    assert result.shortfalls == []
    assert result.requested_classes == 3


@pytest.mark.parametrize("strategy_type", ALL_STRATEGIES)
def test_shared_teacher_is_never_double_booked(strategy_type, weekdays, slots):
    obligations = [obligation("CS101", "t1", 2), obligation("MA101", "t1", 2)]
    result = strategy_type().run(obligations, sections=["A"], days=weekdays, slots=slots)

    assert len(result.entries) == 4
    assert_no_double_booking(result.entries)


@pytest.mark.parametrize("strategy_type", ALL_STRATEGIES)
def test_demand_above_working_days_repeats_a_day(strategy_type, weekdays, slots):
    result = strategy_type().run([obligation("CS101", classes=7)], sections=["A"], days=weekdays, slots=slots)

    assert len(result.entries) == 7
    per_day = Counter(entry.day for entry in result.entries)
    assert max(per_day.values()) == 2
    assert set(per_day) == set(weekdays)
    assert ("CS101", "A") in result.repeat_allowed
    assert_no_double_booking(result.entries)


@pytest.mark.parametrize("strategy_type", ALL_STRATEGIES)
def test_session_types_of_one_course_share_the_day_rule(strategy_type, slots):
    days = ["Monday", "Tuesday"]
    obligations = [obligation("CS101", "t1", 1, "theory"), obligation("CS101", "t2", 1, "lab")]
    result = strategy_type().run(obligations, sections=["A"], days=days, slots=slots)

    assert len(result.entries) == 2
    assert {entry.day for entry in result.entries} == {"Monday", "Tuesday"}
    assert result.repeat_allowed == set()
    assert result.shortfalls == []


@pytest.mark.parametrize("strategy_type", ALL_STRATEGIES)
def test_unplaceable_classes_are_reported_as_shortfall(strategy_type, time_config):
    one_slot = generate_time_slots(time_config)[:1]
    obligations = [obligation("CS101", "t1", 1), obligation("MA101", "t1", 1)]
    result = strategy_type().run(obligations, sections=["A"], days=["Monday"], slots=one_slot)

    assert len(result.entries) == 1
    assert len(result.shortfalls) == 1
    shortfall = result.shortfalls[0]
    assert (shortfall.required, shortfall.placed, shortfall.missing) == (1, 0, 1)
    assert any("placed 0/1" in message for message in result.warnings)


@pytest.mark.parametrize("strategy_type", ALL_STRATEGIES)
def test_no_slots_places_nothing(strategy_type, weekdays):
    result = strategy_type().run([obligation("CS101", classes=2)], sections=["A"], days=weekdays, slots=[])

    assert result.entries == []
    assert result.shortfalls[0].placed == 0
    assert "No time slots available" in result.warnings[0]


def test_balanced_places_heaviest_obligation_first(weekdays, time_config):
    first_slot = generate_time_slots(time_config)[:1]
    obligations = [obligation("LIGHT1", "t1", 1), obligation("HEAVY1", "t1", 3)]
    result = BalancedStrategy().run(obligations, sections=["A"], days=weekdays, slots=first_slot)

    by_course = {}
    for entry in result.entries:
        by_course.setdefault(entry.course_code, []).append(entry.day)
    assert by_course["HEAVY1"] == ["Monday", "Tuesday", "Wednesday"]
    assert by_course["LIGHT1"] == ["Thursday"]


def test_teacher_focused_rotates_start_day_per_teacher(weekdays, slots):
    obligations = [
        obligation("CS101", "t1", 1),
        obligation("CS102", "t1", 1),
        obligation("MA101", "t2", 1),
    ]
    result = TeacherFocusedStrategy().run(obligations, sections=["A"], days=weekdays, slots=slots)

    days = {entry.course_code: entry.day for entry in result.entries}
    assert days == {"CS101": "Monday", "CS102": "Monday", "MA101": "Tuesday"}


def test_student_focused_places_theory_first_with_rotating_offset(weekdays, slots):
    obligations = [
        obligation("LAB1", "t1", 1, "lab"),
        obligation("TH1", "t2", 1, "theory"),
    ]
    result = StudentFocusedStrategy().run(obligations, sections=["A"], days=weekdays, slots=slots)

    assert [entry.course_code for entry in result.entries] == ["TH1", "LAB1"]
    days = {entry.course_code: entry.day for entry in result.entries}
    assert days == {"TH1": "Monday", "LAB1": "Tuesday"}


def test_student_focused_caps_parallel_classes_per_slot(slots):
    obligations = [obligation(f"C{index}", f"t{index}", 1) for index in range(5)]
    result = StudentFocusedStrategy(max_parallel_classes=3).run(
        obligations,
        sections=["A"],
        days=["Monday"],
        slots=slots,
    )

    load = Counter(entry.time_slot for entry in result.entries)
    assert load[slots[0].label] == 3
    assert load[slots[1].label] == 2


def test_rooms_are_reused_across_days(weekdays, slots):
    result = BalancedStrategy().run([obligation("MA101", classes=3)], sections=["A"], days=weekdays, slots=slots)

    assert {entry.room for entry in result.entries} == {"Room-101"}


def test_sections_fan_out_with_section_scoped_days(weekdays, slots):
    result = BalancedStrategy().run([obligation("CS101", "t1", 2)], sections=["A", "B"], days=weekdays, slots=slots)

    assert len(result.entries) == 4
    for section in ("A", "B"):
        days = [entry.day for entry in result.entries if entry.section == section]
        assert len(days) == len(set(days)) == 2
    assert_no_double_booking(result.entries)
    assert result.requested_classes == 4


def test_rotate_and_weekly_demand():
    assert rotate(["Mon", "Tue", "Wed"], 4) == ["Tue", "Wed", "Mon"]
    assert rotate([], 2) == []
    demand = weekly_demand([obligation("CS101", classes=3), obligation("CS101", "t2", 2, "lab")])
    assert demand == {"CS101": 5}


@pytest.mark.parametrize("strategy_type", ALL_STRATEGIES)
def test_computing_labs_stay_in_cs_labs_next_to_theory(strategy_type):
    morning = generate_time_slots(
        TimeConfiguration(working_days=["Monday"], start_time="09:00", end_time="11:00", class_duration=60)
    )
    obligations = [
        obligation("BCS301", "t1", session_type="lab", name="Data Structures"),
        obligation("MA101", "t1", name="Calculus"),
        obligation("BCS302", "t2", session_type="lab", name="Algorithms"),
    ]
    result = strategy_type().run(obligations, sections=["A"], days=["Monday"], slots=morning)

    assert len(result.entries) == 3
    rooms = {entry.course_code: entry.room for entry in result.entries}
    assert rooms["BCS301"].startswith("CS-Lab-")
    assert rooms["BCS302"].startswith("CS-Lab-")
    assert rooms["MA101"].startswith("Room-")
    assert_no_double_booking(result.entries)
