import pytest
from fastapi.testclient import TestClient #fake http client that calls the FastAPI routes without running a real server.

from app.main import app
from app.schemas.timetable import TimeConfiguration


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def weekdays():
    return ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


@pytest.fixture
def time_config(weekdays):
    return TimeConfiguration(
        working_days=weekdays,
        start_time="09:00",
        end_time="16:00",
        class_duration=60,
    )


@pytest.fixture
def sample_assignments():
    # Mix of the grouped and flat record shapes the controllers send.
    return [
        {
            "course_code": "BCS301",
            "course_name": "Data Structures",
            "department_id": 1,
            "semester": 3,
            "sessions": {
                "theory": {"teacher_id": 11, "teacher_name": "Dr. Rao", "classes_per_week": 3},
                "lab": {"teacher_id": 12, "teacher_name": "Prof. Iyer", "classes_per_week": 2},
                "tutorial": {"teacher_id": 11, "teacher_name": "Dr. Rao", "classes_per_week": 0},
            },
        },
        {
            "course_code": "MAT201",
            "course_name": "Discrete Mathematics",
            "teacher_id": 13,
            "teacher_name": "Dr. Menon",
            "classes_per_week": 4,
            "session_type": "theory",
        },
        {
            "course_code": "PHY110",
            "course_name": "Engineering Physics",
            "teacher_id": 11,
            "teacher_name": "Dr. Rao",
            "classes_per_week": 2,
            "session_type": "lab",
        },
    ]
