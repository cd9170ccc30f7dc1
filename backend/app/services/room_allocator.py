from __future__ import annotations

import logging
import random

from app.services.conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

CS_LAB_POOL: tuple[str, ...] = tuple(f"CS-Lab-{chr(ord('A') + index)}" for index in range(10))
GENERAL_LAB_POOL: tuple[str, ...] = tuple(f"Lab-{number}" for number in range(101, 121))
CLASSROOM_POOL: tuple[str, ...] = tuple(f"Room-{number}" for number in range(101, 151))

COMPUTING_CODE_MARKERS = ("CS", "BCS")
COMPUTING_NAME_MARKERS = ("computer", "programming")

# Bounded so a saturated grid still terminates; a counter suffix takes over afterwards.
FALLBACK_ATTEMPTS = 200


def is_computing_course(course_code: str, course_name: str) -> bool:
    code = (course_code or "").upper()
    name = (course_name or "").lower()
    return any(marker in code for marker in COMPUTING_CODE_MARKERS) or any(
        marker in name for marker in COMPUTING_NAME_MARKERS
    )


def candidate_pools(session_type: str, course_code: str, course_name: str) -> tuple[tuple[str, ...], ...]:
    """Room pools in preference order for one session."""
    if session_type == "lab":
        if is_computing_course(course_code, course_name):
            return (CS_LAB_POOL, GENERAL_LAB_POOL, CLASSROOM_POOL)
        return (GENERAL_LAB_POOL, CLASSROOM_POOL)
    return (CLASSROOM_POOL,)


class RoomAllocator:
    """Hands out room labels for one strategy run.

    Rooms are checked per (room, day, slot) against the run's schedule, so a
    room minted earlier is reused whenever it is free at the requested time.
    """

    def __init__(self, *, rng: random.Random | None = None) -> None:
        self.random = rng or random.Random()
        self._used: list[str] = []
        self._used_set: set[str] = set()
        self.synthesized: list[str] = []

    @property
    def rooms_used(self) -> int:
        return len(self._used)

    def _remember(self, room: str) -> None:
        if room not in self._used_set:
            self._used_set.add(room)
            self._used.append(room)

    def allocate(
        self,
        *,
        session_type: str,
        course_code: str,
        course_name: str,
        day: str,
        slot: str,
        checker: ConflictChecker,
    ) -> str:
        # A lower-preference pool is only tried once every room of the current one is busy.
        for pool in candidate_pools(session_type, course_code, course_name):
            for room in pool:
                if room in self._used_set and checker.room_free(room, day, slot):
                    return room
            for room in pool:
                if room not in self._used_set and checker.room_free(room, day, slot):
                    self._remember(room)
                    return room

        room = self._synthesize(day, slot, checker)
        self._remember(room)
        self.synthesized.append(room)
        logger.warning("Room pool exhausted for %s %s on %s %s; using %s", course_code, session_type, day, slot, room)
        return room

    def _synthesize(self, day: str, slot: str, checker: ConflictChecker) -> str:
        for _ in range(FALLBACK_ATTEMPTS):
            room = f"Room-{self.random.randint(200, 299)}"
            if checker.room_free(room, day, slot):
                return room
        counter = 300
        while not checker.room_free(f"Room-{counter}", day, slot):
            counter += 1
        return f"Room-{counter}"
