import logging

from fastapi import APIRouter, Depends

from app.core.config import Settings, get_settings
from app.schemas.timetable import (
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    StrategyDescriptor,
    TimeConfiguration,
    TimeSlotPreview,
)
from app.services.slot_generator import generate_time_slots
from app.services.timetable_engine import TimetableGenerator, describe_strategies

router = APIRouter()
logger = logging.getLogger(__name__)


def get_generator(settings: Settings = Depends(get_settings)) -> TimetableGenerator:
    return TimetableGenerator(settings=settings)


@router.post("/timetable/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    payload: GenerateTimetableRequest,
    generator: TimetableGenerator = Depends(get_generator),
) -> GenerateTimetableResponse:
    logger.info(
        "Timetable generation requested records=%s sections=%s",
        len(payload.course_assignments),
        len(payload.sections),
    )
    response = generator.generate(payload)
    logger.info(
        "Timetable generation finished success=%s runtime_ms=%s",
        response.success,
        response.generation_summary.total_generation_time_ms,
    )
    return response


@router.get("/timetable/strategies", response_model=list[StrategyDescriptor])
def list_strategies() -> list[StrategyDescriptor]:
    return describe_strategies()


@router.post("/timetable/time-slots", response_model=TimeSlotPreview)
def preview_time_slots(payload: TimeConfiguration) -> TimeSlotPreview:
    slots = [slot.label for slot in generate_time_slots(payload)]
    return TimeSlotPreview(working_days=payload.working_days, slots=slots, slots_per_day=len(slots))
