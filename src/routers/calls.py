"""
Phone call scheduling endpoints.
"""
import logging

from fastapi import APIRouter, Depends

from src.dependencies import get_call_scheduling_service, get_scheduled_call_repo
from src.exceptions import NotFoundError, parse_uuid
from src.models import ScheduleCallRequest, ScheduleCallResponse, ScheduledCallResponse
from src.repositories import ScheduledCallRepository
from src.services import CallSchedulingService
from src.services.call_scheduling_service import build_scheduled_call_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calls", tags=["Calls"])


@router.post("/schedule", response_model=ScheduleCallResponse, status_code=201)
async def schedule_call(
    request: ScheduleCallRequest,
    service: CallSchedulingService = Depends(get_call_scheduling_service),
):
    """
    Schedule an automated VAPI call to a reference.

    The call is placed by the cron dispatcher once it comes due.

    Errors:
    - 400: invalid phone number, time not in the future, reference already has a call
    - 404: unknown reference
    - 502: VAPI assistant could not be created (nothing is stored)
    """
    return await service.schedule_call(request)


@router.get("/{call_id}", response_model=ScheduledCallResponse)
async def get_call(
    call_id: str,
    repo: ScheduledCallRepository = Depends(get_scheduled_call_repo),
):
    """Get the status and results of a scheduled call."""
    call_uuid = parse_uuid(call_id, field="call_id")
    row = await repo.get_by_id(call_uuid)
    if not row:
        raise NotFoundError("Scheduled call", str(call_uuid))
    return build_scheduled_call_response(row)
