"""
Call scheduling service - books an automated reference call.

Each scheduled call gets its own VAPI assistant with the questions baked
into the system prompt. The assistant is created first; the scheduled_calls
row is only written once VAPI accepted it, and the assistant is removed
again when the write fails, so a failure never leaves a half-scheduled call.
"""
import logging

import asyncpg

from src.exceptions import (
    ExternalServiceError,
    NotFoundError,
    SchedulingError,
    ValidationError,
    parse_uuid,
)
from src.models import (
    CallStatus,
    ReferenceContactStatus,
    ScheduleCallRequest,
    ScheduleCallResponse,
    ScheduledCallResponse,
    TERMINAL_CONTACT_STATUSES,
)
from src.repositories import (
    ReferenceCheckRepository,
    ReferenceContactRepository,
    ScheduledCallRepository,
)
from src.services.question_service import QuestionService
from src.services.vapi_prompts import build_first_message, build_reference_check_prompt
from src.services.vapi_service import VapiService
from src.utils import ensure_utc, to_e164, utc_now

logger = logging.getLogger(__name__)


def build_scheduled_call_response(row: asyncpg.Record) -> ScheduledCallResponse:
    """Build a ScheduledCallResponse from a scheduled_calls row."""
    return ScheduledCallResponse(
        id=str(row["id"]),
        reference_check_id=str(row["reference_check_id"]),
        reference_contact_id=str(row["reference_contact_id"]),
        phone_number=row["phone_number"],
        reference_name=row["reference_name"],
        scheduled_time=row["scheduled_time"],
        status=row["status"],
        vapi_call_id=row["vapi_call_id"],
        duration_seconds=row["duration_seconds"],
        recording_url=row["recording_url"],
        transcript=row["transcript"],
        ended_reason=row["ended_reason"],
        error_message=row["error_message"],
        created_at=row["created_at"],
    )


class CallSchedulingService:
    """Service for scheduling reference calls."""

    def __init__(
        self,
        check_repo: ReferenceCheckRepository,
        contact_repo: ReferenceContactRepository,
        call_repo: ScheduledCallRepository,
        question_service: QuestionService,
        vapi_service: VapiService,
    ):
        self.check_repo = check_repo
        self.contact_repo = contact_repo
        self.call_repo = call_repo
        self.question_service = question_service
        self.vapi_service = vapi_service

    async def schedule_call(self, request: ScheduleCallRequest) -> ScheduleCallResponse:
        """
        Schedule an automated call to a reference.

        Raises:
            ValidationError: Bad phone number, time not in the future, or the
                reference is finished / already has a pending call
            NotFoundError: Unknown reference contact
            SchedulingError: VAPI rejected the assistant or the call could not be stored
        """
        contact_id = parse_uuid(request.reference_contact_id, field="reference_contact_id")

        scheduled_time = ensure_utc(request.scheduled_time)
        if scheduled_time <= utc_now():
            raise ValidationError("Scheduled time must be in the future", field="scheduled_time")

        contact = await self.contact_repo.get_by_id(contact_id)
        if not contact:
            raise NotFoundError("Reference", str(contact_id))
        if ReferenceContactStatus(contact["status"]) in TERMINAL_CONTACT_STATUSES:
            raise ValidationError("This reference has already been completed", field="reference_contact_id")

        raw_phone = request.phone_number or contact["phone"]
        if not raw_phone:
            raise ValidationError("Phone number is required", field="phone_number")
        try:
            phone_number = to_e164(raw_phone)
        except ValueError as e:
            raise ValidationError(str(e), field="phone_number")

        active = await self.call_repo.get_active_for_contact(contact_id)
        if active:
            raise ValidationError(
                f"Reference already has a {active['status']} call",
                field="reference_contact_id",
                details={"scheduled_call_id": str(active["id"])},
            )

        check = await self.check_repo.get_by_id(contact["reference_check_id"])
        if not check:
            raise NotFoundError("Reference check", str(contact["reference_check_id"]))

        custom_questions = [q.strip() for q in request.custom_questions if q and q.strip()]
        questions = await self.question_service.get_question_texts(check["id"], custom_questions)

        system_prompt = build_reference_check_prompt(
            candidate_name=check["candidate_name"],
            position=check["position"],
            reference_name=contact["name"],
            questions=questions,
            company=check["company"],
            job_description=check["job_description"] if request.include_job_description else None,
        )

        try:
            assistant_id = await self.vapi_service.create_assistant(
                name=f"Ref Check - {contact['name']}",
                system_prompt=system_prompt,
                first_message=build_first_message(check["candidate_name"], contact["name"]),
            )
        except ExternalServiceError as e:
            logger.error(f"VAPI assistant creation failed for reference {contact_id}: {e.message}")
            raise SchedulingError("Could not create call assistant")

        try:
            row = await self.call_repo.create(
                reference_check_id=check["id"],
                reference_contact_id=contact_id,
                phone_number=phone_number,
                reference_name=contact["name"],
                scheduled_time=scheduled_time,
                vapi_assistant_id=assistant_id,
                custom_questions=custom_questions,
            )
        except Exception as e:
            logger.error(f"Failed to store scheduled call for reference {contact_id}: {e}")
            await self.vapi_service.delete_assistant(assistant_id)
            raise SchedulingError("Could not store the scheduled call")

        if row is None:
            # A concurrent request scheduled this reference between the check above and the insert
            await self.vapi_service.delete_assistant(assistant_id)
            raise ValidationError("Reference already has an active call", field="reference_contact_id")

        logger.info(
            f"Scheduled call {row['id']} for reference {contact_id} at {scheduled_time.isoformat()} "
            f"({len(questions)} questions)"
        )
        return ScheduleCallResponse(
            success=True,
            scheduled_call_id=str(row["id"]),
            reference_check_id=str(check["id"]),
            phone_number=phone_number,
            scheduled_time=scheduled_time,
            status=CallStatus.SCHEDULED,
            message=f"Call scheduled for {scheduled_time.isoformat()}",
        )
