"""
Call webhook service - applies VAPI call lifecycle events.

Handles three kinds of events:
- started: scheduled/in_progress call is marked picked up
- ended: the call record is fetched from VAPI, the transcript is built and
  formatted, results are stored and the hiring team is emailed
- failed: the call is marked failed

A terminal call is never updated again. The conditional finalize() update
decides which delivery of a repeated "ended" event does the follow-up work,
so duplicates store one transcript and send one email.
"""
import logging
from typing import Awaitable, Callable, Optional

import asyncpg

from src.config import NOTIFICATION_EMAIL
from src.models import (
    CallStatus,
    ReferenceContactStatus,
    TERMINAL_CALL_STATUSES,
    VapiCallObject,
    VapiWebhookPayload,
)
from src.repositories import (
    CallTranscriptRepository,
    ReferenceCheckRepository,
    ReferenceContactRepository,
    ScheduledCallRepository,
)
from src.services.email_service import EmailService
from src.services.question_service import QuestionService
from src.services.vapi_service import VapiService
from src.utils import parse_vapi_timestamp
from transcript_formatter import build_turns, format_transcript, render_raw_transcript

logger = logging.getLogger(__name__)

TranscriptFormatter = Callable[[str, Optional[str], Optional[list[str]]], Awaitable[str]]

STARTED_EVENTS = {"call.started", "call-started"}
ENDED_EVENTS = {"call.ended", "call-ended", "end-of-call-report"}
FAILED_EVENTS = {"call.failed", "call-failed"}

NO_ANSWER_REASONS = {
    "no-answer",
    "customer-did-not-answer",
    "customer-busy",
    "busy",
    "voicemail",
}
FAILED_REASONS = {
    "failed",
    "assistant-error",
    "assistant-not-found",
    "assistant-not-valid",
    "assistant-request-failed",
    "unknown-error",
}


def unwrap_payload(body: dict) -> dict:
    """VAPI wraps server messages in a "message" envelope. Unwrap it if present."""
    message = body.get("message")
    if isinstance(message, dict):
        return message
    return body


def map_ended_reason(ended_reason: Optional[str]) -> CallStatus:
    """Map a VAPI endedReason to the terminal status of the call."""
    reason = (ended_reason or "").lower()
    if reason in NO_ANSWER_REASONS:
        return CallStatus.NO_ANSWER
    if reason in FAILED_REASONS or reason.startswith("pipeline-error") or "failed" in reason or "error" in reason:
        return CallStatus.FAILED
    return CallStatus.COMPLETED


def call_duration_seconds(call: VapiCallObject) -> Optional[int]:
    """Duration reported by VAPI, or derived from startedAt/endedAt."""
    if call.durationSeconds is not None:
        return int(round(call.durationSeconds))
    if call.duration is not None:
        return int(round(call.duration))

    started = parse_vapi_timestamp(call.startedAt)
    ended = parse_vapi_timestamp(call.endedAt)
    if started and ended and ended >= started:
        return int((ended - started).total_seconds())
    return None


class CallWebhookService:
    """Service for processing VAPI webhook events."""

    def __init__(
        self,
        call_repo: ScheduledCallRepository,
        contact_repo: ReferenceContactRepository,
        check_repo: ReferenceCheckRepository,
        transcript_repo: CallTranscriptRepository,
        question_service: QuestionService,
        vapi_service: VapiService,
        email_service: EmailService,
        formatter: TranscriptFormatter = format_transcript,
        notification_email: str = NOTIFICATION_EMAIL,
    ):
        self.call_repo = call_repo
        self.contact_repo = contact_repo
        self.check_repo = check_repo
        self.transcript_repo = transcript_repo
        self.question_service = question_service
        self.vapi_service = vapi_service
        self.email_service = email_service
        self.formatter = formatter
        self.notification_email = notification_email

    async def handle_event(self, body: dict) -> dict:
        """
        Apply one webhook event.

        Returns:
            Summary dict with the event type and the action taken
        """
        payload = VapiWebhookPayload.model_validate(unwrap_payload(body))
        event_type = (payload.type or "").lower()

        if event_type in STARTED_EVENTS or (event_type == "status-update" and payload.status == "in-progress"):
            kind = "started"
        elif event_type in ENDED_EVENTS:
            kind = "ended"
        elif event_type in FAILED_EVENTS:
            kind = "failed"
        else:
            logger.debug(f"Ignoring VAPI event type: {payload.type}")
            return {"event": payload.type, "action": "ignored"}

        if not payload.call or not payload.call.id:
            logger.warning(f"VAPI {payload.type} event without call id")
            return {"event": payload.type, "action": "ignored"}

        row = await self._find_call(payload.call)
        if not row:
            logger.warning(f"VAPI {payload.type} for unknown call {payload.call.id}, acknowledging")
            return {"event": payload.type, "action": "unknown_call"}

        if kind == "started":
            return await self._handle_started(row, payload)
        if kind == "ended":
            return await self._handle_ended(row, payload)
        return await self._handle_failed(row, payload)

    async def _find_call(self, call: VapiCallObject) -> Optional[asyncpg.Record]:
        row = await self.call_repo.get_by_vapi_call_id(call.id)
        if row is None and call.assistantId:
            # Webhook raced the dispatcher storing the call id
            row = await self.call_repo.get_undispatched_by_assistant_id(call.assistantId)
        return row

    async def _handle_started(self, row: asyncpg.Record, payload: VapiWebhookPayload) -> dict:
        updated = await self.call_repo.mark_started(row["id"], payload.call.id)
        if not updated:
            return {"event": payload.type, "action": "already_terminal", "scheduled_call_id": str(row["id"])}
        logger.info(f"Call {row['id']} started (VAPI call {payload.call.id})")
        return {"event": payload.type, "action": "started", "scheduled_call_id": str(row["id"])}

    async def _fetch_call_record(self, payload: VapiWebhookPayload) -> VapiCallObject:
        """Authoritative call record from VAPI, or the webhook payload when the fetch fails."""
        try:
            record = await self.vapi_service.get_call(payload.call.id)
            return VapiCallObject.model_validate(record)
        except Exception as e:
            logger.warning(f"Falling back to webhook payload for call {payload.call.id}: {e}")

        # end-of-call-report carries artifact and endedReason next to the call object
        return payload.call.model_copy(update={
            "artifact": payload.call.artifact or payload.artifact,
            "endedReason": payload.call.endedReason or payload.endedReason,
        })

    async def _finish_reference(self, row: asyncpg.Record, status: CallStatus) -> None:
        contact_status = ReferenceContactStatus.COMPLETED if status == CallStatus.COMPLETED else ReferenceContactStatus.FAILED
        await self.contact_repo.update_status(row["reference_contact_id"], contact_status.value)
        if await self.check_repo.complete_if_all_references_done(row["reference_check_id"]):
            logger.info(f"Reference check {row['reference_check_id']} completed")

    async def _handle_ended(self, row: asyncpg.Record, payload: VapiWebhookPayload) -> dict:
        call_id = row["id"]
        if CallStatus(row["status"]) in TERMINAL_CALL_STATUSES:
            logger.info(f"Call {call_id} already {row['status']}, skipping duplicate end event")
            return {"event": payload.type, "action": "duplicate", "scheduled_call_id": str(call_id)}

        record = await self._fetch_call_record(payload)
        ended_reason = record.endedReason or payload.endedReason
        status = map_ended_reason(ended_reason)

        messages = (record.artifact.messages if record.artifact else None) or record.messages or []
        turns = build_turns([m.model_dump() for m in messages])
        raw_transcript = render_raw_transcript(turns)
        if not raw_transcript:
            if record.artifact and record.artifact.transcript:
                raw_transcript = record.artifact.transcript
            elif isinstance(record.transcript, str):
                raw_transcript = record.transcript

        check = await self.check_repo.get_by_id(row["reference_check_id"])
        candidate_name = check["candidate_name"] if check else None

        formatted = raw_transcript
        if raw_transcript:
            questions = await self.question_service.get_question_texts(row["reference_check_id"])
            try:
                formatted = (await self.formatter(raw_transcript, candidate_name, questions) or "").strip() or raw_transcript
            except Exception as e:
                logger.error(f"Transcript formatter failed for call {call_id}: {e}")
                formatted = raw_transcript

        recording_url = (record.artifact.recordingUrl if record.artifact else None) or record.recordingUrl
        duration = call_duration_seconds(record)

        finalized = await self.call_repo.finalize(
            call_id,
            status.value,
            vapi_call_id=record.id,
            transcript=formatted or None,
            duration_seconds=duration,
            recording_url=recording_url,
            ended_reason=ended_reason,
            error_message=ended_reason if status == CallStatus.FAILED else None,
        )
        if not finalized:
            logger.info(f"Call {call_id} was finalized by a concurrent delivery")
            return {"event": payload.type, "action": "duplicate", "scheduled_call_id": str(call_id)}

        logger.info(f"Call {call_id} ended: status={status.value}, reason={ended_reason}, duration={duration}s")

        if raw_transcript:
            await self.transcript_repo.create(call_id, raw_transcript, formatted, turns)

        await self._finish_reference(row, status)

        if status == CallStatus.COMPLETED:
            await self._notify(finalized, check, formatted)

        return {"event": payload.type, "action": status.value, "scheduled_call_id": str(call_id)}

    async def _handle_failed(self, row: asyncpg.Record, payload: VapiWebhookPayload) -> dict:
        reason = payload.call.endedReason or payload.endedReason or "call failed"
        finalized = await self.call_repo.finalize(
            row["id"],
            CallStatus.FAILED.value,
            vapi_call_id=payload.call.id,
            ended_reason=reason,
            error_message=reason,
        )
        if not finalized:
            return {"event": payload.type, "action": "duplicate", "scheduled_call_id": str(row["id"])}

        logger.info(f"Call {row['id']} failed: {reason}")
        await self._finish_reference(row, CallStatus.FAILED)
        return {"event": payload.type, "action": "failed", "scheduled_call_id": str(row["id"])}

    async def _notify(self, call: asyncpg.Record, check: Optional[asyncpg.Record], transcript: Optional[str]) -> None:
        recipient = (check["hiring_manager_email"] if check else None) or self.notification_email
        if not recipient:
            logger.warning(f"No notification recipient for call {call['id']}, email skipped")
            return

        result = await self.email_service.send_call_completed(
            to=recipient,
            reference_name=call["reference_name"],
            candidate_name=check["candidate_name"] if check else "the candidate",
            phone_number=call["phone_number"],
            duration_seconds=call["duration_seconds"],
            transcript=transcript or "No transcript was captured for this call.",
        )
        if not result.success:
            logger.error(f"Completion email for call {call['id']} failed: {result.error}")
