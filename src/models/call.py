"""
Phone call scheduling and dispatch models.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from .enums import CallStatus


class ScheduleCallRequest(BaseModel):
    """Request model for scheduling an automated reference call."""
    reference_contact_id: str
    scheduled_time: datetime  # Must be in the future; naive values are treated as UTC
    phone_number: Optional[str] = None  # Defaults to the reference's stored phone
    custom_questions: list[str] = []
    include_job_description: bool = True  # Give the assistant job context


class ScheduleCallResponse(BaseModel):
    success: bool
    scheduled_call_id: str
    reference_check_id: str
    phone_number: str  # E.164
    scheduled_time: datetime
    status: CallStatus
    message: str


class ScheduledCallResponse(BaseModel):
    id: str
    reference_check_id: str
    reference_contact_id: str
    phone_number: str
    reference_name: str
    scheduled_time: datetime
    status: CallStatus
    vapi_call_id: Optional[str] = None
    duration_seconds: Optional[int] = None
    recording_url: Optional[str] = None
    transcript: Optional[str] = None
    ended_reason: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime


class DispatchItemResult(BaseModel):
    """Outcome of one dispatch attempt within a cron scan."""
    scheduled_call_id: str
    success: bool
    skipped: bool = False  # Another scan already claimed this call
    vapi_call_id: Optional[str] = None
    error: Optional[str] = None


class DispatchResponse(BaseModel):
    success: bool
    message: str
    processed: int
    successful: int
    failed: int
    skipped: int
    results: list[DispatchItemResult] = []
