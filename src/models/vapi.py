"""
VAPI webhook payload models.

VAPI is a voice AI platform that places the automated reference calls.
These models define the structure of webhook events and of the call
records fetched back from the VAPI API.
"""
from typing import Any, Optional, List, Union
from pydantic import BaseModel


class VapiTranscriptMessage(BaseModel):
    """Single message in VAPI transcript."""
    role: str  # "user", "assistant", "bot", "system", "tool_calls", ...
    message: Optional[str] = None  # May be empty for some message types
    content: Optional[str] = None  # Alternative field name used by VAPI
    text: Optional[str] = None  # Used by older call records
    time: Optional[float] = None  # seconds into call
    endTime: Optional[float] = None
    secondsFromStart: Optional[float] = None

    @property
    def body(self) -> str:
        """Get message text from whichever field VAPI filled in."""
        return self.message or self.content or self.text or ""


class VapiArtifact(BaseModel):
    """Artifact containing transcript and recording info."""
    transcript: Optional[str] = None  # Full transcript text
    messages: Optional[List[VapiTranscriptMessage]] = None
    recordingUrl: Optional[str] = None
    stereoRecordingUrl: Optional[str] = None


class VapiCallObject(BaseModel):
    """VAPI call object, as included in webhooks or returned by GET /call/{id}."""
    id: str
    orgId: Optional[str] = None
    type: Optional[str] = None  # "outboundPhoneCall", "inboundPhoneCall", etc.
    status: Optional[str] = None  # "queued", "ringing", "in-progress", "ended"
    endedReason: Optional[str] = None
    phoneNumberId: Optional[str] = None
    assistantId: Optional[str] = None
    customer: Optional[dict] = None  # {"number": "+1234567890"}
    startedAt: Optional[Union[str, int, float]] = None  # ISO string or Unix ms
    endedAt: Optional[Union[str, int, float]] = None  # ISO string or Unix ms
    cost: Optional[float] = None
    # Duration fields - VAPI may send these directly
    durationSeconds: Optional[float] = None
    duration: Optional[float] = None
    recordingUrl: Optional[str] = None
    artifact: Optional[VapiArtifact] = None
    # Older call records carry the transcript at the top level
    transcript: Optional[Union[str, List[Any]]] = None
    messages: Optional[List[VapiTranscriptMessage]] = None


class VapiWebhookPayload(BaseModel):
    """Generic VAPI webhook payload - use type to determine specific structure.

    Event types handled:
    - call.started / call-started, or status-update with status "in-progress"
    - call.ended / call-ended / end-of-call-report
    - call.failed
    """
    type: Optional[str] = None
    call: Optional[VapiCallObject] = None
    artifact: Optional[VapiArtifact] = None
    endedReason: Optional[str] = None
    status: Optional[str] = None
    timestamp: Optional[Union[str, int, float]] = None  # Can be string or Unix ms
