"""
Enums for VoiceRef Backend API.
"""
from enum import Enum


class ReferenceCheckStatus(str, Enum):
    """Lifecycle of a candidate's overall reference check."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ReferenceContactStatus(str, Enum):
    PENDING = "pending"
    INVITATION_SENT = "invitation_sent"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    FAILED = "failed"


class CallStatus(str, Enum):
    """ScheduledCall status. Only moves forward; terminal states are final."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    NO_ANSWER = "no_answer"


class QuestionSource(str, Enum):
    STANDARD = "standard"
    AI_GENERATED = "ai_generated"


TERMINAL_CALL_STATUSES = frozenset({CallStatus.COMPLETED, CallStatus.FAILED, CallStatus.NO_ANSWER})
TERMINAL_CONTACT_STATUSES = frozenset({ReferenceContactStatus.COMPLETED, ReferenceContactStatus.FAILED})
