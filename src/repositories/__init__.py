"""
Repository layer for data access.
"""
from .reference_check_repo import ReferenceCheckRepository
from .reference_contact_repo import ReferenceContactRepository
from .question_repo import QuestionRepository
from .scheduled_call_repo import ScheduledCallRepository
from .call_transcript_repo import CallTranscriptRepository
from .reference_response_repo import ReferenceResponseRepository

__all__ = [
    "ReferenceCheckRepository",
    "ReferenceContactRepository",
    "QuestionRepository",
    "ScheduledCallRepository",
    "CallTranscriptRepository",
    "ReferenceResponseRepository",
]
