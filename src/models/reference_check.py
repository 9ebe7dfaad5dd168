"""
Reference check intake models (candidate, references, questions).
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from .enums import ReferenceCheckStatus, ReferenceContactStatus, QuestionSource
from .call import ScheduledCallResponse


class CandidateInput(BaseModel):
    """Candidate and job details submitted by the recruiter."""
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    position: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    job_description: Optional[str] = None


class ReferenceInput(BaseModel):
    """A single reference supplied by the recruiter or the candidate."""
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None  # Normalized to E.164 on intake when present
    relationship: Optional[str] = None  # e.g. "Former manager"
    company: Optional[str] = None


class CreateReferenceCheckRequest(BaseModel):
    """Request model for creating a reference check with references up front."""
    candidate: CandidateInput
    hiring_manager_email: Optional[str] = None  # Receives completed transcripts
    references: list[ReferenceInput] = []
    generate_questions: bool = True  # Add AI-generated questions from the job description


class CandidateRequestRequest(BaseModel):
    """Request model for asking the candidate to supply their own references."""
    candidate: CandidateInput
    hiring_manager_email: Optional[str] = None
    generate_questions: bool = True


class SubmitReferencesRequest(BaseModel):
    """References submitted by the candidate through the add-references link."""
    references: list[ReferenceInput]


class QuestionResponse(BaseModel):
    id: str
    question_text: str
    category: str
    order_num: int
    source: QuestionSource


class ReferenceAnswerResponse(BaseModel):
    question_id: str
    question_text: str
    response_text: str
    created_at: datetime


class ReferenceContactResponse(BaseModel):
    id: str
    reference_check_id: str
    name: str
    email: str
    phone: Optional[str] = None
    relationship: Optional[str] = None
    company: Optional[str] = None
    status: ReferenceContactStatus
    created_at: datetime
    completed_at: Optional[datetime] = None
    responses: list[ReferenceAnswerResponse] = []  # Written answers, when given


class ReferenceCheckSummary(BaseModel):
    id: str
    candidate_name: str
    candidate_email: str
    position: str
    company: str
    status: ReferenceCheckStatus
    created_at: datetime
    completed_at: Optional[datetime] = None


class ReferenceCheckResponse(ReferenceCheckSummary):
    """Full reference check with its references, questions and calls."""
    job_description: Optional[str] = None
    hiring_manager_email: Optional[str] = None
    references: list[ReferenceContactResponse] = []
    questions: list[QuestionResponse] = []
    calls: list[ScheduledCallResponse] = []


class CreateReferenceCheckResponse(BaseModel):
    success: bool
    reference_check_id: str
    reference_ids: list[str] = []
    invitations_sent: int = 0
    message: str


class PortalQuestion(BaseModel):
    id: str
    question_text: str


class ReferencePortalResponse(BaseModel):
    """What a reference sees when opening their invitation link."""
    reference_id: str
    reference_name: str
    candidate_name: str
    position: str
    company: str
    status: ReferenceContactStatus
    questions: list[str]
    question_set: list[PortalQuestion] = []  # Stored questions with the ids written answers refer to


class ReferenceAnswerInput(BaseModel):
    """A written answer to one question of the check."""
    question_id: str
    response_text: str


class SubmitResponsesRequest(BaseModel):
    """Written answers submitted by a reference through their invitation link."""
    responses: list[ReferenceAnswerInput] = Field(..., min_length=1)


class SubmitResponsesResponse(BaseModel):
    success: bool
    reference_id: str
    reference_check_id: str
    responses_saved: int
    check_completed: bool
    message: str
