"""
VoiceRef Backend API Models.

This module re-exports all model classes for convenient importing.
"""

# Common models
from .common import PaginatedResponse

# Enums
from .enums import (
    ReferenceCheckStatus,
    ReferenceContactStatus,
    CallStatus,
    QuestionSource,
    TERMINAL_CALL_STATUSES,
    TERMINAL_CONTACT_STATUSES,
)

# Call scheduling models
from .call import (
    ScheduleCallRequest,
    ScheduleCallResponse,
    ScheduledCallResponse,
    DispatchItemResult,
    DispatchResponse,
)

# Reference check models
from .reference_check import (
    CandidateInput,
    ReferenceInput,
    CreateReferenceCheckRequest,
    CandidateRequestRequest,
    SubmitReferencesRequest,
    QuestionResponse,
    ReferenceAnswerResponse,
    ReferenceContactResponse,
    ReferenceCheckSummary,
    ReferenceCheckResponse,
    CreateReferenceCheckResponse,
    ReferencePortalResponse,
    PortalQuestion,
    ReferenceAnswerInput,
    SubmitResponsesRequest,
    SubmitResponsesResponse,
)

# VAPI webhook models
from .vapi import (
    VapiTranscriptMessage,
    VapiArtifact,
    VapiCallObject,
    VapiWebhookPayload,
)

__all__ = [
    "PaginatedResponse",
    "ReferenceCheckStatus",
    "ReferenceContactStatus",
    "CallStatus",
    "QuestionSource",
    "TERMINAL_CALL_STATUSES",
    "TERMINAL_CONTACT_STATUSES",
    "ScheduleCallRequest",
    "ScheduleCallResponse",
    "ScheduledCallResponse",
    "DispatchItemResult",
    "DispatchResponse",
    "CandidateInput",
    "ReferenceInput",
    "CreateReferenceCheckRequest",
    "CandidateRequestRequest",
    "SubmitReferencesRequest",
    "QuestionResponse",
    "ReferenceAnswerResponse",
    "ReferenceContactResponse",
    "ReferenceCheckSummary",
    "ReferenceCheckResponse",
    "CreateReferenceCheckResponse",
    "ReferencePortalResponse",
    "PortalQuestion",
    "ReferenceAnswerInput",
    "SubmitResponsesRequest",
    "SubmitResponsesResponse",
    "VapiTranscriptMessage",
    "VapiArtifact",
    "VapiCallObject",
    "VapiWebhookPayload",
]
