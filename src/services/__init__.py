"""
Service layer for business logic.
"""
from .vapi_service import VapiService, get_vapi_service
from .email_service import EmailService, EmailResult, get_email_service
from .question_service import QuestionService, build_question_set, standard_questions
from .call_scheduling_service import CallSchedulingService, build_scheduled_call_response
from .reference_check_service import ReferenceCheckService
from .call_dispatch_service import CallDispatchService
from .call_webhook_service import CallWebhookService, map_ended_reason, unwrap_payload

__all__ = [
    "VapiService",
    "get_vapi_service",
    "EmailService",
    "EmailResult",
    "get_email_service",
    "QuestionService",
    "build_question_set",
    "standard_questions",
    "CallSchedulingService",
    "build_scheduled_call_response",
    "ReferenceCheckService",
    "CallDispatchService",
    "CallWebhookService",
    "map_ended_reason",
    "unwrap_payload",
]
