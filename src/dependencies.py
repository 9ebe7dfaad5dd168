"""
FastAPI dependency injection factories.

This module provides dependency factories for repositories, services,
and the external clients (VAPI, email, Gemini helpers) used across routers.
Tests swap any of these through app.dependency_overrides.
"""
import asyncpg
from fastapi import Depends

from src.database import get_db_pool
from src.repositories import (
    ReferenceCheckRepository,
    ReferenceContactRepository,
    QuestionRepository,
    ScheduledCallRepository,
    CallTranscriptRepository,
    ReferenceResponseRepository,
)
from src.services import (
    VapiService,
    get_vapi_service,
    EmailService,
    get_email_service,
    QuestionService,
    ReferenceCheckService,
    CallSchedulingService,
    CallDispatchService,
    CallWebhookService,
)
from src.services.question_service import QuestionGenerator
from src.services.call_webhook_service import TranscriptFormatter
from question_generator import generate_reference_questions
from transcript_formatter import format_transcript


# =============================================================================
# Database Dependencies
# =============================================================================

async def get_pool() -> asyncpg.Pool:
    """Get the database connection pool."""
    return await get_db_pool()


# =============================================================================
# Repository Dependencies
# =============================================================================

async def get_reference_check_repo(
    pool: asyncpg.Pool = Depends(get_pool)
) -> ReferenceCheckRepository:
    return ReferenceCheckRepository(pool)


async def get_reference_contact_repo(
    pool: asyncpg.Pool = Depends(get_pool)
) -> ReferenceContactRepository:
    return ReferenceContactRepository(pool)


async def get_question_repo(
    pool: asyncpg.Pool = Depends(get_pool)
) -> QuestionRepository:
    return QuestionRepository(pool)


async def get_scheduled_call_repo(
    pool: asyncpg.Pool = Depends(get_pool)
) -> ScheduledCallRepository:
    return ScheduledCallRepository(pool)


async def get_call_transcript_repo(
    pool: asyncpg.Pool = Depends(get_pool)
) -> CallTranscriptRepository:
    return CallTranscriptRepository(pool)


async def get_reference_response_repo(
    pool: asyncpg.Pool = Depends(get_pool)
) -> ReferenceResponseRepository:
    return ReferenceResponseRepository(pool)


# =============================================================================
# External Service Dependencies
# =============================================================================

def get_vapi() -> VapiService:
    """Get the VAPI service singleton."""
    return get_vapi_service()


def get_email() -> EmailService:
    """Get the email service singleton."""
    return get_email_service()


def get_question_generator() -> QuestionGenerator:
    return generate_reference_questions


def get_transcript_formatter() -> TranscriptFormatter:
    return format_transcript


# =============================================================================
# Service Dependencies
# =============================================================================

async def get_question_service(
    question_repo: QuestionRepository = Depends(get_question_repo),
    generator: QuestionGenerator = Depends(get_question_generator),
) -> QuestionService:
    """Get a QuestionService instance."""
    return QuestionService(question_repo, generator=generator)


async def get_reference_check_service(
    check_repo: ReferenceCheckRepository = Depends(get_reference_check_repo),
    contact_repo: ReferenceContactRepository = Depends(get_reference_contact_repo),
    call_repo: ScheduledCallRepository = Depends(get_scheduled_call_repo),
    question_service: QuestionService = Depends(get_question_service),
    email_service: EmailService = Depends(get_email),
    response_repo: ReferenceResponseRepository = Depends(get_reference_response_repo),
) -> ReferenceCheckService:
    """Get a ReferenceCheckService instance."""
    return ReferenceCheckService(check_repo, contact_repo, call_repo, question_service, email_service, response_repo)


async def get_call_scheduling_service(
    check_repo: ReferenceCheckRepository = Depends(get_reference_check_repo),
    contact_repo: ReferenceContactRepository = Depends(get_reference_contact_repo),
    call_repo: ScheduledCallRepository = Depends(get_scheduled_call_repo),
    question_service: QuestionService = Depends(get_question_service),
    vapi_service: VapiService = Depends(get_vapi),
) -> CallSchedulingService:
    """Get a CallSchedulingService instance."""
    return CallSchedulingService(check_repo, contact_repo, call_repo, question_service, vapi_service)


async def get_call_dispatch_service(
    call_repo: ScheduledCallRepository = Depends(get_scheduled_call_repo),
    contact_repo: ReferenceContactRepository = Depends(get_reference_contact_repo),
    check_repo: ReferenceCheckRepository = Depends(get_reference_check_repo),
    vapi_service: VapiService = Depends(get_vapi),
) -> CallDispatchService:
    """Get a CallDispatchService instance."""
    return CallDispatchService(call_repo, contact_repo, check_repo, vapi_service)


async def get_call_webhook_service(
    call_repo: ScheduledCallRepository = Depends(get_scheduled_call_repo),
    contact_repo: ReferenceContactRepository = Depends(get_reference_contact_repo),
    check_repo: ReferenceCheckRepository = Depends(get_reference_check_repo),
    transcript_repo: CallTranscriptRepository = Depends(get_call_transcript_repo),
    question_service: QuestionService = Depends(get_question_service),
    vapi_service: VapiService = Depends(get_vapi),
    email_service: EmailService = Depends(get_email),
    formatter: TranscriptFormatter = Depends(get_transcript_formatter),
) -> CallWebhookService:
    """Get a CallWebhookService instance."""
    return CallWebhookService(
        call_repo,
        contact_repo,
        check_repo,
        transcript_repo,
        question_service,
        vapi_service,
        email_service,
        formatter=formatter,
    )
