"""
Reference check endpoints - recruiter intake and candidate reference submission.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.dependencies import get_reference_check_service
from src.exceptions import parse_uuid
from src.models import (
    CandidateRequestRequest,
    CreateReferenceCheckRequest,
    CreateReferenceCheckResponse,
    PaginatedResponse,
    ReferenceCheckResponse,
    ReferenceCheckStatus,
    ReferenceCheckSummary,
    SubmitReferencesRequest,
)
from src.services import ReferenceCheckService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reference-checks", tags=["Reference Checks"])


@router.post("", response_model=CreateReferenceCheckResponse, status_code=201)
async def create_reference_check(
    request: CreateReferenceCheckRequest,
    service: ReferenceCheckService = Depends(get_reference_check_service),
):
    """Create a reference check, store its references and email them invitations."""
    return await service.create_reference_check(request)


@router.post("/candidate-request", response_model=CreateReferenceCheckResponse, status_code=201)
async def create_candidate_request(
    request: CandidateRequestRequest,
    service: ReferenceCheckService = Depends(get_reference_check_service),
):
    """Create a reference check and email the candidate a link to add their references."""
    return await service.create_candidate_request(request)


@router.get("", response_model=PaginatedResponse[ReferenceCheckSummary])
async def list_reference_checks(
    status: Optional[ReferenceCheckStatus] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ReferenceCheckService = Depends(get_reference_check_service),
):
    items, total = await service.list_reference_checks(
        status=status.value if status else None,
        limit=limit,
        offset=offset,
    )
    return PaginatedResponse(items=items, total=total, limit=limit, offset=offset)


@router.get("/{check_id}", response_model=ReferenceCheckResponse)
async def get_reference_check(
    check_id: str,
    service: ReferenceCheckService = Depends(get_reference_check_service),
):
    """Get a reference check with its references, questions and calls."""
    check_uuid = parse_uuid(check_id, field="reference_check_id")
    return await service.get_reference_check(check_uuid)


@router.post("/{check_id}/references", response_model=CreateReferenceCheckResponse)
async def submit_references(
    check_id: str,
    request: SubmitReferencesRequest,
    service: ReferenceCheckService = Depends(get_reference_check_service),
):
    """
    Candidate submits their references.

    Returns 410 when the reference check is already completed.
    """
    check_uuid = parse_uuid(check_id, field="reference_check_id")
    return await service.submit_references(check_uuid, request.references)
