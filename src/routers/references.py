"""
Reference-facing endpoints opened from the invitation email.
"""
from fastapi import APIRouter, Depends

from src.dependencies import get_reference_check_service
from src.exceptions import parse_uuid
from src.models import ReferencePortalResponse, SubmitResponsesRequest, SubmitResponsesResponse
from src.services import ReferenceCheckService

router = APIRouter(prefix="/references", tags=["References"])


@router.get("/{reference_id}", response_model=ReferencePortalResponse)
async def get_reference(
    reference_id: str,
    service: ReferenceCheckService = Depends(get_reference_check_service),
):
    """Candidate and question details for a reference. 410 once the reference is finished."""
    contact_uuid = parse_uuid(reference_id, field="reference_id")
    return await service.get_reference_for_contact(contact_uuid)


@router.post("/{reference_id}/responses", response_model=SubmitResponsesResponse, status_code=201)
async def submit_responses(
    reference_id: str,
    request: SubmitResponsesRequest,
    service: ReferenceCheckService = Depends(get_reference_check_service),
):
    """
    Submit written answers instead of taking a phone call.

    Errors:
    - 400: unknown or repeated question, no non-blank answer, call already scheduled
    - 404: unknown reference
    - 410: reference already finished
    """
    contact_uuid = parse_uuid(reference_id, field="reference_id")
    return await service.submit_responses(contact_uuid, request.responses)
