"""
Reference check service - intake of candidates and their references.
"""
import logging
import uuid
from typing import Optional, Tuple

import asyncpg

from src.config import MIN_REFERENCES
from src.exceptions import GoneError, NotFoundError, ValidationError, parse_uuid
from src.models import (
    CandidateInput,
    CandidateRequestRequest,
    CreateReferenceCheckRequest,
    CreateReferenceCheckResponse,
    PortalQuestion,
    QuestionResponse,
    ReferenceAnswerInput,
    ReferenceAnswerResponse,
    ReferenceCheckResponse,
    ReferenceCheckStatus,
    ReferenceCheckSummary,
    ReferenceContactResponse,
    ReferenceContactStatus,
    ReferenceInput,
    ReferencePortalResponse,
    SubmitResponsesResponse,
    TERMINAL_CONTACT_STATUSES,
)
from src.repositories import (
    ReferenceCheckRepository,
    ReferenceContactRepository,
    ReferenceResponseRepository,
    ScheduledCallRepository,
)
from src.services.call_scheduling_service import build_scheduled_call_response
from src.services.email_service import EmailService
from src.services.question_service import QuestionService, build_question_set
from src.utils import to_e164

logger = logging.getLogger(__name__)


class ReferenceCheckService:
    """Service for creating reference checks and collecting references."""

    def __init__(
        self,
        check_repo: ReferenceCheckRepository,
        contact_repo: ReferenceContactRepository,
        call_repo: ScheduledCallRepository,
        question_service: QuestionService,
        email_service: EmailService,
        response_repo: ReferenceResponseRepository,
    ):
        self.check_repo = check_repo
        self.contact_repo = contact_repo
        self.call_repo = call_repo
        self.question_service = question_service
        self.email_service = email_service
        self.response_repo = response_repo

    # =========================================================================
    # Response builders
    # =========================================================================

    @staticmethod
    def build_summary(row: asyncpg.Record) -> ReferenceCheckSummary:
        return ReferenceCheckSummary(
            id=str(row["id"]),
            candidate_name=row["candidate_name"],
            candidate_email=row["candidate_email"],
            position=row["position"],
            company=row["company"],
            status=row["status"],
            created_at=row["created_at"],
            completed_at=row["completed_at"],
        )

    @staticmethod
    def build_contact_response(row: asyncpg.Record, responses: Optional[list[asyncpg.Record]] = None) -> ReferenceContactResponse:
        return ReferenceContactResponse(
            id=str(row["id"]),
            reference_check_id=str(row["reference_check_id"]),
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            relationship=row["relationship"],
            company=row["company"],
            status=row["status"],
            created_at=row["created_at"],
            completed_at=row["completed_at"],
            responses=[
                ReferenceAnswerResponse(
                    question_id=str(r["question_id"]),
                    question_text=r["question_text"],
                    response_text=r["response_text"],
                    created_at=r["created_at"],
                )
                for r in responses or []
            ],
        )

    @staticmethod
    def build_question_response(row: asyncpg.Record) -> QuestionResponse:
        return QuestionResponse(
            id=str(row["id"]),
            question_text=row["question_text"],
            category=row["category"],
            order_num=row["order_num"],
            source=row["source"],
        )

    # =========================================================================
    # Validation helpers
    # =========================================================================

    @staticmethod
    def _validate_candidate(candidate: CandidateInput) -> None:
        for field in ("name", "email", "position", "company"):
            if not getattr(candidate, field).strip():
                raise ValidationError(f"Candidate {field} is required", field=f"candidate.{field}")

    @staticmethod
    def _normalize_references(references: list[ReferenceInput]) -> list[ReferenceInput]:
        """Validate all references before anything is written."""
        normalized = []
        for i, ref in enumerate(references):
            if not ref.name.strip() or not ref.email.strip():
                raise ValidationError("Reference name and email are required", field=f"references[{i}]")
            phone = None
            if ref.phone and ref.phone.strip():
                try:
                    phone = to_e164(ref.phone)
                except ValueError as e:
                    raise ValidationError(str(e), field=f"references[{i}].phone")
            normalized.append(ref.model_copy(update={"phone": phone}))
        return normalized

    # =========================================================================
    # Operations
    # =========================================================================

    async def _add_reference(self, check: asyncpg.Record, ref: ReferenceInput) -> Tuple[str, bool]:
        """
        Store a reference and email them an invitation.

        Returns:
            Tuple of (contact id, whether the invitation was sent)
        """
        contact = await self.contact_repo.create(
            reference_check_id=check["id"],
            name=ref.name.strip(),
            email=ref.email.strip(),
            phone=ref.phone,
            relationship=ref.relationship,
            company=ref.company,
        )

        result = await self.email_service.send_reference_invitation(
            reference_id=str(contact["id"]),
            reference_name=contact["name"],
            reference_email=contact["email"],
            candidate_name=check["candidate_name"],
        )
        if result.success:
            await self.contact_repo.update_status(contact["id"], ReferenceContactStatus.INVITATION_SENT.value)
        else:
            logger.warning(f"Invitation to reference {contact['id']} not sent: {result.error}")

        return str(contact["id"]), result.success

    async def _create_check(self, candidate: CandidateInput, hiring_manager_email: Optional[str], generate_questions: bool) -> asyncpg.Record:
        check = await self.check_repo.create(
            candidate_name=candidate.name.strip(),
            candidate_email=candidate.email.strip(),
            position=candidate.position.strip(),
            company=candidate.company.strip(),
            job_description=candidate.job_description,
            hiring_manager_email=hiring_manager_email,
        )
        await self.question_service.create_question_set(
            check["id"],
            position=check["position"],
            job_description=check["job_description"],
            generate=generate_questions,
        )
        logger.info(f"Created reference check {check['id']} for {check['candidate_name']}")
        return check

    async def create_reference_check(self, request: CreateReferenceCheckRequest) -> CreateReferenceCheckResponse:
        """Create a check with its questions, store the given references and invite them."""
        self._validate_candidate(request.candidate)
        references = self._normalize_references(request.references)

        check = await self._create_check(request.candidate, request.hiring_manager_email, request.generate_questions)

        reference_ids = []
        invitations_sent = 0
        for ref in references:
            contact_id, invited = await self._add_reference(check, ref)
            reference_ids.append(contact_id)
            invitations_sent += int(invited)

        return CreateReferenceCheckResponse(
            success=True,
            reference_check_id=str(check["id"]),
            reference_ids=reference_ids,
            invitations_sent=invitations_sent,
            message=f"Reference check created with {len(reference_ids)} reference(s)",
        )

    async def create_candidate_request(self, request: CandidateRequestRequest) -> CreateReferenceCheckResponse:
        """Create a check and ask the candidate to add their own references."""
        self._validate_candidate(request.candidate)

        check = await self._create_check(request.candidate, request.hiring_manager_email, request.generate_questions)

        result = await self.email_service.send_candidate_request(
            reference_check_id=str(check["id"]),
            candidate_name=check["candidate_name"],
            candidate_email=check["candidate_email"],
            position=check["position"],
            company=check["company"],
        )
        if not result.success:
            logger.warning(f"Candidate request email for check {check['id']} not sent: {result.error}")

        return CreateReferenceCheckResponse(
            success=True,
            reference_check_id=str(check["id"]),
            invitations_sent=int(result.success),
            message="Candidate request sent" if result.success else "Reference check created, email not sent",
        )

    async def submit_references(self, check_id: uuid.UUID, references: list[ReferenceInput]) -> CreateReferenceCheckResponse:
        """References supplied by the candidate through their add-references link."""
        if len(references) < MIN_REFERENCES:
            raise ValidationError(f"At least {MIN_REFERENCES} references are required", field="references")

        check = await self.check_repo.get_by_id(check_id)
        if not check:
            raise NotFoundError("Reference check", str(check_id))
        if check["status"] == ReferenceCheckStatus.COMPLETED.value:
            raise GoneError("This reference check has already been completed")

        normalized = self._normalize_references(references)

        reference_ids = []
        invitations_sent = 0
        for ref in normalized:
            contact_id, invited = await self._add_reference(check, ref)
            reference_ids.append(contact_id)
            invitations_sent += int(invited)

        logger.info(f"Candidate submitted {len(reference_ids)} references for check {check_id}")
        return CreateReferenceCheckResponse(
            success=True,
            reference_check_id=str(check_id),
            reference_ids=reference_ids,
            invitations_sent=invitations_sent,
            message="References submitted successfully",
        )

    async def get_reference_check(self, check_id: uuid.UUID) -> ReferenceCheckResponse:
        """Get a check with its references, questions and calls."""
        check = await self.check_repo.get_by_id(check_id)
        if not check:
            raise NotFoundError("Reference check", str(check_id))

        contacts = await self.contact_repo.list_for_check(check_id)
        questions = await self.question_service.question_repo.list_for_check(check_id)
        calls = await self.call_repo.list_for_check(check_id)

        references = []
        for c in contacts:
            responses = None
            if c["status"] == ReferenceContactStatus.COMPLETED.value:
                responses = await self.response_repo.list_for_contact(c["id"])
            references.append(self.build_contact_response(c, responses))

        summary = self.build_summary(check)
        return ReferenceCheckResponse(
            **summary.model_dump(),
            job_description=check["job_description"],
            hiring_manager_email=check["hiring_manager_email"],
            references=references,
            questions=[self.build_question_response(q) for q in questions],
            calls=[build_scheduled_call_response(c) for c in calls],
        )

    async def list_reference_checks(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[list[ReferenceCheckSummary], int]:
        rows, total = await self.check_repo.list_checks(status, limit, offset)
        return [self.build_summary(row) for row in rows], total

    async def get_reference_for_contact(self, contact_id: uuid.UUID) -> ReferencePortalResponse:
        """
        What a reference sees when opening their invitation link.

        Raises:
            NotFoundError: Unknown reference
            GoneError: The reference already finished (link expired)
        """
        contact = await self.contact_repo.get_by_id(contact_id)
        if not contact:
            raise NotFoundError("Reference", str(contact_id))
        if ReferenceContactStatus(contact["status"]) in TERMINAL_CONTACT_STATUSES:
            raise GoneError("This reference link has expired")

        check = await self.check_repo.get_by_id(contact["reference_check_id"])
        if not check:
            raise NotFoundError("Reference check", str(contact["reference_check_id"]))

        stored = await self.question_service.question_repo.list_for_check(check["id"])
        return ReferencePortalResponse(
            reference_id=str(contact["id"]),
            reference_name=contact["name"],
            candidate_name=check["candidate_name"],
            position=check["position"],
            company=check["company"],
            status=contact["status"],
            questions=build_question_set(stored),
            question_set=[PortalQuestion(id=str(q["id"]), question_text=q["question_text"]) for q in stored],
        )

    async def submit_responses(self, contact_id: uuid.UUID, answers: list[ReferenceAnswerInput]) -> SubmitResponsesResponse:
        """
        Written answers from a reference, the email alternative to a phone call.

        Stores the answers, marks the reference completed and completes the
        check once every reference is finished.

        Raises:
            NotFoundError: Unknown reference
            GoneError: The reference already finished (link expired)
            ValidationError: Unknown or repeated question, no non-blank answer,
                or a phone call is already scheduled for the reference
        """
        contact = await self.contact_repo.get_by_id(contact_id)
        if not contact:
            raise NotFoundError("Reference", str(contact_id))
        if ReferenceContactStatus(contact["status"]) in TERMINAL_CONTACT_STATUSES:
            raise GoneError("This reference link has expired")

        check_id = contact["reference_check_id"]
        question_ids = {q["id"] for q in await self.question_service.question_repo.list_for_check(check_id)}

        pairs = []
        seen = set()
        for i, answer in enumerate(answers):
            question_id = parse_uuid(answer.question_id, field=f"responses[{i}].question_id")
            if question_id not in question_ids:
                raise ValidationError("Question does not belong to this reference check", field=f"responses[{i}].question_id")
            if question_id in seen:
                raise ValidationError("Question answered more than once", field=f"responses[{i}].question_id")
            seen.add(question_id)
            if answer.response_text.strip():
                pairs.append((question_id, answer.response_text.strip()))

        if not pairs:
            raise ValidationError("At least one answer is required", field="responses")

        active = await self.call_repo.get_active_for_contact(contact_id)
        if active:
            raise ValidationError(
                f"Reference already has a {active['status']} call",
                field="reference_id",
                details={"scheduled_call_id": str(active["id"])},
            )

        saved = await self.response_repo.submit(contact_id, pairs)
        if saved is None:
            raise GoneError("This reference link has expired")

        check_completed = await self.check_repo.complete_if_all_references_done(check_id)
        logger.info(f"Reference {contact_id} submitted {saved} written answer(s) for check {check_id}")
        return SubmitResponsesResponse(
            success=True,
            reference_id=str(contact_id),
            reference_check_id=str(check_id),
            responses_saved=saved,
            check_completed=check_completed,
            message="Thank you, your answers have been submitted",
        )
