"""
Email Service - transactional emails via the Resend HTTP API.

Sends reference invitations, candidate add-references requests and the
completed-call transcript to the hiring team. Sending never raises: every
method returns an EmailResult so callers can decide what a failure means.
"""
import html
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from src.config import APP_BASE_URL, EMAIL_FROM, EMAIL_TIMEOUT_SECONDS, RESEND_API_KEY

logger = logging.getLogger(__name__)

_WRAPPER_STYLE = "font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;"
_BUTTON_STYLE = (
    "background-color: #2563eb; color: white; padding: 15px 30px; "
    "text-decoration: none; border-radius: 8px; display: inline-block;"
)


@dataclass
class EmailResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def _button(link: str, label: str) -> str:
    return (
        '<div style="text-align: center; margin: 30px 0;">'
        f'<a href="{html.escape(link, quote=True)}" style="{_BUTTON_STYLE}">{label}</a>'
        "</div>"
    )


class EmailService:
    """
    Service for sending email through Resend.

    Uses a short-lived httpx client per send with a bounded timeout.
    """

    API_URL = "https://api.resend.com/emails"

    def __init__(
        self,
        api_key: str = RESEND_API_KEY,
        from_address: str = EMAIL_FROM,
        app_base_url: str = APP_BASE_URL,
        timeout: float = EMAIL_TIMEOUT_SECONDS,
    ):
        if not api_key:
            logger.warning("RESEND_API_KEY not set, emails will not be sent")
        self.api_key = api_key
        self.from_address = from_address
        self.app_base_url = app_base_url.rstrip("/")
        self.timeout = timeout

    async def send(self, to: str, subject: str, html_body: str) -> EmailResult:
        """
        Send a single email.

        Returns:
            EmailResult with the Resend message id on success
        """
        if not self.api_key:
            return EmailResult(success=False, error="Email is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.API_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "from": self.from_address,
                        "to": [to],
                        "subject": subject,
                        "html": html_body,
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"Email to {to} failed: {e}")
            return EmailResult(success=False, error=str(e))

        if response.status_code >= 400:
            logger.error(f"Email to {to} rejected: {response.status_code} - {response.text}")
            return EmailResult(success=False, error=f"Resend returned {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Email to {to} accepted without a JSON body")
            data = None
        message_id = data.get("id") if isinstance(data, dict) else None
        logger.info(f"Email sent to {to}: {message_id}")
        return EmailResult(success=True, message_id=message_id)

    async def send_reference_invitation(
        self,
        reference_id: str,
        reference_name: str,
        reference_email: str,
        candidate_name: str,
    ) -> EmailResult:
        """Invite a reference to give feedback on a candidate."""
        link = f"{self.app_base_url}/reference/{reference_id}"
        body = f"""
<div style="{_WRAPPER_STYLE}">
  <h2>Reference Check Request</h2>
  <p>Dear {html.escape(reference_name)},</p>
  <p>You've been selected as a reference for <strong>{html.escape(candidate_name)}</strong>
  for a position they're being considered for.</p>
  <p>We'd like to hear about your experience working with them. It takes about 10 minutes
  and can be done by phone at a time that suits you.</p>
  {_button(link, "Give Your Reference")}
  <p>Your responses are confidential and will only be shared with the hiring team.</p>
  <p>Best regards,<br>The VoiceRef Team</p>
</div>
"""
        return await self.send(reference_email, f"Reference Check Request for {candidate_name}", body)

    async def send_candidate_request(
        self,
        reference_check_id: str,
        candidate_name: str,
        candidate_email: str,
        position: str,
        company: str,
    ) -> EmailResult:
        """Ask the candidate to add their own references."""
        link = f"{self.app_base_url}/candidate/{reference_check_id}/add-references"
        body = f"""
<div style="{_WRAPPER_STYLE}">
  <h2>Please Add Your References</h2>
  <p>Dear {html.escape(candidate_name)},</p>
  <p>As part of your application for <strong>{html.escape(position)}</strong> at
  <strong>{html.escape(company)}</strong>, please provide at least two professional references.</p>
  {_button(link, "Add References")}
  <p>Best regards,<br>The VoiceRef Team</p>
</div>
"""
        return await self.send(candidate_email, f"Reference Request for {position} at {company}", body)

    async def send_call_completed(
        self,
        to: str,
        reference_name: str,
        candidate_name: str,
        phone_number: str,
        duration_seconds: Optional[int],
        transcript: str,
    ) -> EmailResult:
        """Send the formatted transcript of a finished reference call."""
        minutes = round((duration_seconds or 0) / 60)
        body = f"""
<div style="{_WRAPPER_STYLE}">
  <h2>Reference Check Completed</h2>
  <p><strong>Candidate:</strong> {html.escape(candidate_name)}</p>
  <p><strong>Reference:</strong> {html.escape(reference_name)}</p>
  <p><strong>Phone:</strong> {html.escape(phone_number)}</p>
  <p><strong>Duration:</strong> {minutes} minutes</p>
  <h3>Transcript:</h3>
  <div style="background: #f5f5f5; padding: 20px; border-radius: 8px; white-space: pre-wrap;">{html.escape(transcript)}</div>
</div>
"""
        return await self.send(to, f"Reference Check Completed - {reference_name}", body)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the email service singleton."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
