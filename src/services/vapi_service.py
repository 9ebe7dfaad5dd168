"""
VAPI Service - Voice AI Platform Integration.

Creates one assistant per scheduled reference call, places outbound calls
with it when they are due, and fetches finished call records.
The VAPI SDK is synchronous, so every call runs in a worker thread.
"""
import asyncio
import json
import logging
from typing import Any, Optional

from src.config import (
    VAPI_API_KEY,
    VAPI_PHONE_NUMBER_ID,
    VAPI_SERVER_URL,
    VAPI_WEBHOOK_SECRET,
    VAPI_TIMEOUT_SECONDS,
)
from src.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

# Voice and model used by every reference check assistant
ASSISTANT_MODEL = {"provider": "openai", "model": "gpt-4o", "temperature": 0.7}
ASSISTANT_VOICE = {"provider": "11labs", "voiceId": "21m00Tcm4TlvDq8ikWAM"}

# Webhook events VAPI should send to our server
SERVER_MESSAGES = ["status-update", "end-of-call-report"]


def _to_dict(obj: Any) -> dict:
    """Convert an SDK response model into a JSON-compatible dict with API (camelCase) keys."""
    if isinstance(obj, dict):
        return obj
    if hasattr(obj, "model_dump_json"):
        return json.loads(obj.model_dump_json(by_alias=True, exclude_none=True))
    return json.loads(obj.json(by_alias=True, exclude_none=True))


class VapiService:
    """
    Service for interacting with VAPI voice AI platform.

    Settings are passed in explicitly so tests and scripts can construct
    their own instance; get_vapi_service() builds one from config.
    """

    def __init__(
        self,
        api_key: str = VAPI_API_KEY,
        phone_number_id: str = VAPI_PHONE_NUMBER_ID,
        server_url: str = VAPI_SERVER_URL,
        webhook_secret: str = VAPI_WEBHOOK_SECRET,
        timeout: float = VAPI_TIMEOUT_SECONDS,
    ):
        """Initialize VAPI client."""
        from vapi import Vapi

        if not api_key:
            raise RuntimeError("VAPI_API_KEY environment variable is required")
        if not phone_number_id:
            raise RuntimeError("VAPI_PHONE_NUMBER_ID environment variable is required")

        self.phone_number_id = phone_number_id
        self.server_url = server_url
        self.webhook_secret = webhook_secret
        self.client = Vapi(token=api_key, timeout=timeout)
        logger.info(f"VAPI service initialized with server_url={self.server_url}")

    async def create_assistant(self, name: str, system_prompt: str, first_message: str) -> str:
        """
        Create a reference check assistant.

        Args:
            name: Display name in the VAPI dashboard
            system_prompt: Full system prompt with questions embedded
            first_message: Opening line of the call

        Returns:
            str: VAPI assistant ID

        Raises:
            ExternalServiceError: If VAPI rejects the request or is unreachable
        """
        server = {"url": self.server_url, "timeoutSeconds": 20}
        if self.webhook_secret:
            server["secret"] = self.webhook_secret

        try:
            assistant = await asyncio.to_thread(
                self.client.assistants.create,
                name=name[:40],  # VAPI limits assistant names to 40 characters
                model={**ASSISTANT_MODEL, "messages": [{"role": "system", "content": system_prompt}]},
                voice=ASSISTANT_VOICE,
                first_message=first_message,
                server=server,
                server_messages=SERVER_MESSAGES,
                end_call_function_enabled=True,
            )
        except Exception as e:
            logger.error(f"VAPI assistant creation failed: {e}")
            raise ExternalServiceError("vapi", f"Failed to create VAPI assistant: {e}")

        logger.info(f"VAPI assistant created: {assistant.id}")
        return assistant.id

    async def delete_assistant(self, assistant_id: str) -> None:
        """Delete an assistant. Errors are logged, not raised."""
        try:
            await asyncio.to_thread(self.client.assistants.delete, assistant_id)
            logger.info(f"VAPI assistant deleted: {assistant_id}")
        except Exception as e:
            logger.warning(f"Failed to delete VAPI assistant {assistant_id}: {e}")

    async def place_call(self, assistant_id: str, to_number: str, customer_name: Optional[str] = None) -> str:
        """
        Place an outbound call with a previously created assistant.

        Args:
            assistant_id: VAPI assistant ID stored at scheduling time
            to_number: Phone number in E.164 format (e.g., "+14155550123")
            customer_name: Reference's name, shown in the VAPI dashboard

        Returns:
            str: VAPI call ID for correlation with webhooks

        Raises:
            ExternalServiceError: If VAPI API call fails
        """
        customer = {"number": to_number}
        if customer_name:
            customer["name"] = customer_name

        try:
            response = await asyncio.to_thread(
                self.client.calls.create,
                assistant_id=assistant_id,
                phone_number_id=self.phone_number_id,
                customer=customer,
            )
        except Exception as e:
            logger.error(f"VAPI call creation failed: {e}")
            raise ExternalServiceError("vapi", f"Failed to place VAPI call: {e}")

        # calls.create returns a single Call, or a batch wrapper for multi-customer requests
        call_id = getattr(response, "id", None)
        if call_id is None and getattr(response, "results", None):
            call_id = response.results[0].id
        if not call_id:
            raise ExternalServiceError("vapi", "VAPI did not return a call ID")

        logger.info(f"VAPI call placed: call_id={call_id}, assistant_id={assistant_id}")
        return call_id

    async def get_call(self, call_id: str) -> dict:
        """
        Fetch the authoritative call record.

        Returns:
            dict: Call record with VAPI's camelCase keys (status, endedReason,
                  startedAt, endedAt, artifact.messages, artifact.recordingUrl, ...)

        Raises:
            ExternalServiceError: If the call cannot be fetched
        """
        try:
            call = await asyncio.to_thread(self.client.calls.get, call_id)
        except Exception as e:
            logger.error(f"Failed to fetch VAPI call {call_id}: {e}")
            raise ExternalServiceError("vapi", f"Failed to fetch VAPI call: {e}")
        return _to_dict(call)


# Singleton instance for convenience
_vapi_service: Optional[VapiService] = None


def get_vapi_service() -> VapiService:
    """Get or create the VAPI service singleton."""
    global _vapi_service
    if _vapi_service is None:
        _vapi_service = VapiService()
    return _vapi_service
