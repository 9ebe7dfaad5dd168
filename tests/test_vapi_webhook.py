"""
Tests for the VAPI webhook that tracks call status.

Run with: pytest tests/test_vapi_webhook.py -v
"""
import asyncio

import httpx
import pytest

from app import app
from src import dependencies

HEADERS = {"X-Vapi-Secret": "test-webhook-secret"}

RAW_TRANSCRIPT = "AI: Hi, am I speaking with Bob?\n\nReference: Yes, this is Bob."


def _call_record(call_id: str, ended_reason: str = "customer-ended-call") -> dict:
    return {
        "id": call_id,
        "status": "ended",
        "endedReason": ended_reason,
        "startedAt": "2026-01-05T10:00:00.000Z",
        "endedAt": "2026-01-05T10:05:30.000Z",
        "artifact": {
            "messages": [
                {"role": "system", "message": "You are conducting a reference check..."},
                {"role": "bot", "message": "Hi, am I speaking with Bob?", "secondsFromStart": 0.4},
                {"role": "user", "message": "Yes, this is Bob.", "secondsFromStart": 3.1},
            ],
            "recordingUrl": "https://storage.vapi.ai/recording.wav",
        },
    }


def _ended_event(call_id: str, **extra) -> dict:
    return {"message": {"type": "end-of-call-report", "call": {"id": call_id}, **extra}}


@pytest.fixture
def live_call(db, contact):
    """A dispatched call VAPI knows as call_abc."""
    db.contacts[contact["id"]]["status"] = "scheduled"
    return db.add_call(contact, status="in_progress", vapi_call_id="call_abc")


class TestWebhookAuth:

    @pytest.mark.asyncio
    async def test_invalid_secret_rejected_without_changes(self, client: httpx.AsyncClient, db, vapi, live_call):
        vapi.call_records["call_abc"] = _call_record("call_abc")

        resp = await client.post("/vapi/events", json=_ended_event("call_abc"), headers={"X-Vapi-Secret": "wrong"})

        assert resp.status_code == 401
        assert db.writes == 0
        assert db.calls[live_call["id"]]["status"] == "in_progress"

    @pytest.mark.asyncio
    async def test_missing_secret_rejected(self, client: httpx.AsyncClient, db, live_call):
        resp = await client.post("/vapi/events", json=_ended_event("call_abc"))

        assert resp.status_code == 401
        assert db.writes == 0


class TestCallEnded:

    @pytest.mark.asyncio
    async def test_call_ended_completes_call(self, client: httpx.AsyncClient, db, vapi, email, formatter, check, contact, live_call):
        vapi.call_records["call_abc"] = _call_record("call_abc")

        resp = await client.post("/vapi/events", json=_ended_event("call_abc"), headers=HEADERS)

        assert resp.status_code == 200
        assert resp.json()["action"] == "completed"

        row = db.calls[live_call["id"]]
        assert row["status"] == "completed"
        assert row["duration_seconds"] == 330
        assert row["recording_url"] == "https://storage.vapi.ai/recording.wav"
        assert row["transcript"] == formatter.result
        assert row["ended_reason"] == "customer-ended-call"

        stored = db.transcripts[live_call["id"]]
        assert stored["raw_transcript"] == RAW_TRANSCRIPT
        assert stored["formatted_transcript"] == formatter.result
        assert [t["role"] for t in stored["turns"]] == ["assistant", "reference"]

        assert db.contacts[contact["id"]]["status"] == "completed"
        assert db.checks[check["id"]]["status"] == "completed"

        assert len(email.sent) == 1
        assert email.sent[0]["to"] == "hm@acme.com"
        assert "I managed her for two years." in email.sent[0]["html"]

    @pytest.mark.asyncio
    async def test_duplicate_delivery_sends_one_email(self, client: httpx.AsyncClient, db, vapi, email, live_call):
        vapi.call_records["call_abc"] = _call_record("call_abc")

        first = await client.post("/vapi/events", json=_ended_event("call_abc"), headers=HEADERS)
        second = await client.post("/vapi/events", json=_ended_event("call_abc"), headers=HEADERS)

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["action"] == "duplicate"
        assert len(email.sent) == 1
        assert len(db.transcripts) == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_send_one_email(self, client: httpx.AsyncClient, db, vapi, email, live_call):
        vapi.call_records["call_abc"] = _call_record("call_abc")

        responses = await asyncio.gather(*[
            client.post("/vapi/events", json=_ended_event("call_abc"), headers=HEADERS)
            for _ in range(3)
        ])

        assert all(r.status_code == 200 for r in responses)
        assert len(email.sent) == 1
        assert db.calls[live_call["id"]]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_formatter_failure_keeps_raw_transcript(self, client: httpx.AsyncClient, db, vapi, formatter, live_call):
        vapi.call_records["call_abc"] = _call_record("call_abc")
        formatter.error = RuntimeError("Gemini unavailable")

        resp = await client.post("/vapi/events", json=_ended_event("call_abc"), headers=HEADERS)

        assert resp.status_code == 200
        assert db.calls[live_call["id"]]["transcript"] == RAW_TRANSCRIPT
        assert db.transcripts[live_call["id"]]["formatted_transcript"] == RAW_TRANSCRIPT

    @pytest.mark.asyncio
    async def test_empty_formatter_output_keeps_raw_transcript(self, client: httpx.AsyncClient, db, vapi, formatter, live_call):
        vapi.call_records["call_abc"] = _call_record("call_abc")
        formatter.result = "   "

        await client.post("/vapi/events", json=_ended_event("call_abc"), headers=HEADERS)

        assert db.calls[live_call["id"]]["transcript"] == RAW_TRANSCRIPT

    @pytest.mark.asyncio
    async def test_payload_used_when_fetch_fails(self, client: httpx.AsyncClient, db, vapi, live_call):
        vapi.fail_get_call = True
        record = _call_record("call_abc")

        resp = await client.post(
            "/vapi/events",
            json=_ended_event("call_abc", endedReason="customer-ended-call", artifact=record["artifact"]),
            headers=HEADERS,
        )

        assert resp.status_code == 200
        row = db.calls[live_call["id"]]
        assert row["status"] == "completed"
        assert db.transcripts[live_call["id"]]["raw_transcript"] == RAW_TRANSCRIPT

    @pytest.mark.asyncio
    async def test_no_answer(self, client: httpx.AsyncClient, db, vapi, email, contact, live_call):
        record = _call_record("call_abc", ended_reason="customer-did-not-answer")
        record["artifact"]["messages"] = []
        vapi.call_records["call_abc"] = record

        resp = await client.post("/vapi/events", json=_ended_event("call_abc"), headers=HEADERS)

        assert resp.json()["action"] == "no_answer"
        assert db.calls[live_call["id"]]["status"] == "no_answer"
        assert db.contacts[contact["id"]]["status"] == "failed"
        assert db.transcripts == {}
        assert email.sent == []

    @pytest.mark.asyncio
    async def test_unknown_call_is_acknowledged_without_writes(self, client: httpx.AsyncClient, db, vapi, email, live_call):
        vapi.call_records["call_zzz"] = _call_record("call_zzz")

        resp = await client.post("/vapi/events", json=_ended_event("call_zzz"), headers=HEADERS)

        assert resp.status_code == 200
        assert resp.json()["action"] == "unknown_call"
        assert db.writes == 0
        assert email.sent == []

    @pytest.mark.asyncio
    async def test_terminal_call_is_never_reopened(self, client: httpx.AsyncClient, db, contact):
        call = db.add_call(contact, status="failed", vapi_call_id="call_old")

        started = await client.post(
            "/vapi/events",
            json={"type": "call.started", "call": {"id": "call_old"}},
            headers=HEADERS,
        )

        assert started.status_code == 200
        assert db.calls[call["id"]]["status"] == "failed"


class TestCallStartedAndFailed:

    @pytest.mark.asyncio
    async def test_status_update_in_progress_marks_started(self, client: httpx.AsyncClient, db, contact):
        call = db.add_call(contact, status="scheduled")

        resp = await client.post(
            "/vapi/events",
            json={"message": {
                "type": "status-update",
                "status": "in-progress",
                "call": {"id": "call_new", "assistantId": call["vapi_assistant_id"]},
            }},
            headers=HEADERS,
        )

        assert resp.status_code == 200
        row = db.calls[call["id"]]
        assert row["status"] == "in_progress"
        assert row["vapi_call_id"] == "call_new"
        assert row["started_at"] is not None

    @pytest.mark.asyncio
    async def test_call_failed(self, client: httpx.AsyncClient, db, check, contact, live_call):
        resp = await client.post(
            "/vapi/events",
            json={"type": "call.failed", "call": {"id": "call_abc", "endedReason": "twilio-failed-to-connect-call"}},
            headers=HEADERS,
        )

        assert resp.status_code == 200
        row = db.calls[live_call["id"]]
        assert row["status"] == "failed"
        assert row["error_message"] == "twilio-failed-to-connect-call"
        assert db.contacts[contact["id"]]["status"] == "failed"
        assert db.checks[check["id"]]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_other_events_are_ignored(self, client: httpx.AsyncClient, db, live_call):
        resp = await client.post(
            "/vapi/events",
            json={"message": {"type": "transcript", "call": {"id": "call_abc"}}},
            headers=HEADERS,
        )

        assert resp.status_code == 200
        assert resp.json()["action"] == "ignored"
        assert db.writes == 0


class TestAlwaysAcknowledge:

    @pytest.mark.asyncio
    async def test_malformed_json_is_acknowledged(self, client: httpx.AsyncClient):
        resp = await client.post(
            "/vapi/events",
            content=b"{not json",
            headers={**HEADERS, "Content-Type": "application/json"},
        )

        assert resp.status_code == 200
        assert resp.json()["received"] is True

    @pytest.mark.asyncio
    async def test_processing_error_is_acknowledged(self, client: httpx.AsyncClient, db):
        resp = await client.post(
            "/vapi/events",
            json={"type": "call.ended", "call": "not-an-object"},
            headers=HEADERS,
        )

        assert resp.status_code == 200
        assert resp.json()["action"] == "error"
        assert db.writes == 0

    @pytest.mark.asyncio
    async def test_unavailable_vapi_client_is_acknowledged(self, client: httpx.AsyncClient, db, live_call):
        def missing_vapi_settings():
            raise RuntimeError("VAPI_API_KEY environment variable is required")

        app.dependency_overrides[dependencies.get_vapi] = missing_vapi_settings

        resp = await client.post("/vapi/events", json=_ended_event("call_abc"), headers=HEADERS)

        assert resp.status_code == 200
        assert resp.json() == {"received": True, "action": "error"}
        assert db.writes == 0

    @pytest.mark.asyncio
    async def test_bad_secret_still_rejected_when_vapi_unavailable(self, client: httpx.AsyncClient, db, live_call):
        def missing_vapi_settings():
            raise RuntimeError("VAPI_API_KEY environment variable is required")

        app.dependency_overrides[dependencies.get_vapi] = missing_vapi_settings

        resp = await client.post("/vapi/events", json=_ended_event("call_abc"), headers={"X-Vapi-Secret": "wrong"})

        assert resp.status_code == 401
