"""
Tests for the cron dispatcher that places due calls.

Run with: pytest tests/test_call_dispatch.py -v
"""
from datetime import datetime, timedelta, timezone

import httpx
import pytest

AUTH = {"Authorization": "Bearer test-cron-secret"}


def _at(minutes: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


class TestCronAuth:
    """Bearer secret on /cron/dispatch-calls"""

    @pytest.mark.asyncio
    async def test_missing_secret_rejected(self, client: httpx.AsyncClient, db, vapi, contact):
        db.add_call(contact, scheduled_time=_at(1))

        resp = await client.get("/cron/dispatch-calls")

        assert resp.status_code == 401
        assert vapi.placed == []

    @pytest.mark.asyncio
    async def test_wrong_secret_rejected(self, client: httpx.AsyncClient, vapi):
        resp = await client.post("/cron/dispatch-calls", headers={"Authorization": "Bearer nope"})

        assert resp.status_code == 401
        assert vapi.placed == []


class TestDispatchDueCalls:
    """GET/POST /cron/dispatch-calls"""

    @pytest.mark.asyncio
    async def test_nothing_due(self, client: httpx.AsyncClient, db, contact):
        db.add_call(contact, scheduled_time=_at(60))

        resp = await client.get("/cron/dispatch-calls", headers=AUTH)

        assert resp.status_code == 200
        data = resp.json()
        assert data["processed"] == 0
        assert data["message"] == "No calls to process"

    @pytest.mark.asyncio
    async def test_due_call_is_dispatched(self, client: httpx.AsyncClient, db, vapi, contact):
        call = db.add_call(contact, scheduled_time=_at(3))

        resp = await client.post("/cron/dispatch-calls", headers=AUTH)

        assert resp.status_code == 200
        data = resp.json()
        assert data["processed"] == 1
        assert data["successful"] == 1
        assert data["results"][0]["vapi_call_id"] == "call_1"

        row = db.calls[call["id"]]
        assert row["status"] == "in_progress"
        assert row["vapi_call_id"] == "call_1"
        assert row["dispatched_at"] is not None
        assert vapi.placed[0]["assistant_id"] == call["vapi_assistant_id"]
        assert vapi.placed[0]["to"] == call["phone_number"]

    @pytest.mark.asyncio
    async def test_overdue_call_is_dispatched(self, client: httpx.AsyncClient, db, vapi, contact):
        call = db.add_call(contact, scheduled_time=_at(-30))

        resp = await client.get("/cron/dispatch-calls", headers=AUTH)

        assert resp.json()["successful"] == 1
        assert db.calls[call["id"]]["status"] == "in_progress"

    @pytest.mark.asyncio
    async def test_call_outside_window_is_left_alone(self, client: httpx.AsyncClient, db, vapi, contact):
        call = db.add_call(contact, scheduled_time=_at(10))

        await client.get("/cron/dispatch-calls", headers=AUTH)

        assert db.calls[call["id"]]["status"] == "scheduled"
        assert vapi.placed == []

    @pytest.mark.asyncio
    async def test_repeated_scans_dispatch_once(self, client: httpx.AsyncClient, db, vapi, contact):
        db.add_call(contact, scheduled_time=_at(1))

        first = await client.get("/cron/dispatch-calls", headers=AUTH)
        second = await client.get("/cron/dispatch-calls", headers=AUTH)

        assert first.json()["successful"] == 1
        assert second.json()["processed"] == 0
        assert len(vapi.placed) == 1

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_others(self, client: httpx.AsyncClient, db, vapi, check, contact):
        other = db.add_contact(check["id"], name="Alice Jones", phone="+12015550124")
        good = db.add_call(contact, scheduled_time=_at(1))
        bad = db.add_call(other, scheduled_time=_at(2), phone_number="+12015550124")
        vapi.fail_numbers.add("+12015550124")

        resp = await client.get("/cron/dispatch-calls", headers=AUTH)

        data = resp.json()
        assert data["processed"] == 2
        assert data["successful"] == 1
        assert data["failed"] == 1

        assert db.calls[good["id"]]["status"] == "in_progress"
        assert db.calls[bad["id"]]["status"] == "failed"
        assert "invalid number" in db.calls[bad["id"]]["error_message"]
        assert db.contacts[other["id"]]["status"] == "failed"

    @pytest.mark.asyncio
    async def test_failed_call_is_not_retried(self, client: httpx.AsyncClient, db, vapi, contact):
        db.add_call(contact, scheduled_time=_at(1))
        vapi.fail_numbers.add(contact["phone"])

        await client.get("/cron/dispatch-calls", headers=AUTH)
        vapi.fail_numbers.clear()
        resp = await client.get("/cron/dispatch-calls", headers=AUTH)

        assert resp.json()["processed"] == 0
        assert vapi.placed == []


class TestConcurrentClaim:
    """Two scans that both listed the same due row."""

    @pytest.mark.asyncio
    async def test_second_claim_is_skipped(self, db, vapi, call_repo, dispatch_service, contact):
        db.add_call(contact, scheduled_time=_at(1))
        rows_seen_by_both = await call_repo.list_due(_at(5))

        first = await dispatch_service._dispatch_one(rows_seen_by_both[0])
        second = await dispatch_service._dispatch_one(rows_seen_by_both[0])

        assert first.success is True
        assert second.skipped is True
        assert len(vapi.placed) == 1
