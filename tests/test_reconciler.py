"""Tests for webhook subscription reconciliation."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from roomhooks.repositories.subscription_repo import SubscriptionRepository
from roomhooks.services.reconciler import (
    LEDGER_WRITE_FAILED,
    RepositoryLocks,
    SubscriptionReconciler,
)

CALLBACK_URL = "https://chat.example.test/api/v1/github/webhook"

REPO = "acme/widgets"


@pytest.fixture
def ledger(db_session):
    return SubscriptionRepository(db_session)


@pytest.fixture
def reconciler(ledger, webhook_client):
    return SubscriptionReconciler(ledger, webhook_client, CALLBACK_URL)


async def _rows(ledger, repository=REPO):
    return await ledger.subscriptions_for_repository(repository, "U1")


async def test_first_subscription_creates_webhook_and_records(reconciler, ledger, webhook_client):
    result = await reconciler.reconcile(REPO, {"push", "pull_request"}, "R1", "U1", "tok")

    assert result.success
    assert result.remote_action == "create"
    assert result.webhook_id == "100"
    assert webhook_client.created == [(REPO, CALLBACK_URL, "tok", {"push", "pull_request"})]
    assert webhook_client.patched == []

    rows = await _rows(ledger)
    assert {(r.repository, r.event, r.webhook_id, r.room_id) for r in rows} == {
        (REPO, "push", "100", "R1"),
        (REPO, "pull_request", "100", "R1"),
    }
    assert all(r.user_id == "U1" for r in rows)


async def test_resubscribing_is_idempotent(reconciler, ledger, webhook_client):
    await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")
    second = await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")

    assert second.success
    assert second.remote_action == "none"
    assert second.webhook_id == "100"
    assert len(webhook_client.created) == 1
    assert webhook_client.patched == []

    rows = await _rows(ledger)
    assert [(r.room_id, r.event) for r in rows] == [("R1", "push")]


async def test_single_webhook_per_repository(reconciler, ledger, webhook_client):
    await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")
    await reconciler.reconcile(REPO, {"issues"}, "R2", "U2", "tok")
    await reconciler.reconcile(REPO, {"pull_request"}, "R1", "U1", "tok")

    assert len(webhook_client.created) == 1
    assert len(webhook_client.patched) == 2
    rows = await _rows(ledger)
    assert len(rows) == 3
    assert {r.webhook_id for r in rows} == {"100"}


async def test_patch_sends_full_union(reconciler, webhook_client):
    await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")
    result = await reconciler.reconcile(REPO, {"push", "issues"}, "R2", "U2", "tok2")

    assert result.remote_action == "patch"
    assert webhook_client.patched == [(REPO, "tok2", "100", {"push", "issues"})]


async def test_covered_events_skip_remote_call_but_still_record(reconciler, ledger, webhook_client):
    await reconciler.reconcile(REPO, {"push", "issues"}, "R1", "U1", "tok")
    result = await reconciler.reconcile(REPO, {"push"}, "R2", "U2", "tok")

    assert result.success
    assert result.remote_action == "none"
    assert len(webhook_client.created) == 1
    assert webhook_client.patched == []

    rows = await _rows(ledger)
    r2 = [r for r in rows if r.room_id == "R2"]
    assert [(r.event, r.webhook_id) for r in r2] == [("push", "100")]


async def test_event_names_are_case_sensitive(reconciler, webhook_client):
    await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")
    result = await reconciler.reconcile(REPO, {"Push"}, "R1", "U1", "tok")

    assert result.remote_action == "patch"
    assert webhook_client.patched[0][3] == {"push", "Push"}


async def test_repositories_are_independent(reconciler, webhook_client):
    await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")
    await reconciler.reconcile("acme/gadgets", {"push"}, "R1", "U1", "tok")

    assert [c[0] for c in webhook_client.created] == [REPO, "acme/gadgets"]


async def test_seeded_rows_without_webhook_id_skip_remote_call(reconciler, ledger, webhook_client):
    await ledger.record_subscription(REPO, "push", "", "R0", "U0")

    result = await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")

    assert result.success
    assert result.remote_action == "none"
    assert webhook_client.created == []
    assert webhook_client.patched == []


async def test_remote_failure_writes_nothing(reconciler, ledger, webhook_client):
    webhook_client.fail = True

    result = await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")

    assert not result.success
    assert result.remote_action == "create"
    assert "422" in result.error
    assert await _rows(ledger) == []


async def test_patch_failure_keeps_existing_records_only(reconciler, ledger, webhook_client):
    await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")
    webhook_client.fail = True

    result = await reconciler.reconcile(REPO, {"push", "issues"}, "R2", "U2", "tok")

    assert not result.success
    assert result.remote_action == "patch"
    rows = await _rows(ledger)
    assert [(r.room_id, r.event) for r in rows] == [("R1", "push")]


async def test_ledger_failure_after_remote_success_is_reported(reconciler, ledger, webhook_client):
    with patch.object(ledger, "record_subscription", AsyncMock(return_value=False)):
        result = await reconciler.reconcile(REPO, {"push", "issues"}, "R1", "U1", "tok")

    assert not result.success
    assert result.error == LEDGER_WRITE_FAILED
    assert result.webhook_id == "100"
    assert len(webhook_client.created) == 1
    assert await _rows(ledger) == []


async def test_ledger_read_failure_makes_no_remote_call(reconciler, ledger, webhook_client):
    failing_read = AsyncMock(side_effect=SQLAlchemyError("database is locked"))
    with patch.object(ledger, "subscriptions_for_repository", failing_read):
        result = await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")

    assert not result.success
    assert result.error == "Error reading existing subscriptions"
    assert result.remote_action == "none"
    assert webhook_client.created == []
    assert webhook_client.patched == []
    assert await _rows(ledger) == []


async def test_one_successful_write_is_enough(reconciler, ledger):
    real_record = ledger.record_subscription

    async def flaky(repository, event, webhook_id, room_id, user_id):
        if event == "issues":
            return False
        return await real_record(repository, event, webhook_id, room_id, user_id)

    with patch.object(ledger, "record_subscription", AsyncMock(side_effect=flaky)):
        result = await reconciler.reconcile(REPO, {"push", "issues"}, "R1", "U1", "tok")

    assert result.success
    assert result.recorded_events == ["push"]


async def test_events_missing_from_remote_response_are_not_recorded(reconciler, ledger, webhook_client):
    webhook_client.drop_events = {"issues"}

    result = await reconciler.reconcile(REPO, {"push", "issues"}, "R1", "U1", "tok")

    assert result.success
    assert result.recorded_events == ["push"]
    assert [r.event for r in await _rows(ledger)] == ["push"]


async def test_empty_desired_events_rejected(reconciler, webhook_client):
    with pytest.raises(ValueError):
        await reconciler.reconcile(REPO, set(), "R1", "U1", "tok")
    assert webhook_client.created == []


class MemoryLedger:
    """Ledger kept in a list so concurrent reconciliations need no shared session."""

    def __init__(self) -> None:
        self.rows: list[SimpleNamespace] = []

    async def subscriptions_for_repository(self, repository, user_id):
        await asyncio.sleep(0)
        return [r for r in self.rows if r.repository == repository]

    async def record_subscription(self, repository, event, webhook_id, room_id, user_id):
        await asyncio.sleep(0)
        self.rows.append(
            SimpleNamespace(
                repository=repository,
                event=event,
                webhook_id=webhook_id,
                room_id=room_id,
                user_id=user_id,
            )
        )
        return True


async def test_concurrent_subscriptions_share_one_webhook(webhook_client):
    original_create = webhook_client.create_webhook

    async def slow_create(*args):
        await asyncio.sleep(0.01)
        return await original_create(*args)

    webhook_client.create_webhook = slow_create
    ledger = MemoryLedger()
    reconciler = SubscriptionReconciler(ledger, webhook_client, CALLBACK_URL, RepositoryLocks())

    results = await asyncio.gather(
        reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok"),
        reconciler.reconcile(REPO, {"issues"}, "R2", "U2", "tok"),
    )

    assert all(r.success for r in results)
    assert len(webhook_client.created) == 1
    assert len(webhook_client.patched) == 1
    assert {r.webhook_id for r in ledger.rows} == {"100"}


async def test_locks_are_released_after_reconcile(ledger, webhook_client):
    locks = RepositoryLocks()
    reconciler = SubscriptionReconciler(ledger, webhook_client, CALLBACK_URL, locks)

    await reconciler.reconcile(REPO, {"push"}, "R1", "U1", "tok")
    webhook_client.fail = True
    for i in range(20):
        result = await reconciler.reconcile(f"nobody/repo{i}", {"push"}, "R1", "U1", "tok")
        assert not result.success

    assert len(locks) == 0


async def test_lock_is_kept_while_a_caller_waits():
    locks = RepositoryLocks()
    order = []

    async def worker(name):
        async with locks.hold(REPO):
            order.append(name)
            assert len(locks) == 1
            await asyncio.sleep(0)

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a", "b"]
    assert len(locks) == 0


async def test_lock_is_released_when_body_raises():
    locks = RepositoryLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold(REPO):
            raise RuntimeError("boom")

    assert len(locks) == 0
