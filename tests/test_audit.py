"""Tests for the audit logger."""

from uuid import uuid4

import pytest

from javali.audit import AuditLogger
from javali.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from javali.services.storage import InMemoryAuditStorage

from tests.conftest import FailingAuditStorage


class TestAuditLogger:

    @pytest.mark.asyncio
    async def test_persists_event(self, audit_storage):
        logger = AuditLogger(audit_storage)

        assert await logger.log(AuditEventBuilder.preferences_saved("u1")) is True
        assert [e.event_type for e in audit_storage.events] == [
            AuditEventType.PREFERENCES_SAVED,
        ]

    @pytest.mark.asyncio
    async def test_local_only_logger(self):
        logger = AuditLogger()
        assert await logger.log(AuditEventBuilder.preferences_saved("u1")) is True

    @pytest.mark.asyncio
    async def test_storage_failure_is_not_raised(self):
        logger = AuditLogger(FailingAuditStorage())
        assert await logger.log(AuditEventBuilder.preferences_saved("u1")) is False

    @pytest.mark.asyncio
    async def test_default_user_is_stamped(self, audit_storage):
        logger = AuditLogger(audit_storage, user_id="u1")

        await logger.log_goal_completed(uuid4(), "Trip")
        await logger.log_session_started("u2", "s1")

        assert [e.user_id for e in audit_storage.events] == ["u1", "u2"]

    @pytest.mark.asyncio
    async def test_goal_movements(self, audit_storage):
        logger = AuditLogger(audit_storage)
        goal_id = uuid4()

        await logger.log_goal_movement(goal_id, 100, 300, 50)
        await logger.log_goal_movement(goal_id, 100, 200, 67, withdrawal=True)

        deposit, withdrawal = audit_storage.events
        assert deposit.event_type == AuditEventType.GOAL_DEPOSIT
        assert deposit.details["current_amount"] == "300"
        assert withdrawal.event_type == AuditEventType.GOAL_WITHDRAWAL
        assert withdrawal.severity == AuditSeverity.WARNING

    @pytest.mark.asyncio
    async def test_recent_events_newest_first(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        await logger.log_storage_error("save goal", "boom")
        await logger.log_completion_error("gemini", "quota", transient=True)

        recent = await storage.get_recent_events(limit=1)
        assert len(recent) == 1
        assert recent[0].severity == AuditSeverity.ERROR
