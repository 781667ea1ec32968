"""Integration tests for ledger reconciliation."""

from datetime import date
from decimal import Decimal

import pytest

from app.models import ReconciliationEntry
from app.services.reconciliation_service import ReconciliationService
from app.services.roi.daily_processor import DailyRoiProcessor


class TestReconciliation:
    """Test invariant checks over stakes and wallets."""

    @pytest.mark.asyncio
    async def test_clean_ledger_after_roi(self, factory, session, session_maker):
        user = await factory.user()
        await factory.stake(user)
        await DailyRoiProcessor(session_maker).run(date(2026, 3, 10))

        result = await ReconciliationService(session).run()

        assert result["success"] is True
        assert result["flagged"] == 0

    @pytest.mark.asyncio
    async def test_flags_inconsistencies(self, factory, session):
        drifted = await factory.user(income_total_earned=Decimal("100"))
        owner = await factory.user()
        stake = await factory.stake(owner, last_roi_paid_on=date(2026, 3, 9))

        result = await ReconciliationService(session).run()

        kinds = {(e["kind"], e["user_id"]) for e in result["entries"]}
        assert result["flagged"] == 2
        assert ("earned_mismatch", drifted.id) in kinds
        assert ("missing_payment_record", owner.id) in kinds

        entries = await factory.all(ReconciliationEntry, kind="missing_payment_record")
        assert entries[0].stake_id == stake.id
        assert entries[0].payment_date == date(2026, 3, 9)

    @pytest.mark.asyncio
    async def test_rerun_does_not_duplicate(self, factory, session):
        await factory.user(income_total_earned=Decimal("100"))

        await ReconciliationService(session).run()
        again = await ReconciliationService(session).run()

        assert again["flagged"] == 0
        assert len(await factory.all(ReconciliationEntry)) == 1
