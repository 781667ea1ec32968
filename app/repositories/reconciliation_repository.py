"""
Reconciliation repository.

Data access layer for ReconciliationEntry model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reconciliation_entry import ReconciliationEntry
from app.repositories.base import BaseRepository


class ReconciliationRepository(BaseRepository[ReconciliationEntry]):
    """Reconciliation entry repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reconciliation repository."""
        super().__init__(ReconciliationEntry, session)

    async def is_flagged(self, kind: str, **filters) -> bool:
        """Check whether an unresolved entry of a kind already exists."""
        return await self.exists(kind=kind, resolved=False, **filters)
