"""
Transaction repository.

Income ledger writes and aggregate queries.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import (
    INCOME_CREDIT_TYPES,
    TransactionStatus,
    TransactionType,
    WalletType,
)
from app.models.transaction import Transaction
from app.models.user import User
from app.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def credit_income(
        self,
        user: User,
        amount: Decimal,
        tx_type: TransactionType,
        description: str,
        reference: str | None = None,
    ) -> Transaction:
        """
        Credit a user's income wallet and append the ledger entry.

        The user row must already be locked by the caller's transaction.

        Args:
            user: Locked user
            amount: Positive amount to credit
            tx_type: Ledger entry type
            description: Human readable description
            reference: Optional idempotency key

        Returns:
            Created transaction
        """
        balance_before = user.income_balance
        balance_after = balance_before + amount

        user.income_balance = balance_after
        user.income_total_earned = user.income_total_earned + amount

        return await self.create(
            user_id=user.id,
            type=tx_type.value,
            wallet_type=WalletType.INCOME.value,
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_after,
            status=TransactionStatus.COMPLETED.value,
            description=description,
            reference=reference,
        )

    async def record_principal_deposit(
        self, user: User, amount: Decimal, description: str
    ) -> Transaction:
        """
        Add a stake's principal to the locked user's principal wallet.

        Args:
            user: Locked user
            amount: Stake amount
            description: Human readable description

        Returns:
            Created transaction
        """
        balance_before = user.principal_balance
        user.principal_balance = balance_before + amount

        return await self.create(
            user_id=user.id,
            type=TransactionType.DEPOSIT.value,
            wallet_type=WalletType.PRINCIPAL.value,
            amount=amount,
            balance_before=balance_before,
            balance_after=user.principal_balance,
            status=TransactionStatus.COMPLETED.value,
            description=description,
        )

    async def sum_income_credits(self, user_id: int) -> Decimal:
        """
        Sum all completed income credits of a user.

        Args:
            user_id: User ID

        Returns:
            Total credited to the income wallet
        """
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.user_id == user_id,
            Transaction.wallet_type == WalletType.INCOME.value,
            Transaction.status == TransactionStatus.COMPLETED.value,
            Transaction.type.in_([t.value for t in INCOME_CREDIT_TYPES]),
        )
        result = await self.session.execute(stmt)
        return Decimal(result.scalar() or 0)
