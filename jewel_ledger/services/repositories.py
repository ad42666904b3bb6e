"""Thin async repositories over an explicitly passed ``AsyncSession``.

The aggregator and the payment workflow only ever talk to these.
"""

from typing import AsyncIterator, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jewel_ledger.models.account_model import Account
from jewel_ledger.models.customer_model import Customer
from jewel_ledger.models.ledger_entry_model import LedgerEntry


class CustomerRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, customer_id: int) -> Optional[Customer]:
        return await self.db.get(Customer, customer_id)

    async def find_by_ids(self, customer_ids) -> dict[int, Customer]:
        ids = list(customer_ids)
        if not ids:
            return {}
        rows = await self.db.scalars(select(Customer).where(Customer.customer_id.in_(ids)))
        return {c.customer_id: c for c in rows}


class AccountRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, account_id: int, fresh: bool = False) -> Optional[Account]:
        stmt = select(Account).where(Account.account_id == account_id)
        if fresh:
            stmt = stmt.execution_options(populate_existing=True)
        return (await self.db.scalars(stmt)).first()

    async def find_by_customer(self, customer_id: int) -> Sequence[Account]:
        rows = await self.db.scalars(
            select(Account)
            .where(Account.customer_id == customer_id)
            .order_by(Account.account_id.asc())
        )
        return rows.all()


class LedgerRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _history_stmt(customer_id: int, txn_types=None):
        # newest first; same timestamp keeps insertion order
        stmt = select(LedgerEntry).where(LedgerEntry.customer_id == customer_id)
        if txn_types:
            stmt = stmt.where(LedgerEntry.txn_type.in_(list(txn_types)))
        return stmt.order_by(LedgerEntry.txn_date.desc(), LedgerEntry.entry_id.asc())

    async def find_by_customer(self, customer_id: int, txn_types=None, limit=None, offset=0) -> Sequence[LedgerEntry]:
        stmt = self._history_stmt(customer_id, txn_types).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return (await self.db.scalars(stmt)).all()

    async def count_by_customer(self, customer_id: int, txn_types=None) -> int:
        stmt = select(func.count(LedgerEntry.entry_id)).where(LedgerEntry.customer_id == customer_id)
        if txn_types:
            stmt = stmt.where(LedgerEntry.txn_type.in_(list(txn_types)))
        return int(await self.db.scalar(stmt) or 0)

    async def referenced_account_ids(self, customer_id: int) -> set[int]:
        rows = await self.db.scalars(
            select(LedgerEntry.account_id)
            .where(LedgerEntry.customer_id == customer_id, LedgerEntry.account_id.is_not(None))
            .distinct()
        )
        return set(rows)

    async def iter_by_customer(self, customer_id: int, txn_types=None, batch_size: int = 50) -> AsyncIterator[LedgerEntry]:
        """Lazily walk a customer's history; each call starts from the top again."""
        offset = 0
        while True:
            batch = await self.find_by_customer(customer_id, txn_types, limit=batch_size, offset=offset)
            for entry in batch:
                yield entry
            if len(batch) < batch_size:
                return
            offset += batch_size

    def add(self, entry: LedgerEntry):
        self.db.add(entry)
