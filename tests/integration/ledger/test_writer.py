"""TransactionWriter 통합 테스트"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger.errors import ValidationError
from core.ledger.models import TransactionInput
from core.ledger.store import LedgerStore
from core.ledger.types import Account, LedgerEntryType
from core.ledger.writer import TransactionWriter


def expense(amount: str = "100", date: str = "2025-01-05", account: str = "cash") -> TransactionInput:
    return TransactionInput.from_dict(
        {"date": date, "kind": "expense", "amount": amount, "account": account}
    )


@pytest.fixture
def writer(db: SQLiteAdapter, ledger_config: LedgerConfig) -> TransactionWriter:
    return TransactionWriter(db, ledger_config)


@pytest.fixture
def store(db: SQLiteAdapter) -> LedgerStore:
    return LedgerStore(db)


class TestTransactionWriterCreate:
    """거래 생성 테스트"""

    @pytest.mark.asyncio
    async def test_persists_transaction(self, writer: TransactionWriter, store: LedgerStore) -> None:
        txn = await writer.create(expense())

        stored = await store.get_transaction(txn.id)
        assert stored.amount == Decimal("100")
        assert stored.sequence_number == "2025-00001"
        assert stored.created_at is not None
        assert stored.voided is False

    @pytest.mark.asyncio
    async def test_writes_provisional_entry_and_balance(
        self, writer: TransactionWriter, store: LedgerStore
    ) -> None:
        """임시 원장 항목 + 임시 잔액"""
        txn = await writer.create(expense())

        entries = await store.get_entries_for_transaction(txn.id)
        assert len(entries) == 1
        assert entries[0].entry_type == LedgerEntryType.PROVISIONAL
        assert entries[0].sequence is None
        assert entries[0].balance_before == Decimal("0")
        assert entries[0].balance_after == Decimal("-100")

        balance = await store.get_balance(Account.CASH)
        assert balance.current_balance == Decimal("-100")
        assert balance.transaction_count == 1
        assert balance.last_transaction_id == txn.id

    @pytest.mark.asyncio
    async def test_provisional_balances_chain(
        self, writer: TransactionWriter, store: LedgerStore
    ) -> None:
        await writer.create(expense("100"))
        second = await writer.create(expense("50"))

        entries = await store.get_entries_for_transaction(second.id)
        assert entries[0].balance_before == Decimal("-100")
        assert entries[0].balance_after == Decimal("-150")

    @pytest.mark.asyncio
    async def test_sequence_numbers_per_year(self, writer: TransactionWriter) -> None:
        first = await writer.create(expense(date="2025-03-01"))
        second = await writer.create(expense(date="2025-01-01"))
        next_year = await writer.create(expense(date="2026-01-01"))

        assert first.sequence_number == "2025-00001"
        assert second.sequence_number == "2025-00002"
        assert next_year.sequence_number == "2026-00001"
        assert len({first.id, second.id, next_year.id}) == 3

    @pytest.mark.asyncio
    async def test_invalid_input_persists_nothing(
        self, writer: TransactionWriter, db: SQLiteAdapter
    ) -> None:
        """검증 실패 시 아무것도 저장되지 않음"""
        bad = expense()
        bad.amount = Decimal("-1")

        with pytest.raises(ValidationError):
            await writer.create(bad)

        for table in ("transactions", "ledger_entries", "account_balances", "transaction_sequences"):
            row = await db.fetchone(f"SELECT COUNT(*) FROM {table}")
            assert row[0] == 0, table
