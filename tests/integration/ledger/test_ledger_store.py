"""LedgerStore 통합 테스트"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.errors import NotFoundError
from core.ledger.models import AccountBalance, LedgerEntry, Transaction
from core.ledger.store import LedgerStore
from core.ledger.types import Account, LedgerEntryType, TransactionKind, TransferDirection


@pytest.fixture
def ledger_store(db: SQLiteAdapter) -> LedgerStore:
    """LedgerStore 인스턴스"""
    return LedgerStore(db)


def make_txn(
    txn_id: str,
    sequence_number: str,
    date: str = "2025-01-05",
    created_at: str | None = "2025-01-05T09:00:00.000000+00:00",
    kind: TransactionKind = TransactionKind.EXPENSE,
    amount: str = "10",
    account: Account | None = Account.CASH,
    **extra,
) -> Transaction:
    return Transaction(
        id=txn_id,
        sequence_number=sequence_number,
        date=date,
        created_at=created_at,
        kind=kind,
        amount=Decimal(amount),
        account=account,
        **extra,
    )


async def insert(store: LedgerStore, *txns: Transaction) -> None:
    async with store.db.transaction(immediate=True):
        for txn in txns:
            await store.insert_transaction(txn)


class TestLedgerStoreTransactions:
    """거래 저장/조회 테스트"""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, ledger_store: LedgerStore) -> None:
        """모든 필드 왕복"""
        txn = make_txn(
            "TXN-1",
            "2025-00001",
            kind=TransactionKind.TRANSFER,
            account=None,
            transfer_direction=TransferDirection.DEPOSIT,
            amount="12.345",
            description="ATM 입금",
            category="transfer",
            payment_method="atm",
            metadata={"note": "월급", "tags": ["a", "b"]},
        )
        await insert(ledger_store, txn)

        stored = await ledger_store.get_transaction("TXN-1")

        assert stored == txn
        assert stored.amount == Decimal("12.345")
        assert stored.metadata == {"note": "월급", "tags": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_find_by_sequence_number(self, ledger_store: LedgerStore) -> None:
        await insert(ledger_store, make_txn("TXN-1", "2025-00001"))

        assert (await ledger_store.find_transaction("2025-00001")).id == "TXN-1"
        assert await ledger_store.find_transaction("2025-00002") is None

    @pytest.mark.asyncio
    async def test_get_not_found(self, ledger_store: LedgerStore) -> None:
        with pytest.raises(NotFoundError):
            await ledger_store.get_transaction("TXN-missing")

    @pytest.mark.asyncio
    async def test_replay_order(self, ledger_store: LedgerStore) -> None:
        """date → created_at → 삽입 순서, void 제외"""
        await insert(
            ledger_store,
            make_txn("C", "2025-00001", date="2025-01-03"),
            make_txn("B2", "2025-00002", date="2025-01-02", created_at="2025-01-02T10:00:00"),
            make_txn("B1", "2025-00003", date="2025-01-02", created_at="2025-01-02T09:00:00"),
            make_txn("V", "2025-00004", date="2025-01-01", voided=True, void_reason="Updated"),
            make_txn("A", "2025-00005", date="2025-01-01"),
        )

        first = await ledger_store.fetch_replay_batch(0, 2)
        rest = await ledger_store.fetch_replay_batch(2, 10)

        assert [t.id for t in first + rest] == ["A", "B1", "B2", "C"]

    @pytest.mark.asyncio
    async def test_update_details(self, ledger_store: LedgerStore) -> None:
        await insert(ledger_store, make_txn("TXN-1", "2025-00001"))

        async with ledger_store.db.transaction(immediate=True):
            await ledger_store.update_details(
                "TXN-1",
                {"description": "커피", "metadata": {"receipt": True}},
                "2025-01-06T00:00:00+00:00",
            )

        stored = await ledger_store.get_transaction("TXN-1")
        assert stored.description == "커피"
        assert stored.metadata == {"receipt": True}
        assert stored.updated_at == "2025-01-06T00:00:00+00:00"
        assert stored.amount == Decimal("10")

    @pytest.mark.asyncio
    async def test_update_details_rejects_financial_fields(
        self, ledger_store: LedgerStore
    ) -> None:
        await insert(ledger_store, make_txn("TXN-1", "2025-00001"))

        with pytest.raises(ValueError):
            await ledger_store.update_details("TXN-1", {"amount": "5"}, "now")

    @pytest.mark.asyncio
    async def test_mark_voided(self, ledger_store: LedgerStore) -> None:
        await insert(ledger_store, make_txn("TXN-1", "2025-00001"))

        async with ledger_store.db.transaction(immediate=True):
            await ledger_store.mark_voided(
                "TXN-1", "Updated", "2025-01-06T00:00:00+00:00", superseded_by="TXN-2"
            )

        stored = await ledger_store.get_transaction("TXN-1")
        assert stored.voided is True
        assert stored.superseded_by == "TXN-2"
        assert await ledger_store.get_transactions() == []
        assert len(await ledger_store.get_transactions(include_voided=True)) == 1


class TestLedgerStoreEntries:
    """원장 항목 테스트"""

    @pytest.mark.asyncio
    async def test_insert_and_query_entries(self, ledger_store: LedgerStore) -> None:
        entries = [
            LedgerEntry(
                transaction_id=f"TXN-{i}",
                account=Account.BANK,
                change_amount=Decimal("5"),
                balance_before=Decimal(5 * (i - 1)),
                balance_after=Decimal(5 * i),
                date=f"2025-01-0{i}",
                sequence=i,
                ts=f"2025-01-0{i}T00:00:00",
            )
            for i in (1, 2, 3)
        ]

        async with ledger_store.db.transaction(immediate=True):
            written = await ledger_store.insert_entries(entries)

        assert written == 3

        ascending = await ledger_store.get_entries(Account.BANK)
        assert [e.sequence for e in ascending] == [1, 2, 3]
        assert all(e.entry_id is not None for e in ascending)

        newest = await ledger_store.get_ledger(Account.BANK, limit=2)
        assert [e.sequence for e in newest] == [3, 2]

        ranged = await ledger_store.get_ledger(
            Account.BANK, start_date="2025-01-02", end_date="2025-01-02"
        )
        assert [e.transaction_id for e in ranged] == ["TXN-2"]

        last = await ledger_store.get_last_entry(Account.BANK)
        assert last.balance_after == Decimal("15")
        assert await ledger_store.get_last_entry(Account.CASH) is None

    @pytest.mark.asyncio
    async def test_delete_entries_by_account(self, ledger_store: LedgerStore) -> None:
        entries = [
            LedgerEntry(
                transaction_id="TXN-1",
                account=account,
                change_amount=Decimal("1"),
                balance_before=Decimal("0"),
                balance_after=Decimal("1"),
                date="2025-01-01",
                entry_type=LedgerEntryType.PROVISIONAL,
            )
            for account in (Account.CASH, Account.BANK)
        ]
        async with ledger_store.db.transaction(immediate=True):
            await ledger_store.insert_entries(entries)
            await ledger_store.delete_entries([Account.CASH])

        assert await ledger_store.get_entries(Account.CASH) == []
        assert len(await ledger_store.get_entries(Account.BANK)) == 1


class TestLedgerStoreBalances:
    """계정 잔액 테스트"""

    @pytest.mark.asyncio
    async def test_missing_balance_is_zero(self, ledger_store: LedgerStore) -> None:
        balance = await ledger_store.get_balance(Account.CASH)

        assert balance.current_balance == Decimal("0")
        assert balance.transaction_count == 0

    @pytest.mark.asyncio
    async def test_upsert_balance(self, ledger_store: LedgerStore) -> None:
        async with ledger_store.db.transaction(immediate=True):
            await ledger_store.upsert_balance(
                AccountBalance(Account.BANK, Decimal("10.10"), "TXN-1", 1, "t1")
            )
            await ledger_store.upsert_balance(
                AccountBalance(Account.BANK, Decimal("-0.05"), "TXN-2", 2, "t2")
            )

        balances = await ledger_store.get_balances()
        assert balances[Account.BANK].current_balance == Decimal("-0.05")
        assert balances[Account.BANK].last_transaction_id == "TXN-2"
        assert balances[Account.BANK].transaction_count == 2
        assert balances[Account.CASH].current_balance == Decimal("0")
