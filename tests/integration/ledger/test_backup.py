"""LedgerBackup 통합 테스트 (내보내기 / replace·merge 가져오기)"""

from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import LedgerConfig
from core.ledger.backup import LedgerBackup, normalize_record, summarize_export
from core.ledger.errors import ValidationError
from core.ledger.service import LedgerService
from core.ledger.store import LedgerStore
from core.ledger.types import Account, TransactionKind, TransferDirection


@pytest_asyncio.fixture
async def restore_db(temp_dir: Path) -> SQLiteAdapter:
    """복원 대상 빈 DB"""
    adapter = SQLiteAdapter(temp_dir / "restore.db")
    await adapter.connect()
    await init_schema(adapter)

    yield adapter

    await adapter.close()


@pytest.fixture
def backup(db: SQLiteAdapter, ledger_config: LedgerConfig, service: LedgerService) -> LedgerBackup:
    return LedgerBackup(db, ledger_config, service)


@pytest.fixture
def restore_backup(restore_db: SQLiteAdapter, ledger_config: LedgerConfig) -> LedgerBackup:
    return LedgerBackup(restore_db, ledger_config)


async def seed(service: LedgerService) -> None:
    """수입, 이체, 수정된 지출"""
    await service.create_transaction(
        {"date": "2025-01-01", "kind": "income", "amount": "1000", "account": "bank"}
    )
    await service.create_transaction(
        {"date": "2025-01-02", "kind": "transfer", "transfer_direction": "withdrawal", "amount": "200"}
    )
    lunch = (
        await service.create_transaction(
            {"date": "2025-01-03", "kind": "expense", "amount": "12.50", "description": "lunch"}
        )
    ).transaction
    await service.update_transaction(lunch.id, {"amount": "15.00"})


class TestExport:
    """내보내기 테스트"""

    @pytest.mark.asyncio
    async def test_export_includes_voided(self, service: LedgerService, backup: LedgerBackup) -> None:
        await seed(service)

        export = await backup.export_log()

        assert export["version"] == "1.0"
        assert export["export_date"]
        assert len(export["transactions"]) == 4
        assert sum(1 for t in export["transactions"] if t["voided"]) == 1
        assert all(isinstance(t["amount"], str) for t in export["transactions"])

    @pytest.mark.asyncio
    async def test_summary(self, service: LedgerService, backup: LedgerBackup) -> None:
        await seed(service)

        summary = summarize_export(await backup.export_log())

        assert summary["transactions"] == 4
        assert summary["voided"] == 1
        assert summary["balances"] == {"cash": "185.00", "bank": "800"}


class TestImportReplace:
    """replace 모드 테스트"""

    @pytest.mark.asyncio
    async def test_round_trip_restores_balances(
        self,
        service: LedgerService,
        backup: LedgerBackup,
        restore_db: SQLiteAdapter,
        restore_backup: LedgerBackup,
    ) -> None:
        await seed(service)
        export = await backup.export_log()

        result = await restore_backup.import_log(export, "replace")

        assert result.imported == 4
        assert result.renumbered == []
        assert result.rebuild.ledger_rebuilt is True

        original = await service.get_balances()
        restored = await LedgerService(restore_db).get_balances()
        assert restored["cash"] == original["cash"] == Decimal("185.00")
        assert restored["bank"] == original["bank"] == Decimal("800")

        source_ids = [t["id"] for t in export["transactions"]]
        restored_ids = [t.id for t in await LedgerStore(restore_db).list_all_transactions()]
        assert sorted(source_ids) == sorted(restored_ids)

    @pytest.mark.asyncio
    async def test_sequence_counter_continues(
        self, service: LedgerService, backup: LedgerBackup, restore_db: SQLiteAdapter,
        restore_backup: LedgerBackup,
    ) -> None:
        """복원된 번호 이후부터 새 번호 할당"""
        await seed(service)
        await restore_backup.import_log(await backup.export_log(), "replace")

        created = await LedgerService(restore_db).create_transaction(
            {"date": "2025-02-01", "kind": "expense", "amount": "1"}
        )

        assert created.transaction.sequence_number == "2025-00005"

    @pytest.mark.asyncio
    async def test_replace_discards_existing(
        self, service: LedgerService, backup: LedgerBackup
    ) -> None:
        await seed(service)

        result = await backup.import_log({"version": "1.0", "transactions": []}, "replace")

        assert result.imported == 0
        assert await service.list_transactions() == []
        balances = await service.get_balances()
        assert balances["cash"] == Decimal("0")
        assert balances["bank"] == Decimal("0")

    @pytest.mark.asyncio
    async def test_invalid_record_rolls_back(
        self, service: LedgerService, backup: LedgerBackup
    ) -> None:
        """검증 실패 시 기존 로그 유지"""
        await seed(service)
        bad = {
            "version": "1.0",
            "transactions": [
                {"id": "TXN-ok", "date": "2025-03-01", "kind": "income", "amount": "5", "account": "cash"},
                {"id": "TXN-bad", "date": "2025-03-02", "kind": "expense", "amount": "-5"},
            ],
        }

        with pytest.raises(ValidationError, match=r"transactions\[1\]"):
            await backup.import_log(bad, "replace")

        assert len(await service.list_transactions()) == 3


class TestImportMerge:
    """merge 모드 테스트"""

    @pytest.mark.asyncio
    async def test_existing_ids_skipped(
        self, service: LedgerService, backup: LedgerBackup
    ) -> None:
        await seed(service)
        export = await backup.export_log()

        result = await backup.import_log(export, "merge")

        assert result.imported == 0
        assert result.skipped == 4
        balances = await service.get_balances()
        assert balances["cash"] == Decimal("185.00")

    @pytest.mark.asyncio
    async def test_conflicting_sequence_renumbered(
        self, service: LedgerService, backup: LedgerBackup
    ) -> None:
        await seed(service)
        incoming = {
            "version": "1.0",
            "transactions": [
                {
                    "id": "TXN-foreign",
                    "sequence_number": "2025-00001",
                    "date": "2025-01-10",
                    "kind": "income",
                    "amount": "15",
                    "account": "cash",
                }
            ],
        }

        result = await backup.import_log(incoming, "merge")

        assert result.imported == 1
        assert result.renumbered == ["TXN-foreign"]
        imported = await service.get_transaction("TXN-foreign")
        assert imported.sequence_number == "2025-00005"
        assert (await service.get_balances())["cash"] == Decimal("200.00")


class TestLegacyRecords:
    """구버전 필드명 테스트"""

    def test_normalize_aliases(self) -> None:
        record = normalize_record(
            {
                "type": "transfer",
                "subtype": "deposit",
                "paymentMethod": "atm",
                "transaction_number": "2024-00003",
                "timestamp": {"seconds": 1700000000},
            }
        )

        assert record["kind"] == "transfer"
        assert record["transfer_direction"] == "deposit"
        assert record["payment_method"] == "atm"
        assert record["sequence_number"] == "2024-00003"
        assert record["created_at"] is None

    def test_subtype_ignored_for_non_transfers(self) -> None:
        record = normalize_record({"type": "expense", "subtype": "groceries"})

        assert "transfer_direction" not in record

    @pytest.mark.asyncio
    async def test_import_legacy_backup(
        self, restore_db: SQLiteAdapter, restore_backup: LedgerBackup
    ) -> None:
        legacy = {
            "version": "0.9",
            "transactions": [
                {
                    "id": "legacy-1",
                    "type": "income",
                    "account": "bank",
                    "amount": 300,
                    "date": "15/12/2024",
                    "transaction_number": "2024-00003",
                },
                {
                    "id": "legacy-2",
                    "type": "transfer",
                    "subtype": "withdrawal",
                    "amount": "50",
                    "date": "16/12/2024",
                    "paymentMethod": "atm",
                },
            ],
        }

        result = await restore_backup.import_log(legacy, "replace")

        assert result.imported == 2
        store = LedgerStore(restore_db)
        first = await store.get_transaction("2024-00003")
        assert first.id == "legacy-1"
        assert first.date == "2024-12-15"
        assert first.created_at is None

        second = await store.get_transaction("legacy-2")
        assert second.kind == TransactionKind.TRANSFER
        assert second.transfer_direction == TransferDirection.WITHDRAWAL
        assert second.payment_method == "atm"
        assert second.sequence_number == "2024-00004"

        assert (await store.get_balance(Account.BANK)).current_balance == Decimal("250")
        assert (await store.get_balance(Account.CASH)).current_balance == Decimal("50")


class TestImportValidation:
    """가져오기 형식 검증"""

    @pytest.mark.parametrize(
        "data",
        [
            None,
            [],
            {"transactions": []},
            {"version": "1.0"},
            {"version": "1.0", "transactions": "nope"},
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_format(self, backup: LedgerBackup, data) -> None:
        with pytest.raises(ValidationError, match="Invalid import data format"):
            await backup.import_log(data, "replace")

    @pytest.mark.asyncio
    async def test_unknown_merge_mode(self, backup: LedgerBackup) -> None:
        with pytest.raises(ValidationError, match="merge_mode"):
            await backup.import_log({"version": "1.0", "transactions": []}, "append")
