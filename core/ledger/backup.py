"""
거래 로그 백업/복원

내보내기: {version, export_date, transactions}
가져오기: 거래 로그를 재생(replace 또는 merge)한 뒤 전체 재구축.

원장/잔액은 파생 데이터이므로 백업하지 않음.
구버전 필드명(type, subtype, paymentMethod, transaction_number, timestamp) 허용.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.config.loader import LedgerConfig
from core.constants import BackupFormat
from core.ledger.atomic import run_atomic
from core.ledger.effects import resolve_effects
from core.ledger.errors import ValidationError
from core.ledger.models import Transaction, TransactionInput
from core.ledger.sequence import (
    format_sequence_number,
    new_transaction_id,
    next_sequence,
    parse_sequence_number,
    reserve_sequence,
)
from core.ledger.service import LedgerService, RebuildOutcome
from core.ledger.store import LedgerStore
from core.ledger.types import ALL_ACCOUNTS, TransactionKind
from core.utils.timezone import business_year, now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


MERGE_MODES: tuple[str, ...] = ("replace", "merge")

# 구버전 필드명 → 현재 필드명
LEGACY_FIELD_ALIASES: dict[str, str] = {
    "type": "kind",
    "paymentMethod": "payment_method",
    "transaction_number": "sequence_number",
    "timestamp": "created_at",
}


@dataclass
class ImportResult:
    """가져오기 결과"""

    merge_mode: str
    imported: int = 0
    skipped: int = 0
    renumbered: list[str] = field(default_factory=list)
    rebuild: RebuildOutcome = field(
        default_factory=lambda: RebuildOutcome(ledger_rebuilt=False)
    )

    def to_dict(self) -> dict[str, Any]:
        result = self.rebuild.result
        return {
            "merge_mode": self.merge_mode,
            "imported": self.imported,
            "skipped": self.skipped,
            "renumbered": self.renumbered,
            "ledger_rebuilt": self.rebuild.ledger_rebuilt,
            "transactions_processed": result.transactions_processed if result else None,
            "final_balances": (
                {a.value: str(b) for a, b in result.final_balances.items()}
                if result else None
            ),
            "warning": self.rebuild.warning,
        }


def normalize_record(record: dict[str, Any]) -> dict[str, Any]:
    """구버전 필드명을 현재 필드명으로 변환

    subtype은 이체일 때만 transfer_direction으로 사용.
    """
    normalized = dict(record)
    for legacy, current in LEGACY_FIELD_ALIASES.items():
        if legacy in normalized:
            value = normalized.pop(legacy)
            normalized.setdefault(current, value)

    subtype = normalized.pop("subtype", None)
    if normalized.get("kind") == TransactionKind.TRANSFER.value:
        normalized.setdefault("transfer_direction", subtype)

    # created_at은 문자열만 정렬 키로 사용 (구버전 서버 타임스탬프 객체 무시)
    if not isinstance(normalized.get("created_at"), str):
        normalized["created_at"] = None

    return normalized


def record_to_transaction(
    record: dict[str, Any],
    txn_id: str,
    sequence_number: str,
) -> Transaction:
    """검증된 백업 레코드 → Transaction

    Raises:
        ValidationError: 거래 필드 검증 실패
    """
    data = TransactionInput.from_dict(record)
    voided = bool(record.get("voided", False))

    return Transaction(
        id=txn_id,
        sequence_number=sequence_number,
        date=data.date,
        created_at=record.get("created_at"),
        kind=data.kind,
        amount=data.amount,
        account=data.account,
        transfer_direction=data.transfer_direction,
        description=data.description,
        category=data.category,
        subcategory=data.subcategory,
        payment_method=data.payment_method,
        metadata=data.metadata,
        voided=voided,
        void_reason=record.get("void_reason") if voided else None,
        voided_at=record.get("voided_at") if voided else None,
        supersedes=record.get("supersedes"),
        superseded_by=record.get("superseded_by"),
        updated_at=record.get("updated_at"),
    )


class LedgerBackup:
    """거래 로그 백업/복원

    Args:
        db: SQLite 어댑터
        config: Ledger 설정
        service: 재구축에 사용할 LedgerService (None이면 기본 생성)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        config: LedgerConfig | None = None,
        service: LedgerService | None = None,
    ):
        self.db = db
        self.config = config or LedgerConfig()
        self.store = LedgerStore(db)
        self.service = service or LedgerService(db, self.config)

    async def export_log(self) -> dict[str, Any]:
        """거래 로그 내보내기 (void 포함)"""
        transactions = await self.store.list_all_transactions()

        logger.info(
            f"거래 로그 내보내기: {len(transactions)}건",
            extra={"count": len(transactions)},
        )
        return {
            "version": BackupFormat.VERSION,
            "export_date": now_utc_iso(),
            "transactions": [txn.to_dict() for txn in transactions],
        }

    async def import_log(
        self,
        data: dict[str, Any],
        merge_mode: str = "replace",
    ) -> ImportResult:
        """거래 로그 가져오기 후 전체 재구축

        - replace: 기존 로그 삭제 후 백업으로 대체
        - merge: 같은 id가 이미 있으면 건너뜀

        sequence_number가 이미 다른 거래에 쓰였거나 형식이 잘못되면 새로 할당.

        Args:
            data: export_log() 형식의 dict
            merge_mode: replace 또는 merge

        Returns:
            ImportResult

        Raises:
            ValidationError: 백업 형식 오류 또는 거래 검증 실패 (아무것도 저장되지 않음)
            ConflictError: 커밋 재시도 초과
        """
        if merge_mode not in MERGE_MODES:
            raise ValidationError(
                f"unknown merge_mode: {merge_mode!r} (valid: {list(MERGE_MODES)})"
            )
        if not isinstance(data, dict) or not data.get("version"):
            raise ValidationError("Invalid import data format")

        records = data.get("transactions")
        if not isinstance(records, list):
            raise ValidationError("Invalid import data format: transactions must be a list")

        result = await run_atomic(
            self.db,
            lambda: self._import_in_unit(records, merge_mode),
            self.config,
            label="import_transactions",
        )

        result.rebuild = await self.service.rebuild_after_write(ALL_ACCOUNTS, "import")

        logger.info(
            f"거래 로그 가져오기 완료: {result.imported}건 ({merge_mode})",
            extra=result.to_dict(),
        )
        return result

    async def _import_in_unit(
        self,
        records: list[Any],
        merge_mode: str,
    ) -> ImportResult:
        result = ImportResult(merge_mode=merge_mode)

        if merge_mode == "replace":
            deleted = await self.store.delete_all_transactions()
            logger.info(f"기존 거래 로그 삭제: {deleted}건")

        for index, raw in enumerate(records):
            if not isinstance(raw, dict):
                raise ValidationError(f"transactions[{index}] must be an object")

            record = normalize_record(raw)
            txn_id = record.get("id") or new_transaction_id()

            if await self.store.find_transaction(txn_id) is not None:
                if merge_mode == "merge":
                    result.skipped += 1
                    continue
                raise ValidationError(f"transactions[{index}]: duplicate id {txn_id}")

            try:
                txn = record_to_transaction(record, txn_id, sequence_number="")
            except ValidationError as e:
                raise ValidationError(f"transactions[{index}]: {e}") from e

            txn.sequence_number = await self._claim_sequence_number(
                record.get("sequence_number"), txn.date
            )
            if record.get("sequence_number") and record["sequence_number"] != txn.sequence_number:
                result.renumbered.append(txn.id)

            await self.store.insert_transaction(txn)
            result.imported += 1

        return result

    async def _claim_sequence_number(self, requested: Any, business_date: str) -> str:
        """백업의 sequence_number 유지, 불가능하면 새로 할당"""
        parsed = parse_sequence_number(requested) if isinstance(requested, str) else None
        if parsed is not None:
            taken = await self.db.fetchone(
                "SELECT 1 FROM transactions WHERE sequence_number = ?",
                (requested,),
            )
            if taken is None:
                year, sequence = parsed
                await reserve_sequence(self.db, year, sequence)
                return requested

        year = business_year(business_date)
        return format_sequence_number(year, await next_sequence(self.db, year))


def summarize_export(export: dict[str, Any]) -> dict[str, Any]:
    """백업 요약 (건수, void 건수, 계정별 합계)"""
    totals = {account.value: Decimal("0") for account in ALL_ACCOUNTS}
    transactions = export.get("transactions", [])
    voided = 0

    for record in transactions:
        if record.get("voided"):
            voided += 1
            continue
        txn = record_to_transaction(normalize_record(record), "summary", "summary")
        for effect in resolve_effects(txn):
            totals[effect.account.value] += effect.change

    return {
        "version": export.get("version"),
        "export_date": export.get("export_date"),
        "transactions": len(transactions),
        "voided": voided,
        "balances": {account: str(total) for account, total in totals.items()},
    }
