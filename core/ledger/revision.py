"""
거래 수정/삭제 처리

- 비금융 필드만 바뀌는 수정: 제자리 수정 (updated_at 갱신, 재구축 불필요)
- 금융 필드가 바뀌는 수정: 하나의 원자 단위에서
    원거래 void → 역분개 항목 → 대체 거래 + 임시 원장
  이후 서비스가 전체 재구축 실행
- 삭제: 영구 삭제, 이후 서비스가 전체 재구축 실행
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from core.config.loader import LedgerConfig
from core.domain.state_machines import (
    StateMachineError,
    TransactionState,
    TransactionStateMachine,
)
from core.ledger.atomic import run_atomic
from core.ledger.effects import resolve_effects
from core.ledger.errors import ValidationError
from core.ledger.models import AccountBalance, Effect, LedgerEntry, Transaction, TransactionInput
from core.ledger.store import LedgerStore
from core.ledger.types import (
    EDITABLE_FIELDS,
    FINANCIAL_FIELDS,
    NON_FINANCIAL_FIELDS,
    REVERSAL_SUFFIX,
    VOID_REASON_UPDATED,
    Account,
    LedgerEntryType,
    TransactionKind,
)
from core.ledger.writer import TransactionWriter, build_entry
from core.utils.timezone import now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class RevisionResult:
    """수정 결과

    financial_change=True면 original은 void된 원거래, transaction은 대체 거래.
    False면 둘 다 같은 거래 (transaction이 수정 후 상태).
    """

    original: Transaction
    transaction: Transaction
    financial_change: bool
    reversal_entries: list[LedgerEntry] = field(default_factory=list)

    @property
    def new_id(self) -> str | None:
        """대체 거래 id (제자리 수정이면 None)"""
        return self.transaction.id if self.financial_change else None


def validate_patch(patch: dict[str, Any]) -> None:
    """수정 요청 필드 검증

    Raises:
        ValidationError: 빈 요청 또는 수정 불가 필드 포함
    """
    if not patch:
        raise ValidationError("no fields to update")

    unknown = set(patch) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(
            f"fields cannot be updated: {sorted(unknown)} "
            f"(allowed: {sorted(EDITABLE_FIELDS)})"
        )


def merge_patch(original: Transaction, patch: dict[str, Any]) -> TransactionInput:
    """원거래 ⊕ 수정 요청 → 검증된 입력

    kind가 이체가 아닌 값으로 바뀌면 기존 transfer_direction은 버림.
    """
    merged = original.to_input_dict()
    merged.update(patch)

    kind_value = merged.get("kind")
    if kind_value != TransactionKind.TRANSFER.value and "transfer_direction" not in patch:
        merged["transfer_direction"] = None

    return TransactionInput.from_dict(merged)


def has_financial_change(original: Transaction, revised: TransactionInput) -> bool:
    """금융 필드 값이 하나라도 바뀌었는지"""
    return any(
        getattr(original, name) != getattr(revised, name)
        for name in FINANCIAL_FIELDS
    )


def ensure_transition(txn: Transaction, target: TransactionState) -> TransactionState:
    """상태 머신으로 전이 검증

    Returns:
        전이 후 상태

    Raises:
        ValidationError: void된 거래 수정/삭제 등 허용되지 않은 전이
    """
    machine = TransactionStateMachine(txn.state)
    try:
        return machine.transition(target)
    except StateMachineError as e:
        raise ValidationError(
            f"transaction {txn.id} is {txn.state.value.lower()} and cannot become "
            f"{target.value.lower()}"
        ) from e


class TransactionRevisionHandler:
    """거래 수정/삭제 처리기

    Args:
        db: SQLite 어댑터
        config: 재시도 설정
    """

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig | None = None):
        self.db = db
        self.config = config or LedgerConfig()
        self.store = LedgerStore(db)
        self.writer = TransactionWriter(db, self.config)

    async def update(self, ref: str, patch: dict[str, Any]) -> RevisionResult:
        """거래 수정

        Args:
            ref: 거래 id 또는 sequence_number
            patch: 수정할 필드

        Returns:
            RevisionResult

        Raises:
            ValidationError: 잘못된 필드/값, void된 거래
            NotFoundError: 거래 없음
            ConflictError: 잠금 경합으로 커밋 재시도 초과
        """
        validate_patch(patch)

        result = await run_atomic(
            self.db,
            lambda: self._update_in_unit(ref, patch),
            self.config,
            label="update_transaction",
        )

        if result.financial_change:
            logger.info(
                f"거래 대체: {result.original.id} → {result.transaction.id}",
                extra={
                    "transaction_id": result.original.id,
                    "new_id": result.transaction.id,
                    "fields": sorted(patch),
                },
            )
        else:
            logger.info(
                f"거래 제자리 수정: {result.transaction.id}",
                extra={"transaction_id": result.transaction.id, "fields": sorted(patch)},
            )
        return result

    async def _update_in_unit(self, ref: str, patch: dict[str, Any]) -> RevisionResult:
        original = await self.store.get_transaction(ref)
        ensure_transition(original, TransactionState.ACTIVE)

        revised = merge_patch(original, patch)

        if not has_financial_change(original, revised):
            changes = {
                name: getattr(revised, name)
                for name in NON_FINANCIAL_FIELDS
                if name in patch
            }
            await self.store.update_details(original.id, changes, now_utc_iso())
            updated = await self.store.get_transaction(original.id)
            return RevisionResult(
                original=original,
                transaction=updated,
                financial_change=False,
            )

        ensure_transition(original, TransactionState.VOIDED)
        voided_at = now_utc_iso()
        void_date = voided_at[:10]

        # 읽기 먼저: 원거래 영향 계정의 현재 캐시 잔액
        original_effects = resolve_effects(original)
        balances: dict[Account, AccountBalance] = {}
        for effect in original_effects:
            if effect.account not in balances:
                balances[effect.account] = await self.store.get_balance(effect.account)

        # 역분개: void한 날짜, 계정 원장의 마지막 sequence 다음
        reversal_id = f"{original.id}{REVERSAL_SUFFIX}"
        reversal_entries: list[LedgerEntry] = []
        for effect in original_effects:
            cached = balances[effect.account]
            sequence = await self.store.get_max_sequence(effect.account) + 1
            entry = build_entry(
                original,
                Effect(effect.account, -effect.change),
                balance_before=cached.current_balance,
                entry_type=LedgerEntryType.REVERSAL,
                sequence=sequence,
                ts=voided_at,
            )
            entry.transaction_id = reversal_id
            entry.date = void_date
            entry.original_transaction_id = original.id
            reversal_entries.append(entry)

            balances[effect.account] = AccountBalance(
                account=effect.account,
                current_balance=entry.balance_after,
                last_transaction_id=reversal_id,
                transaction_count=cached.transaction_count,
                last_updated=voided_at,
            )

        await self.store.insert_entries(reversal_entries)
        for balance in balances.values():
            await self.store.upsert_balance(balance)

        # 대체 거래 (새 id, 새 sequence_number)
        revised.supersedes = original.id
        replacement, _ = await self.writer.write_in_unit(revised)

        await self.store.mark_voided(
            original.id,
            reason=VOID_REASON_UPDATED,
            voided_at=voided_at,
            superseded_by=replacement.id,
        )
        voided = await self.store.get_transaction(original.id)

        return RevisionResult(
            original=voided,
            transaction=replacement,
            financial_change=True,
            reversal_entries=reversal_entries,
        )

    async def delete(self, ref: str) -> Transaction:
        """거래 영구 삭제

        Args:
            ref: 거래 id 또는 sequence_number

        Returns:
            삭제된 거래

        Raises:
            ValidationError: void된 거래
            NotFoundError: 거래 없음
            ConflictError: 잠금 경합으로 커밋 재시도 초과
        """

        async def work() -> Transaction:
            txn = await self.store.get_transaction(ref)
            ensure_transition(txn, TransactionState.DELETED)
            await self.store.delete_transaction(txn.id)
            return txn

        deleted = await run_atomic(self.db, work, self.config, label="delete_transaction")

        logger.info(
            f"거래 삭제: {deleted.id} ({deleted.sequence_number})",
            extra={"transaction_id": deleted.id, "amount": str(deleted.amount)},
        )
        return deleted
