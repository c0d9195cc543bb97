"""
거래 기록기

거래 생성을 하나의 원자 단위로 처리:
1. 영향 계산 (검증)
2. 영향받는 계정의 캐시 잔액 읽기
3. id / sequence_number 할당
4. 거래 저장
5. 영향별 임시(provisional) 원장 항목 저장 + 임시 잔액 갱신

임시 항목/잔액은 이후 재구축에서 확정값으로 대체됨.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from core.config.loader import LedgerConfig
from core.ledger.atomic import run_atomic
from core.ledger.effects import resolve_effects
from core.ledger.models import AccountBalance, Effect, LedgerEntry, Transaction, TransactionInput
from core.ledger.sequence import format_sequence_number, new_transaction_id, next_sequence
from core.ledger.store import LedgerStore
from core.ledger.types import Account, LedgerEntryType
from core.utils.timezone import business_year, now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


def build_entry(
    txn: Transaction,
    effect: Effect,
    balance_before: Decimal,
    entry_type: LedgerEntryType,
    sequence: int | None = None,
    ts: str | None = None,
) -> LedgerEntry:
    """거래 + 영향 → 원장 항목"""
    return LedgerEntry(
        transaction_id=txn.id,
        account=effect.account,
        change_amount=effect.change,
        balance_before=balance_before,
        balance_after=balance_before + effect.change,
        date=txn.date,
        entry_type=entry_type,
        sequence=sequence,
        ts=ts,
        description=txn.description,
        kind=txn.kind.value,
        transfer_direction=(
            txn.transfer_direction.value if txn.transfer_direction else None
        ),
        payment_method=txn.payment_method,
    )


class TransactionWriter:
    """거래 기록기

    Args:
        db: SQLite 어댑터
        config: 재시도 설정
    """

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig | None = None):
        self.db = db
        self.config = config or LedgerConfig()
        self.store = LedgerStore(db)

    async def create(self, data: TransactionInput) -> Transaction:
        """거래 생성 (원자 단위)

        Args:
            data: 검증된 거래 입력

        Returns:
            저장된 거래

        Raises:
            ValidationError: 영향 계산 실패 (아무것도 저장되지 않음)
            ConflictError: 잠금 경합으로 커밋 재시도 초과
        """
        # 원자 단위 진입 전 검증
        resolve_effects(data)

        async def work() -> Transaction:
            txn, _ = await self.write_in_unit(data)
            return txn

        txn = await run_atomic(self.db, work, self.config, label="create_transaction")

        logger.info(
            f"거래 생성: {txn.id} ({txn.sequence_number})",
            extra={
                "transaction_id": txn.id,
                "sequence_number": txn.sequence_number,
                "kind": txn.kind.value,
                "amount": str(txn.amount),
            },
        )
        return txn

    async def write_in_unit(
        self,
        data: TransactionInput,
    ) -> tuple[Transaction, list[LedgerEntry]]:
        """진행 중인 원자 단위 안에서 거래 + 임시 원장 기록

        수정(void + 재생성)에서도 같은 단위 안에서 재사용.

        Returns:
            (저장된 거래, 임시 원장 항목 목록)
        """
        effects = resolve_effects(data)

        # 읽기 먼저
        balances: dict[Account, AccountBalance] = {}
        for effect in effects:
            if effect.account not in balances:
                balances[effect.account] = await self.store.get_balance(effect.account)

        year = business_year(data.date)
        sequence = await next_sequence(self.db, year)
        created_at = now_utc_iso()

        txn = Transaction(
            id=new_transaction_id(),
            sequence_number=format_sequence_number(year, sequence),
            date=data.date,
            created_at=created_at,
            kind=data.kind,
            amount=data.amount,
            account=data.account,
            transfer_direction=data.transfer_direction,
            description=data.description,
            category=data.category,
            subcategory=data.subcategory,
            payment_method=data.payment_method,
            metadata=dict(data.metadata),
            supersedes=data.supersedes,
        )

        # 쓰기
        await self.store.insert_transaction(txn)

        entries: list[LedgerEntry] = []
        for effect in effects:
            cached = balances[effect.account]
            entry = build_entry(
                txn,
                effect,
                balance_before=cached.current_balance,
                entry_type=LedgerEntryType.PROVISIONAL,
                ts=created_at,
            )
            entries.append(entry)

            balances[effect.account] = AccountBalance(
                account=effect.account,
                current_balance=entry.balance_after,
                last_transaction_id=txn.id,
                transaction_count=cached.transaction_count + 1,
                last_updated=created_at,
            )

        await self.store.insert_entries(entries)
        for balance in balances.values():
            await self.store.upsert_balance(balance)

        return txn, entries
