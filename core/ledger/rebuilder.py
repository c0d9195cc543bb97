"""
원장 재구축기

거래 로그를 처음부터 재생하여 원장 항목과 잔액을 재생성.
원장/잔액의 유일한 확정 작성자. 멱등이며 언제 실행해도 안전.

재생 순서: date → created_at → 삽입 순서 (void 거래 제외)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable

from core.config.loader import LedgerConfig
from core.ledger.atomic import run_atomic
from core.ledger.effects import resolve_effects
from core.ledger.models import AccountBalance, LedgerEntry
from core.ledger.store import LedgerStore
from core.ledger.types import ALL_ACCOUNTS, Account, LedgerEntryType
from core.ledger.writer import build_entry
from core.utils.timezone import now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


def synthesize_ts(business_date: str, sequence: int) -> str:
    """created_at이 없는 거래의 정렬 키

    Example:
        >>> synthesize_ts("2025-01-05", 3)
        '2025-01-05T00:00:00.000003'
    """
    return f"{business_date}T00:00:00.{sequence:06d}"


def normalize_accounts(accounts: Iterable[Account | str]) -> list[Account]:
    """계정 목록 정규화 (중복 제거, ALL_ACCOUNTS 순서)"""
    requested = {Account(a) for a in accounts}
    return [account for account in ALL_ACCOUNTS if account in requested]


@dataclass
class RebuildResult:
    """재구축 결과

    transactions_processed: 재생된(void 제외) 거래 중 대상 계정에 영향을 준 거래 수
    """

    accounts: list[Account]
    transactions_processed: int = 0
    entries_written: int = 0
    final_balances: dict[Account, Decimal] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "accounts": [a.value for a in self.accounts],
            "transactions_processed": self.transactions_processed,
            "entries_written": self.entries_written,
            "final_balances": {
                a.value: str(balance) for a, balance in self.final_balances.items()
            },
        }


@dataclass
class AccountConsistency:
    """계정별 정합성 점검 결과

    - cached_balance: account_balances 캐시 값
    - ledger_balance: 마지막 원장 항목의 balance_after (항목 없으면 None)
    - replayed_balance: 거래 로그 재생 합계 (정답)
    - chain_valid: 원장 항목 누적합이 모든 balance_after와 일치하는지
    """

    account: Account
    cached_balance: Decimal
    ledger_balance: Decimal | None
    replayed_balance: Decimal
    chain_valid: bool = True

    @property
    def is_consistent(self) -> bool:
        ledger_value = self.ledger_balance if self.ledger_balance is not None else Decimal("0")
        return (
            self.chain_valid
            and self.cached_balance == self.replayed_balance
            and ledger_value == self.replayed_balance
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account.value,
            "cached_balance": str(self.cached_balance),
            "ledger_balance": (
                str(self.ledger_balance) if self.ledger_balance is not None else None
            ),
            "replayed_balance": str(self.replayed_balance),
            "chain_valid": self.chain_valid,
            "is_consistent": self.is_consistent,
        }


class LedgerRebuilder:
    """원장 재구축기

    각 재구축은 하나의 BEGIN IMMEDIATE 원자 단위.
    동시 재구축은 쓰기 잠금으로 직렬화되며, 나중 재구축이 전부 덮어씀.

    Args:
        db: SQLite 어댑터
        config: 재시도/배치 설정
    """

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig | None = None):
        self.db = db
        self.config = config or LedgerConfig()
        self.store = LedgerStore(db)

    async def rebuild_all(self) -> RebuildResult:
        """전체 계정 재구축 (금융 필드 수정/삭제 후, 관리자 요청)"""
        return await self.rebuild(ALL_ACCOUNTS)

    async def rebuild_accounts(self, accounts: Iterable[Account | str]) -> RebuildResult:
        """지정 계정만 재구축 (거래 생성 후)"""
        return await self.rebuild(accounts)

    async def rebuild(self, accounts: Iterable[Account | str]) -> RebuildResult:
        """계정 원장 재구축

        Args:
            accounts: 재구축 대상 계정

        Returns:
            RebuildResult

        Raises:
            ConflictError: 잠금 경합으로 커밋 재시도 초과
        """
        targets = normalize_accounts(accounts)
        if not targets:
            return RebuildResult(accounts=[])

        result = await run_atomic(
            self.db,
            lambda: self._rebuild_in_unit(targets),
            self.config,
            label="rebuild_ledger",
        )

        logger.info(
            f"원장 재구축 완료: {', '.join(a.value for a in targets)}",
            extra=result.to_dict(),
        )
        return result

    async def _rebuild_in_unit(self, accounts: list[Account]) -> RebuildResult:
        """진행 중인 원자 단위 안에서 재구축"""
        await self.store.delete_entries(accounts)

        running: dict[Account, Decimal] = {a: Decimal("0") for a in accounts}
        sequences: dict[Account, int] = {a: 0 for a in accounts}
        last_txn: dict[Account, str | None] = {a: None for a in accounts}

        processed = 0
        written = 0
        offset = 0
        batch_size = self.config.rebuild_batch_size

        while True:
            batch = await self.store.fetch_replay_batch(offset, batch_size)
            if not batch:
                break
            offset += len(batch)

            entries: list[LedgerEntry] = []
            for txn in batch:
                effects = [e for e in resolve_effects(txn) if e.account in running]
                if not effects:
                    continue

                processed += 1
                for effect in effects:
                    account = effect.account
                    sequences[account] += 1
                    sequence = sequences[account]
                    entry = build_entry(
                        txn,
                        effect,
                        balance_before=running[account],
                        entry_type=LedgerEntryType.TRANSACTION,
                        sequence=sequence,
                        ts=txn.created_at or synthesize_ts(txn.date, sequence),
                    )
                    entries.append(entry)
                    running[account] = entry.balance_after
                    last_txn[account] = txn.id

            written += await self.store.insert_entries(entries)

            if len(batch) < batch_size:
                break

        now = now_utc_iso()
        for account in accounts:
            await self.store.upsert_balance(
                AccountBalance(
                    account=account,
                    current_balance=running[account],
                    last_transaction_id=last_txn[account],
                    transaction_count=sequences[account],
                    last_updated=now,
                )
            )

        return RebuildResult(
            accounts=accounts,
            transactions_processed=processed,
            entries_written=written,
            final_balances=dict(running),
        )

    async def replay_balances(self) -> dict[Account, Decimal]:
        """거래 로그 재생 합계 (쓰기 없음)"""
        totals: dict[Account, Decimal] = {a: Decimal("0") for a in ALL_ACCOUNTS}
        offset = 0
        batch_size = self.config.rebuild_batch_size

        while True:
            batch = await self.store.fetch_replay_batch(offset, batch_size)
            if not batch:
                break
            offset += len(batch)
            for txn in batch:
                for effect in resolve_effects(txn):
                    totals[effect.account] += effect.change
            if len(batch) < batch_size:
                break

        return totals

    async def check_consistency(self) -> list[AccountConsistency]:
        """캐시 잔액 / 원장 / 재생 합계 비교

        Returns:
            계정별 점검 결과 (is_consistent=False면 재구축 필요)
        """
        replayed = await self.replay_balances()
        report: list[AccountConsistency] = []

        for account in ALL_ACCOUNTS:
            cached = await self.store.get_balance(account)
            entries = await self.store.get_entries(account)

            chain_valid = True
            running = Decimal("0")
            for entry in entries:
                if entry.balance_before != running or entry.balance_after != running + entry.change_amount:
                    chain_valid = False
                    break
                running = entry.balance_after

            last = await self.store.get_last_entry(account)
            item = AccountConsistency(
                account=account,
                cached_balance=cached.current_balance,
                ledger_balance=last.balance_after if last else None,
                replayed_balance=replayed[account],
                chain_valid=chain_valid,
            )
            report.append(item)

            if not item.is_consistent:
                logger.warning(
                    f"원장 불일치 감지: {account.value}",
                    extra=item.to_dict(),
                )

        return report
