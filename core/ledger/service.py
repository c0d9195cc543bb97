"""
Ledger 서비스 (파사드)

쓰기(원자 단위) → 커밋 → 재구축(별도 원자 단위) 순서를 조율.
재구축 실패는 쓰기 실패가 아님: warning + ledger_rebuilt=False로 보고.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable

from core.config.loader import LedgerConfig
from core.ledger.effects import affected_accounts
from core.ledger.errors import RebuildError, ValidationError
from core.ledger.models import (
    LedgerEntry,
    Transaction,
    TransactionInput,
    parse_account,
    parse_date,
    parse_kind,
)
from core.ledger.rebuilder import AccountConsistency, LedgerRebuilder, RebuildResult
from core.ledger.revision import RevisionResult, TransactionRevisionHandler
from core.ledger.store import LedgerStore
from core.ledger.types import ALL_ACCOUNTS, Account
from core.ledger.writer import TransactionWriter

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class RebuildOutcome:
    """쓰기 이후 재구축 결과"""

    ledger_rebuilt: bool
    result: RebuildResult | None = None
    warning: str | None = None

    @property
    def updated_balances(self) -> dict[Account, Decimal] | None:
        return self.result.final_balances if self.result else None


@dataclass
class CreateResult:
    """거래 생성 결과"""

    transaction: Transaction
    rebuild: RebuildOutcome

    @property
    def warning(self) -> str | None:
        return self.rebuild.warning


@dataclass
class UpdateResult:
    """거래 수정 결과"""

    revision: RevisionResult
    rebuild: RebuildOutcome = field(
        default_factory=lambda: RebuildOutcome(ledger_rebuilt=False)
    )

    @property
    def warning(self) -> str | None:
        return self.rebuild.warning


@dataclass
class DeleteResult:
    """거래 삭제 결과"""

    transaction: Transaction
    rebuild: RebuildOutcome

    @property
    def warning(self) -> str | None:
        return self.rebuild.warning


class LedgerService:
    """Ledger 서비스

    Args:
        db: SQLite 어댑터
        config: Ledger 설정
        rebuilder: 재구축기 (None이면 기본 생성)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        config: LedgerConfig | None = None,
        rebuilder: LedgerRebuilder | None = None,
    ):
        self.db = db
        self.config = config or LedgerConfig()
        self.store = LedgerStore(db)
        self.writer = TransactionWriter(db, self.config)
        self.revisions = TransactionRevisionHandler(db, self.config)
        self.rebuilder = rebuilder or LedgerRebuilder(db, self.config)

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    async def create_transaction(self, fields: dict[str, Any]) -> CreateResult:
        """거래 생성 후 영향 계정 재구축

        Raises:
            ValidationError: 잘못된 입력
            ConflictError: 커밋 재시도 초과
        """
        data = TransactionInput.from_dict(fields)
        txn = await self.writer.create(data)
        outcome = await self.rebuild_after_write(affected_accounts(txn), txn.id)
        return CreateResult(transaction=txn, rebuild=outcome)

    async def update_transaction(self, ref: str, patch: dict[str, Any]) -> UpdateResult:
        """거래 수정 (금융 필드 변경 시 전체 재구축)

        Raises:
            ValidationError: 잘못된 필드/값, void된 거래
            NotFoundError: 거래 없음
            ConflictError: 커밋 재시도 초과
        """
        revision = await self.revisions.update(ref, patch)
        if not revision.financial_change:
            return UpdateResult(revision=revision)

        outcome = await self.rebuild_after_write(ALL_ACCOUNTS, revision.transaction.id)
        return UpdateResult(revision=revision, rebuild=outcome)

    async def delete_transaction(self, ref: str) -> DeleteResult:
        """거래 영구 삭제 후 전체 재구축

        Raises:
            ValidationError: void된 거래
            NotFoundError: 거래 없음
            ConflictError: 커밋 재시도 초과
        """
        deleted = await self.revisions.delete(ref)
        outcome = await self.rebuild_after_write(ALL_ACCOUNTS, deleted.id)
        return DeleteResult(transaction=deleted, rebuild=outcome)

    async def rebuild_after_write(
        self,
        accounts: Iterable[Account],
        transaction_id: str,
    ) -> RebuildOutcome:
        """커밋된 쓰기 이후 재구축

        거래는 이미 저장됨. 실패는 경고로 변환하여 반환.
        """
        accounts = list(accounts)
        try:
            result = await self.rebuilder.rebuild(accounts)
        except Exception as e:
            error = RebuildError(f"ledger rebuild failed after write: {e}")
            logger.error(
                f"재구축 실패 (거래는 저장됨): {transaction_id}",
                extra={
                    "transaction_id": transaction_id,
                    "accounts": [a.value for a in accounts],
                    "error": str(e),
                },
                exc_info=True,
            )
            return RebuildOutcome(
                ledger_rebuilt=False,
                warning=f"Transaction saved but balances may be stale: {error}",
            )

        return RebuildOutcome(ledger_rebuilt=True, result=result)

    async def rebuild_ledger(self) -> RebuildResult:
        """전체 재구축 (관리자 요청, 실패는 그대로 전파)"""
        return await self.rebuilder.rebuild_all()

    async def check_consistency(self) -> list[AccountConsistency]:
        """정합성 점검"""
        return await self.rebuilder.check_consistency()

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_transaction(self, ref: str) -> Transaction:
        """거래 조회 (id → sequence_number)

        Raises:
            NotFoundError: 거래 없음
        """
        return await self.store.get_transaction(ref)

    async def list_transactions(
        self,
        kind: str | None = None,
        account: str | None = None,
        category: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 100,
    ) -> list[Transaction]:
        """거래 목록 (void 제외, 최신순)

        Raises:
            ValidationError: 잘못된 필터 값
        """
        if limit <= 0:
            raise ValidationError(f"limit must be positive: {limit}")

        return await self.store.get_transactions(
            kind=parse_kind(kind).value if kind else None,
            account=parse_account(account).value if account else None,
            category=category,
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
            limit=limit,
        )

    async def get_ledger(
        self,
        account: str,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 100,
    ) -> tuple[list[LedgerEntry], Decimal]:
        """계정 원장과 현재 잔액

        Returns:
            (최신순 원장 항목, 현재 잔액)

        Raises:
            ValidationError: 잘못된 계정/날짜
        """
        if limit <= 0:
            raise ValidationError(f"limit must be positive: {limit}")

        target = parse_account(account)
        entries = await self.store.get_ledger(
            target,
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
            limit=limit,
        )
        balance = await self.store.get_balance(target)
        return entries, balance.current_balance

    async def get_balances(self) -> dict[str, Any]:
        """현재 잔액 {cash, bank, last_updated}"""
        balances = await self.store.get_balances()
        updated = [b.last_updated for b in balances.values() if b.last_updated]
        return {
            Account.CASH.value: balances[Account.CASH].current_balance,
            Account.BANK.value: balances[Account.BANK].current_balance,
            "last_updated": max(updated) if updated else None,
        }
