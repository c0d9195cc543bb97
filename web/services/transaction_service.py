"""
거래 서비스

거래 생성/조회/수정/삭제 API 응답 구성
"""

from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger.service import LedgerService, RebuildOutcome
from core.ledger.types import Account


def format_balances(balances: dict[Account, Decimal] | None) -> dict[str, str] | None:
    """{Account: Decimal} → {"cash": "..."}"""
    if balances is None:
        return None
    return {account.value: str(amount) for account, amount in balances.items()}


class TransactionService:
    """거래 서비스

    LedgerService 결과를 JSON 응답 형태로 변환.
    """

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig | None = None):
        self.db = db
        self.ledger = LedgerService(db, config)

    async def create_transaction(self, fields: dict[str, Any]) -> dict[str, Any]:
        """거래 생성

        Returns:
            id, sequence_number, ledger_rebuilt, warning 포함 응답
        """
        result = await self.ledger.create_transaction(fields)
        txn = result.transaction

        return {
            "id": txn.id,
            "sequence_number": txn.sequence_number,
            "transaction": txn.to_dict(),
            **_rebuild_fields(result.rebuild),
        }

    async def get_transactions(
        self,
        kind: str | None = None,
        account: str | None = None,
        category: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """거래 목록 조회 (void 제외, 최신순)"""
        transactions = await self.ledger.list_transactions(
            kind=kind,
            account=account,
            category=category,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )
        return [txn.to_dict() for txn in transactions]

    async def get_transaction(self, ref: str) -> dict[str, Any]:
        """거래 단건 조회 (id 또는 sequence_number)"""
        txn = await self.ledger.get_transaction(ref)
        return txn.to_dict()

    async def update_transaction(self, ref: str, patch: dict[str, Any]) -> dict[str, Any]:
        """거래 수정

        Returns:
            id, new_id(대체된 경우), ledger_rebuilt, updated_balances, warning
        """
        result = await self.ledger.update_transaction(ref, patch)
        revision = result.revision

        response: dict[str, Any] = {
            "id": revision.original.id,
            "new_id": revision.new_id,
            "transaction": revision.transaction.to_dict(),
            **_rebuild_fields(result.rebuild),
        }
        if revision.reversal_entries:
            response["reversal_entries"] = [
                entry.to_dict() for entry in revision.reversal_entries
            ]
        return response

    async def delete_transaction(self, ref: str) -> dict[str, Any]:
        """거래 삭제

        Returns:
            deleted_id, ledger_rebuilt, updated_balances, warning
        """
        result = await self.ledger.delete_transaction(ref)
        return {
            "deleted_id": result.transaction.id,
            "sequence_number": result.transaction.sequence_number,
            **_rebuild_fields(result.rebuild),
        }


def _rebuild_fields(outcome: RebuildOutcome) -> dict[str, Any]:
    return {
        "ledger_rebuilt": outcome.ledger_rebuilt,
        "updated_balances": format_balances(outcome.updated_balances),
        "warning": outcome.warning,
    }
