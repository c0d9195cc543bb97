"""
원장 서비스

원장/잔액 조회, 재구축, 정합성 점검, 백업 API 응답 구성
"""

from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger.backup import LedgerBackup
from core.ledger.service import LedgerService
from web.services.transaction_service import format_balances


class LedgerViewService:
    """원장 서비스

    Args:
        db: SQLite 어댑터
        config: Ledger 설정
    """

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig | None = None):
        self.db = db
        self.ledger = LedgerService(db, config)
        self.backup = LedgerBackup(db, config, service=self.ledger)

    async def get_ledger(
        self,
        account: str,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 100,
    ) -> dict[str, Any]:
        """계정 원장 (최신순) + 현재 잔액"""
        entries, current_balance = await self.ledger.get_ledger(
            account,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )
        return {
            "account": account,
            "current_balance": str(current_balance),
            "entries": [entry.to_dict() for entry in entries],
        }

    async def get_balances(self) -> dict[str, Any]:
        """현재 잔액 {cash, bank, last_updated}"""
        balances = await self.ledger.get_balances()
        return {
            "cash": str(balances["cash"]),
            "bank": str(balances["bank"]),
            "last_updated": balances["last_updated"],
        }

    async def rebuild_ledger(self) -> dict[str, Any]:
        """전체 재구축"""
        result = await self.ledger.rebuild_ledger()
        return {
            "transactions_processed": result.transactions_processed,
            "entries_written": result.entries_written,
            "final_balances": format_balances(result.final_balances),
        }

    async def check_ledger(self) -> dict[str, Any]:
        """정합성 점검"""
        report = await self.ledger.check_consistency()
        return {
            "consistent": all(item.is_consistent for item in report),
            "accounts": [item.to_dict() for item in report],
        }

    async def export_data(self) -> dict[str, Any]:
        """거래 로그 내보내기"""
        return await self.backup.export_log()

    async def import_data(self, data: dict[str, Any], merge_mode: str) -> dict[str, Any]:
        """거래 로그 가져오기 + 전체 재구축"""
        result = await self.backup.import_log(data, merge_mode)
        return result.to_dict()
