"""
Web 서비스 패키지

비즈니스 로직 처리
"""

from web.services.ledger_service import LedgerViewService
from web.services.transaction_service import TransactionService

__all__ = [
    "LedgerViewService",
    "TransactionService",
]
