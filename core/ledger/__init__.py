"""
원장 정합성 엔진

거래 로그(진실의 원천)에서 원장 항목과 계정 잔액을 파생.
쓰기는 원자 단위로, 잔액은 재구축으로 확정.

사용 예시:
```python
from core.ledger import LedgerService

service = LedgerService(db)

result = await service.create_transaction({
    "date": "2025-01-05",
    "kind": "expense",
    "amount": "100",
    "account": "cash",
})
if result.warning:
    logger.warning(result.warning)

balances = await service.get_balances()
```
"""

from core.ledger.backup import ImportResult, LedgerBackup
from core.ledger.effects import affected_accounts, resolve_effects
from core.ledger.errors import (
    ConflictError,
    LedgerError,
    NotFoundError,
    RebuildError,
    ValidationError,
)
from core.ledger.models import (
    AccountBalance,
    Effect,
    LedgerEntry,
    Transaction,
    TransactionInput,
)
from core.ledger.rebuilder import AccountConsistency, LedgerRebuilder, RebuildResult
from core.ledger.revision import RevisionResult, TransactionRevisionHandler
from core.ledger.service import (
    CreateResult,
    DeleteResult,
    LedgerService,
    RebuildOutcome,
    UpdateResult,
)
from core.ledger.store import LedgerStore
from core.ledger.types import (
    ALL_ACCOUNTS,
    Account,
    LedgerEntryType,
    TransactionKind,
    TransferDirection,
)
from core.ledger.writer import TransactionWriter

__all__ = [
    # 핵심 클래스
    "LedgerService",
    "LedgerStore",
    "TransactionWriter",
    "LedgerRebuilder",
    "TransactionRevisionHandler",
    "LedgerBackup",
    # 모델
    "Transaction",
    "TransactionInput",
    "LedgerEntry",
    "AccountBalance",
    "Effect",
    # 결과
    "CreateResult",
    "UpdateResult",
    "DeleteResult",
    "RebuildOutcome",
    "RebuildResult",
    "RevisionResult",
    "AccountConsistency",
    "ImportResult",
    # 함수
    "resolve_effects",
    "affected_accounts",
    # 예외
    "LedgerError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "RebuildError",
    # Enum / 상수
    "Account",
    "TransactionKind",
    "TransferDirection",
    "LedgerEntryType",
    "ALL_ACCOUNTS",
]
