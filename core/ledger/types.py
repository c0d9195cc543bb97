"""
Ledger 타입 정의

계정, 거래 유형 등 Ledger 시스템에서 사용하는 Enum과 상수
"""

from enum import Enum


class Account(str, Enum):
    """계정

    현금(cash)과 은행(bank) 두 계정만 존재.
    str을 상속하여 JSON 직렬화 가능.
    """

    CASH = "cash"
    BANK = "bank"


class TransactionKind(str, Enum):
    """거래 유형"""

    EXPENSE = "expense"  # 지출 (계정 감소)
    INCOME = "income"  # 수입 (계정 증가)
    TRANSFER = "transfer"  # 계정 간 이체 (두 계정 모두 영향)


class TransferDirection(str, Enum):
    """이체 방향 (kind=transfer일 때만 사용)"""

    WITHDRAWAL = "withdrawal"  # 은행 → 현금 (ATM 출금)
    DEPOSIT = "deposit"  # 현금 → 은행 (입금)


class LedgerEntryType(str, Enum):
    """원장 항목 유형"""

    TRANSACTION = "transaction"  # 재구축이 생성한 확정 항목
    PROVISIONAL = "provisional"  # 생성 직후 임시 항목 (재구축으로 대체됨)
    REVERSAL = "reversal"  # 수정 시 원거래 역분개


# 전체 계정 목록 (전체 재구축 대상)
ALL_ACCOUNTS: tuple[Account, ...] = (Account.CASH, Account.BANK)

# 변경 시 void + 재생성 + 전체 재구축이 필요한 필드
FINANCIAL_FIELDS: frozenset[str] = frozenset({
    "amount",
    "account",
    "kind",
    "transfer_direction",
    "date",
})

# 제자리 수정 가능한 필드 (재구축 불필요)
NON_FINANCIAL_FIELDS: frozenset[str] = frozenset({
    "description",
    "category",
    "subcategory",
    "payment_method",
    "metadata",
})

# 수정 요청에서 허용되는 전체 필드
EDITABLE_FIELDS: frozenset[str] = FINANCIAL_FIELDS | NON_FINANCIAL_FIELDS

# 수정으로 대체될 때 기록되는 void 사유
VOID_REASON_UPDATED = "Updated"

# 역분개 항목의 transaction_id 접미사
REVERSAL_SUFFIX = "-VOID"
