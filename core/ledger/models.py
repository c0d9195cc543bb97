"""
Ledger 도메인 모델

거래(Transaction), 원장 항목(LedgerEntry), 계정 잔액(AccountBalance) 정의.
금액은 모두 Decimal, DB에는 TEXT로 저장.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from core.domain.state_machines import TransactionState
from core.ledger.errors import ValidationError
from core.ledger.types import Account, LedgerEntryType, TransactionKind, TransferDirection
from core.utils.timezone import parse_business_date


def parse_amount(value: Any) -> Decimal:
    """금액을 양의 Decimal로 변환

    Raises:
        ValidationError: 숫자가 아니거나 0 이하인 경우
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("amount is required")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"amount must be a number: {value!r}") from e
    if not amount.is_finite():
        raise ValidationError(f"amount must be finite: {value!r}")
    if amount <= 0:
        raise ValidationError(f"amount must be positive: {value!r}")
    return amount


def parse_kind(value: Any) -> TransactionKind:
    """거래 유형 검증"""
    try:
        return TransactionKind(value)
    except ValueError as e:
        valid = [k.value for k in TransactionKind]
        raise ValidationError(f"unknown kind: {value!r} (valid: {valid})") from e


def parse_direction(value: Any) -> TransferDirection:
    """이체 방향 검증"""
    try:
        return TransferDirection(value)
    except ValueError as e:
        valid = [d.value for d in TransferDirection]
        raise ValidationError(
            f"unknown transfer_direction: {value!r} (valid: {valid})"
        ) from e


def parse_account(value: Any) -> Account:
    """계정 검증"""
    try:
        return Account(value)
    except ValueError as e:
        valid = [a.value for a in Account]
        raise ValidationError(f"unknown account: {value!r} (valid: {valid})") from e


def parse_date(value: Any) -> str:
    """업무 날짜 검증 (YYYY-MM-DD 또는 DD/MM/YYYY)"""
    if value is None:
        raise ValidationError("date is required")
    try:
        return parse_business_date(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"invalid date: {value!r}") from e


@dataclass(frozen=True)
class Effect:
    """거래 하나가 계정 하나에 미치는 영향

    change는 부호 있는 금액 (+ 증가, - 감소).
    """

    account: Account
    change: Decimal


@dataclass
class TransactionInput:
    """거래 생성 입력

    id, sequence_number를 제외한 거래 필드.
    from_dict()로 생성하면 모든 필드가 검증/정규화됨.
    """

    date: str
    kind: TransactionKind
    amount: Decimal
    account: Account | None = None
    transfer_direction: TransferDirection | None = None
    description: str = ""
    category: str | None = None
    subcategory: str | None = None
    payment_method: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    # 수정으로 생성되는 경우 원거래 id
    supersedes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionInput:
        """dict에서 검증된 입력 생성

        Raises:
            ValidationError: 필드 누락, 잘못된 kind/direction/account, 0 이하 금액
        """
        kind = parse_kind(data.get("kind"))
        amount = parse_amount(data.get("amount"))
        business_date = parse_date(data.get("date"))

        direction_value = data.get("transfer_direction")
        account_value = data.get("account")

        if kind == TransactionKind.TRANSFER:
            if direction_value is None:
                raise ValidationError("transfer_direction is required for transfers")
            direction: TransferDirection | None = parse_direction(direction_value)
            # 이체는 항상 두 계정 모두에 영향 (account 무시)
            account: Account | None = None
        else:
            if direction_value is not None:
                raise ValidationError(
                    f"transfer_direction is only allowed for transfers (kind={kind.value})"
                )
            direction = None
            account = parse_account(account_value if account_value is not None else Account.CASH.value)

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValidationError("metadata must be an object")

        description = data.get("description") or ""
        if not isinstance(description, str):
            raise ValidationError("description must be a string")

        return cls(
            date=business_date,
            kind=kind,
            amount=amount,
            account=account,
            transfer_direction=direction,
            description=description,
            category=data.get("category"),
            subcategory=data.get("subcategory"),
            payment_method=data.get("payment_method"),
            metadata=dict(metadata),
            supersedes=data.get("supersedes"),
        )


@dataclass
class Transaction:
    """거래 (진실의 원천)

    amount는 항상 양수. 방향은 kind/transfer_direction으로만 표현.
    """

    id: str
    sequence_number: str
    date: str
    created_at: str | None
    kind: TransactionKind
    amount: Decimal
    account: Account | None = None
    transfer_direction: TransferDirection | None = None
    description: str = ""
    category: str | None = None
    subcategory: str | None = None
    payment_method: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    # void / 수정 연결
    voided: bool = False
    void_reason: str | None = None
    voided_at: str | None = None
    supersedes: str | None = None
    superseded_by: str | None = None
    updated_at: str | None = None

    @property
    def state(self) -> TransactionState:
        """현재 생명주기 상태 (삭제된 거래는 조회되지 않음)"""
        return TransactionState.VOIDED if self.voided else TransactionState.ACTIVE

    def to_input_dict(self) -> dict[str, Any]:
        """수정 병합용 입력 dict (식별자/상태 필드 제외)"""
        return {
            "date": self.date,
            "kind": self.kind.value,
            "amount": self.amount,
            "account": self.account.value if self.account else None,
            "transfer_direction": (
                self.transfer_direction.value if self.transfer_direction else None
            ),
            "description": self.description,
            "category": self.category,
            "subcategory": self.subcategory,
            "payment_method": self.payment_method,
            "metadata": dict(self.metadata),
        }

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용 dict"""
        return {
            "id": self.id,
            "sequence_number": self.sequence_number,
            "date": self.date,
            "created_at": self.created_at,
            "kind": self.kind.value,
            "transfer_direction": (
                self.transfer_direction.value if self.transfer_direction else None
            ),
            "account": self.account.value if self.account else None,
            "amount": str(self.amount),
            "description": self.description,
            "category": self.category,
            "subcategory": self.subcategory,
            "payment_method": self.payment_method,
            "metadata": self.metadata,
            "voided": self.voided,
            "void_reason": self.void_reason,
            "voided_at": self.voided_at,
            "supersedes": self.supersedes,
            "superseded_by": self.superseded_by,
            "updated_at": self.updated_at,
        }


@dataclass
class LedgerEntry:
    """원장 항목 (파생 데이터, 언제든 재생성 가능)

    balance_after가 곧 화면 표시 잔액(display_balance).
    """

    transaction_id: str
    account: Account
    change_amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    date: str
    entry_type: LedgerEntryType = LedgerEntryType.TRANSACTION
    sequence: int | None = None
    ts: str | None = None

    original_transaction_id: str | None = None
    description: str | None = None
    kind: str | None = None
    transfer_direction: str | None = None
    payment_method: str | None = None

    entry_id: int | None = None

    @property
    def display_balance(self) -> Decimal:
        """표시 잔액 (= balance_after)"""
        return self.balance_after

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용 dict"""
        return {
            "entry_id": self.entry_id,
            "transaction_id": self.transaction_id,
            "account": self.account.value,
            "change_amount": str(self.change_amount),
            "balance_before": str(self.balance_before),
            "balance_after": str(self.balance_after),
            "display_balance": str(self.display_balance),
            "date": self.date,
            "sequence": self.sequence,
            "ts": self.ts,
            "entry_type": self.entry_type.value,
            "original_transaction_id": self.original_transaction_id,
            "description": self.description,
            "kind": self.kind,
            "transfer_direction": self.transfer_direction,
            "payment_method": self.payment_method,
        }


@dataclass
class AccountBalance:
    """계정 잔액 (캐시)

    current_balance는 해당 계정 마지막 원장 항목의 balance_after와 같아야 함.
    """

    account: Account
    current_balance: Decimal = Decimal("0")
    last_transaction_id: str | None = None
    transaction_count: int = 0
    last_updated: str | None = None
