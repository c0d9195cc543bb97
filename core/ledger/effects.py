"""
거래 영향 계산

거래 하나를 (계정, 부호 있는 금액) 목록으로 변환하는 순수 함수.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.ledger.errors import ValidationError
from core.ledger.models import Effect
from core.ledger.types import Account, TransactionKind, TransferDirection

if TYPE_CHECKING:
    from core.ledger.models import Transaction, TransactionInput


def resolve_effects(txn: Transaction | TransactionInput) -> list[Effect]:
    """거래 → 계정별 영향

    - expense: (account, -amount)
    - income: (account, +amount)
    - transfer/withdrawal: (bank, -amount), (cash, +amount)
    - transfer/deposit: (cash, -amount), (bank, +amount)

    Raises:
        ValidationError: 알 수 없는 kind/direction, 계정 누락, 0 이하 금액
    """
    amount = txn.amount
    if amount is None or amount <= 0:
        raise ValidationError(f"amount must be positive: {amount!r}")

    if txn.kind == TransactionKind.TRANSFER:
        if txn.transfer_direction == TransferDirection.WITHDRAWAL:
            return [
                Effect(Account.BANK, -amount),
                Effect(Account.CASH, amount),
            ]
        if txn.transfer_direction == TransferDirection.DEPOSIT:
            return [
                Effect(Account.CASH, -amount),
                Effect(Account.BANK, amount),
            ]
        raise ValidationError(
            f"unknown transfer_direction: {txn.transfer_direction!r}"
        )

    if txn.account is None:
        raise ValidationError(f"account is required for {txn.kind!r}")

    if txn.kind == TransactionKind.EXPENSE:
        return [Effect(txn.account, -amount)]
    if txn.kind == TransactionKind.INCOME:
        return [Effect(txn.account, amount)]

    raise ValidationError(f"unknown kind: {txn.kind!r}")


def affected_accounts(txn: Transaction | TransactionInput) -> list[Account]:
    """거래가 영향을 주는 계정 목록 (중복 없음, 영향 순서 유지)"""
    accounts: list[Account] = []
    for effect in resolve_effects(txn):
        if effect.account not in accounts:
            accounts.append(effect.account)
    return accounts
