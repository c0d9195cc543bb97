"""
Ledger 저장소

거래 로그(transactions), 원장(ledger_entries), 잔액 캐시(account_balances)
행 단위 저장 및 조회.

쓰기 메서드는 커밋하지 않음. 반드시 호출자의 원자 단위 안에서 사용.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable

from core.ledger.errors import NotFoundError
from core.ledger.models import AccountBalance, LedgerEntry, Transaction
from core.ledger.types import (
    ALL_ACCOUNTS,
    Account,
    LedgerEntryType,
    NON_FINANCIAL_FIELDS,
    TransactionKind,
    TransferDirection,
)

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


TRANSACTION_COLUMNS = """
    id, sequence_number, date, created_at, kind, transfer_direction, account,
    amount, description, category, subcategory, payment_method, metadata_json,
    voided, void_reason, voided_at, supersedes, superseded_by, updated_at
"""

ENTRY_COLUMNS = """
    entry_id, transaction_id, account, change_amount, balance_before,
    balance_after, date, sequence, ts, entry_type, original_transaction_id,
    description, kind, transfer_direction, payment_method
"""

# 재구축 재생 순서: 업무 날짜 → 생성 시각 → 삽입 순서
REPLAY_ORDER = "ORDER BY date ASC, created_at ASC, rowid ASC"


def row_to_transaction(row: tuple[Any, ...]) -> Transaction:
    """transactions 행 → Transaction"""
    return Transaction(
        id=row[0],
        sequence_number=row[1],
        date=row[2],
        created_at=row[3],
        kind=TransactionKind(row[4]),
        transfer_direction=TransferDirection(row[5]) if row[5] else None,
        account=Account(row[6]) if row[6] else None,
        amount=Decimal(row[7]),
        description=row[8] or "",
        category=row[9],
        subcategory=row[10],
        payment_method=row[11],
        metadata=json.loads(row[12]) if row[12] else {},
        voided=bool(row[13]),
        void_reason=row[14],
        voided_at=row[15],
        supersedes=row[16],
        superseded_by=row[17],
        updated_at=row[18],
    )


def row_to_entry(row: tuple[Any, ...]) -> LedgerEntry:
    """ledger_entries 행 → LedgerEntry"""
    return LedgerEntry(
        entry_id=row[0],
        transaction_id=row[1],
        account=Account(row[2]),
        change_amount=Decimal(row[3]),
        balance_before=Decimal(row[4]),
        balance_after=Decimal(row[5]),
        date=row[6],
        sequence=row[7],
        ts=row[8],
        entry_type=LedgerEntryType(row[9]),
        original_transaction_id=row[10],
        description=row[11],
        kind=row[12],
        transfer_direction=row[13],
        payment_method=row[14],
    )


class LedgerStore:
    """Ledger 저장소

    SQL을 한곳에 모아둔 행 단위 접근 계층.
    잔액 계산/순서 결정 같은 규칙은 writer/rebuilder/revision이 담당.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # transactions
    # -------------------------------------------------------------------------

    async def insert_transaction(self, txn: Transaction) -> None:
        """거래 저장"""
        await self.db.execute(
            f"""
            INSERT INTO transactions ({TRANSACTION_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                txn.id,
                txn.sequence_number,
                txn.date,
                txn.created_at,
                txn.kind.value,
                txn.transfer_direction.value if txn.transfer_direction else None,
                txn.account.value if txn.account else None,
                str(txn.amount),
                txn.description,
                txn.category,
                txn.subcategory,
                txn.payment_method,
                json.dumps(txn.metadata, ensure_ascii=False),
                1 if txn.voided else 0,
                txn.void_reason,
                txn.voided_at,
                txn.supersedes,
                txn.superseded_by,
                txn.updated_at,
            ),
        )

    async def find_transaction(self, ref: str) -> Transaction | None:
        """거래 조회 (id 우선, 없으면 sequence_number)

        Args:
            ref: 거래 id 또는 sequence_number

        Returns:
            Transaction 또는 None
        """
        row = await self.db.fetchone(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ?",
            (ref,),
        )
        if row is None:
            row = await self.db.fetchone(
                f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE sequence_number = ?",
                (ref,),
            )
        return row_to_transaction(row) if row else None

    async def get_transaction(self, ref: str) -> Transaction:
        """거래 조회

        Raises:
            NotFoundError: id, sequence_number 모두 일치하지 않음
        """
        txn = await self.find_transaction(ref)
        if txn is None:
            raise NotFoundError(ref)
        return txn

    async def get_transactions(
        self,
        kind: str | None = None,
        account: str | None = None,
        category: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 100,
        include_voided: bool = False,
    ) -> list[Transaction]:
        """거래 목록 조회 (최신순: created_at DESC, date DESC)

        account 필터는 해당 계정에 기록된 거래와 모든 이체를 포함
        (이체는 cash/bank 양쪽에 영향).

        Args:
            kind: 거래 유형 필터
            account: 계정 필터
            category: 카테고리 필터
            start_date: 시작 날짜 (포함)
            end_date: 종료 날짜 (포함)
            limit: 최대 개수
            include_voided: void된 거래 포함 여부

        Returns:
            거래 목록
        """
        conditions: list[str] = []
        params: list[Any] = []

        if not include_voided:
            conditions.append("voided = 0")
        if kind:
            conditions.append("kind = ?")
            params.append(kind)
        if account:
            conditions.append("(account = ? OR kind = ?)")
            params.extend([account, TransactionKind.TRANSFER.value])
        if category:
            conditions.append("category = ?")
            params.append(category)
        if start_date:
            conditions.append("date >= ?")
            params.append(start_date)
        if end_date:
            conditions.append("date <= ?")
            params.append(end_date)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(limit)

        rows = await self.db.fetchall(
            f"""
            SELECT {TRANSACTION_COLUMNS}
            FROM transactions
            {where}
            ORDER BY created_at DESC, date DESC, rowid DESC
            LIMIT ?
            """,
            tuple(params),
        )
        return [row_to_transaction(row) for row in rows]

    async def fetch_replay_batch(self, offset: int, limit: int) -> list[Transaction]:
        """재구축용 거래 배치 조회 (void 제외, 재생 순서)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {TRANSACTION_COLUMNS}
            FROM transactions
            WHERE voided = 0
            {REPLAY_ORDER}
            LIMIT ? OFFSET ?
            """,
            (limit, offset),
        )
        return [row_to_transaction(row) for row in rows]

    async def list_all_transactions(self) -> list[Transaction]:
        """전체 거래 로그 (void 포함, 재생 순서) - 백업용"""
        rows = await self.db.fetchall(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions {REPLAY_ORDER}"
        )
        return [row_to_transaction(row) for row in rows]

    async def mark_voided(
        self,
        txn_id: str,
        reason: str,
        voided_at: str,
        superseded_by: str | None = None,
    ) -> None:
        """거래를 void 처리 (금융 필드는 변경하지 않음)"""
        await self.db.execute(
            """
            UPDATE transactions
            SET voided = 1, void_reason = ?, voided_at = ?, superseded_by = ?
            WHERE id = ?
            """,
            (reason, voided_at, superseded_by, txn_id),
        )

    async def update_details(
        self,
        txn_id: str,
        changes: dict[str, Any],
        updated_at: str,
    ) -> None:
        """비금융 필드 제자리 수정

        Args:
            txn_id: 거래 id
            changes: {필드명: 값} (NON_FINANCIAL_FIELDS만 허용)
            updated_at: 수정 시각

        Raises:
            ValueError: 비금융 필드가 아닌 필드가 포함된 경우
        """
        unknown = set(changes) - NON_FINANCIAL_FIELDS
        if unknown:
            raise ValueError(f"제자리 수정 불가 필드: {sorted(unknown)}")

        assignments: list[str] = []
        params: list[Any] = []
        for name in sorted(changes):
            value = changes[name]
            if name == "metadata":
                assignments.append("metadata_json = ?")
                params.append(json.dumps(value or {}, ensure_ascii=False))
            else:
                assignments.append(f"{name} = ?")
                params.append(value)

        assignments.append("updated_at = ?")
        params.extend([updated_at, txn_id])

        await self.db.execute(
            f"UPDATE transactions SET {', '.join(assignments)} WHERE id = ?",
            tuple(params),
        )

    async def delete_transaction(self, txn_id: str) -> None:
        """거래 영구 삭제"""
        await self.db.execute("DELETE FROM transactions WHERE id = ?", (txn_id,))

    async def delete_all_transactions(self) -> int:
        """전체 거래 로그 삭제 (백업 replace 복원용)

        Returns:
            삭제된 거래 수
        """
        cursor = await self.db.execute("DELETE FROM transactions")
        await self.db.execute("DELETE FROM transaction_sequences")
        return cursor.rowcount

    # -------------------------------------------------------------------------
    # ledger_entries
    # -------------------------------------------------------------------------

    async def insert_entries(self, entries: Iterable[LedgerEntry]) -> int:
        """원장 항목 일괄 저장

        Returns:
            저장된 항목 수
        """
        rows = [
            (
                entry.transaction_id,
                entry.account.value,
                str(entry.change_amount),
                str(entry.balance_before),
                str(entry.balance_after),
                entry.date,
                entry.sequence,
                entry.ts,
                entry.entry_type.value,
                entry.original_transaction_id,
                entry.description,
                entry.kind,
                entry.transfer_direction,
                entry.payment_method,
            )
            for entry in entries
        ]
        if not rows:
            return 0

        await self.db.executemany(
            """
            INSERT INTO ledger_entries (
                transaction_id, account, change_amount, balance_before,
                balance_after, date, sequence, ts, entry_type,
                original_transaction_id, description, kind,
                transfer_direction, payment_method
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        return len(rows)

    async def delete_entries(self, accounts: Iterable[Account]) -> None:
        """계정의 원장 항목 전체 삭제 (임시/역분개 항목 포함)"""
        for account in accounts:
            await self.db.execute(
                "DELETE FROM ledger_entries WHERE account = ?",
                (account.value,),
            )

    async def get_ledger(
        self,
        account: Account,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 100,
    ) -> list[LedgerEntry]:
        """계정 원장 조회 (최신순: date DESC, sequence DESC)"""
        conditions = ["account = ?"]
        params: list[Any] = [account.value]

        if start_date:
            conditions.append("date >= ?")
            params.append(start_date)
        if end_date:
            conditions.append("date <= ?")
            params.append(end_date)
        params.append(limit)

        rows = await self.db.fetchall(
            f"""
            SELECT {ENTRY_COLUMNS}
            FROM ledger_entries
            WHERE {' AND '.join(conditions)}
            ORDER BY date DESC, sequence DESC, entry_id DESC
            LIMIT ?
            """,
            tuple(params),
        )
        return [row_to_entry(row) for row in rows]

    async def get_entries(self, account: Account) -> list[LedgerEntry]:
        """계정 원장 전체 (시간순: date ASC, sequence ASC)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {ENTRY_COLUMNS}
            FROM ledger_entries
            WHERE account = ?
            ORDER BY date ASC, sequence ASC, entry_id ASC
            """,
            (account.value,),
        )
        return [row_to_entry(row) for row in rows]

    async def get_entries_for_transaction(self, transaction_id: str) -> list[LedgerEntry]:
        """거래 id로 원장 항목 조회 (역분개 항목은 {id}-VOID)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {ENTRY_COLUMNS}
            FROM ledger_entries
            WHERE transaction_id = ?
            ORDER BY entry_id ASC
            """,
            (transaction_id,),
        )
        return [row_to_entry(row) for row in rows]

    async def get_max_sequence(self, account: Account) -> int:
        """계정 원장 항목의 최대 sequence (없으면 0)"""
        row = await self.db.fetchone(
            "SELECT MAX(sequence) FROM ledger_entries WHERE account = ?",
            (account.value,),
        )
        return row[0] if row and row[0] is not None else 0

    async def get_last_entry(self, account: Account) -> LedgerEntry | None:
        """계정의 시간순 마지막 원장 항목"""
        row = await self.db.fetchone(
            f"""
            SELECT {ENTRY_COLUMNS}
            FROM ledger_entries
            WHERE account = ?
            ORDER BY date DESC, sequence DESC, entry_id DESC
            LIMIT 1
            """,
            (account.value,),
        )
        return row_to_entry(row) if row else None

    # -------------------------------------------------------------------------
    # account_balances
    # -------------------------------------------------------------------------

    async def upsert_balance(self, balance: AccountBalance) -> None:
        """계정 잔액 저장"""
        await self.db.execute(
            """
            INSERT INTO account_balances (
                account, current_balance, last_transaction_id,
                transaction_count, last_updated
            ) VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(account) DO UPDATE SET
                current_balance = excluded.current_balance,
                last_transaction_id = excluded.last_transaction_id,
                transaction_count = excluded.transaction_count,
                last_updated = excluded.last_updated
            """,
            (
                balance.account.value,
                str(balance.current_balance),
                balance.last_transaction_id,
                balance.transaction_count,
                balance.last_updated,
            ),
        )

    async def get_balance(self, account: Account) -> AccountBalance:
        """계정 잔액 조회 (행이 없으면 0)"""
        row = await self.db.fetchone(
            """
            SELECT current_balance, last_transaction_id, transaction_count, last_updated
            FROM account_balances
            WHERE account = ?
            """,
            (account.value,),
        )
        if row is None:
            return AccountBalance(account=account)

        return AccountBalance(
            account=account,
            current_balance=Decimal(row[0]),
            last_transaction_id=row[1],
            transaction_count=int(row[2] or 0),
            last_updated=row[3],
        )

    async def get_balances(self) -> dict[Account, AccountBalance]:
        """전체 계정 잔액"""
        return {account: await self.get_balance(account) for account in ALL_ACCOUNTS}
