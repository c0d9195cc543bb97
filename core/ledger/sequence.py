"""
거래 식별자 생성

- id: TXN-{epoch_ms}-{random9} (불투명, 전역 고유)
- sequence_number: {year}-{00001} (업무 날짜 연도별 단조 증가)

sequence_number는 반드시 호출자의 원자 단위 안에서 할당해야 함.
중단된 원자 단위로 인한 번호 공백은 허용, 중복은 불가 (UNIQUE 제약).
"""

from __future__ import annotations

import secrets
import string
import time
from typing import TYPE_CHECKING

from core.utils.timezone import now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

# 거래 id 접두사
TRANSACTION_ID_PREFIX: str = "TXN"

# 0-9a-z (36진수)
_BASE36_ALPHABET = string.digits + string.ascii_lowercase

_RANDOM_LENGTH = 9
_SEQUENCE_WIDTH = 5


def new_transaction_id() -> str:
    """새 거래 id 생성

    Returns:
        TXN-{epoch_ms}-{random9} 형식 문자열

    Example:
        >>> new_transaction_id()
        'TXN-1736035200000-k3j9x0a2b'
    """
    epoch_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(_RANDOM_LENGTH))
    return f"{TRANSACTION_ID_PREFIX}-{epoch_ms}-{suffix}"


def format_sequence_number(year: int, sequence: int) -> str:
    """연도와 일련번호로 sequence_number 생성

    Example:
        >>> format_sequence_number(2025, 1)
        '2025-00001'
    """
    if sequence <= 0:
        raise ValueError(f"sequence는 1 이상이어야 합니다: {sequence}")
    return f"{year}-{sequence:0{_SEQUENCE_WIDTH}d}"


def parse_sequence_number(sequence_number: str) -> tuple[int, int] | None:
    """sequence_number에서 (year, sequence) 추출

    Returns:
        (year, sequence) 또는 None (형식 불일치 시)

    Example:
        >>> parse_sequence_number("2025-00042")
        (2025, 42)
        >>> parse_sequence_number("TXN-1-abc")
        None
    """
    if not sequence_number:
        return None

    year_part, sep, seq_part = sequence_number.partition("-")
    if not sep or not year_part.isdigit() or not seq_part.isdigit():
        return None

    return int(year_part), int(seq_part)


async def next_sequence(db: SQLiteAdapter, year: int) -> int:
    """연도별 다음 일련번호 할당

    현재 값을 읽고 카운터를 1 증가시킴.
    호출자가 연 BEGIN IMMEDIATE 원자 단위 안에서 호출해야 함.

    Args:
        db: SQLite 어댑터 (원자 단위 진행 중)
        year: 업무 날짜 연도

    Returns:
        할당된 일련번호 (1부터 시작)
    """
    row = await db.fetchone(
        "SELECT next_sequence FROM transaction_sequences WHERE year = ?",
        (year,),
    )
    sequence = int(row[0]) if row and row[0] else 1

    await db.execute(
        """
        INSERT INTO transaction_sequences (year, next_sequence, last_used)
        VALUES (?, ?, ?)
        ON CONFLICT(year) DO UPDATE SET
            next_sequence = excluded.next_sequence,
            last_used = excluded.last_used
        """,
        (year, sequence + 1, now_utc_iso()),
    )

    return sequence


async def reserve_sequence(db: SQLiteAdapter, year: int, sequence: int) -> None:
    """외부에서 들어온 일련번호 이후로 카운터를 전진

    백업 복원 시 기존 sequence_number를 유지하면서
    이후 생성되는 번호와 충돌하지 않도록 함.
    """
    await db.execute(
        """
        INSERT INTO transaction_sequences (year, next_sequence, last_used)
        VALUES (?, ?, ?)
        ON CONFLICT(year) DO UPDATE SET
            next_sequence = MAX(next_sequence, excluded.next_sequence),
            last_used = excluded.last_used
        """,
        (year, sequence + 1, now_utc_iso()),
    )
