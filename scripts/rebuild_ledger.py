#!/usr/bin/env python3
"""
원장 전체 재구축 스크립트

거래 로그를 처음부터 재생하여 cash/bank 원장과 잔액을 재생성.
재구축은 멱등이므로 언제 실행해도 안전.

사용법:
    python scripts/rebuild_ledger.py --mode development
    python scripts/rebuild_ledger.py --db data/custom.db
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path, init_schema
from core.config.loader import LedgerConfig
from core.ledger.rebuilder import LedgerRebuilder
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main(db_path: Path, batch_size: int) -> None:
    setup_logging("scripts")
    logger.info(f"원장 재구축 시작: {db_path}")

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)

        rebuilder = LedgerRebuilder(db, LedgerConfig(rebuild_batch_size=batch_size))
        result = await rebuilder.rebuild_all()

    logger.info(
        f"재구축 완료: 거래 {result.transactions_processed}건, "
        f"원장 항목 {result.entries_written}건"
    )
    for account, balance in result.final_balances.items():
        logger.info(f"  {account.value}: {balance}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="원장 전체 재구축")
    parser.add_argument(
        "--mode",
        choices=["development", "production"],
        default="development",
        help="실행 모드 (기본: development)",
    )
    parser.add_argument("--db", type=Path, default=None, help="DB 파일 경로 (mode 대신 사용)")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=LedgerConfig().rebuild_batch_size,
        help="거래 로그 배치 크기",
    )
    args = parser.parse_args()

    asyncio.run(main(args.db or get_db_path(args.mode), args.batch_size))
