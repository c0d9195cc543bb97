#!/usr/bin/env python3
"""
원장 정합성 점검 스크립트

계정별로 캐시 잔액, 마지막 원장 항목, 거래 로그 재생 합계를 비교.
불일치가 있으면 종료 코드 1 (--fix 지정 시 재구축 후 재점검).

사용법:
    python scripts/check_ledger.py --mode production
    python scripts/check_ledger.py --mode production --fix
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path
from core.ledger.rebuilder import LedgerRebuilder
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main(db_path: Path, fix: bool) -> int:
    setup_logging("scripts")

    async with SQLiteAdapter(db_path) as db:
        rebuilder = LedgerRebuilder(db)
        report = await rebuilder.check_consistency()

        for item in report:
            status = "OK" if item.is_consistent else "MISMATCH"
            logger.info(
                f"[{status}] {item.account.value}: cached={item.cached_balance} "
                f"ledger={item.ledger_balance} replayed={item.replayed_balance} "
                f"chain_valid={item.chain_valid}"
            )

        if all(item.is_consistent for item in report):
            return 0

        if not fix:
            logger.error("원장 불일치 발견 (--fix로 재구축 가능)")
            return 1

        logger.info("재구축 실행")
        await rebuilder.rebuild_all()
        report = await rebuilder.check_consistency()

    if all(item.is_consistent for item in report):
        logger.info("재구축 후 정합성 확인 ✓")
        return 0

    logger.error("재구축 후에도 불일치")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="원장 정합성 점검")
    parser.add_argument(
        "--mode",
        choices=["development", "production"],
        default="development",
        help="실행 모드 (기본: development)",
    )
    parser.add_argument("--db", type=Path, default=None, help="DB 파일 경로 (mode 대신 사용)")
    parser.add_argument("--fix", action="store_true", help="불일치 시 전체 재구축")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.db or get_db_path(args.mode), args.fix)))
