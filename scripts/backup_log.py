#!/usr/bin/env python3
"""
거래 로그 백업/복원 스크립트

사용법:
    python scripts/backup_log.py export backup.json --mode production
    python scripts/backup_log.py import backup.json --merge-mode merge
    python scripts/backup_log.py summary backup.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path, init_schema
from core.ledger.backup import MERGE_MODES, LedgerBackup, summarize_export
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def export_log(db_path: Path, output: Path) -> None:
    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        export = await LedgerBackup(db).export_log()

    output.write_text(json.dumps(export, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info(f"내보내기 완료: {len(export['transactions'])}건 → {output}")


async def import_log(db_path: Path, source: Path, merge_mode: str) -> int:
    data = json.loads(source.read_text(encoding="utf-8"))

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        result = await LedgerBackup(db).import_log(data, merge_mode)

    logger.info(
        f"가져오기 완료: imported={result.imported} skipped={result.skipped} "
        f"renumbered={len(result.renumbered)}"
    )
    if result.rebuild.warning:
        logger.warning(result.rebuild.warning)
        return 1
    return 0


def show_summary(source: Path) -> None:
    summary = summarize_export(json.loads(source.read_text(encoding="utf-8")))
    print(json.dumps(summary, ensure_ascii=False, indent=2))


async def main(args: argparse.Namespace) -> int:
    setup_logging("scripts")
    db_path = args.db or get_db_path(args.mode)

    if args.command == "export":
        await export_log(db_path, args.file)
        return 0
    if args.command == "import":
        return await import_log(db_path, args.file, args.merge_mode)

    show_summary(args.file)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="거래 로그 백업/복원")
    parser.add_argument("command", choices=["export", "import", "summary"])
    parser.add_argument("file", type=Path, help="백업 JSON 파일")
    parser.add_argument(
        "--mode",
        choices=["development", "production"],
        default="development",
        help="실행 모드 (기본: development)",
    )
    parser.add_argument("--db", type=Path, default=None, help="DB 파일 경로 (mode 대신 사용)")
    parser.add_argument(
        "--merge-mode",
        choices=list(MERGE_MODES),
        default="replace",
        help="가져오기 방식 (기본: replace)",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args)))
