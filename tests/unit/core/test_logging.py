"""
core/logging.py 테스트

로그 파일 경로, extra= 필드 출력, 핸들러 중복 방지
"""

import logging
import sys
from pathlib import Path

import pytest

from core.logging import ContextFormatter, get_log_file_path, setup_logging


@pytest.fixture
def restore_root_logger():
    """루트 로거 핸들러 복원"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level

    yield

    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("core.ledger.writer", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContextFormatter:
    """ContextFormatter 테스트"""

    def test_appends_known_fields_in_order(self) -> None:
        formatter = ContextFormatter("%(message)s")
        record = make_record("거래 생성", amount="100", transaction_id="TXN-1", other="x")

        assert formatter.format(record) == "거래 생성 | transaction_id=TXN-1 amount=100"

    def test_plain_message_unchanged(self) -> None:
        formatter = ContextFormatter("%(levelname)s %(message)s")

        assert formatter.format(make_record("hello")) == "INFO hello"

    def test_context_before_traceback(self) -> None:
        formatter = ContextFormatter("%(message)s")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "x", logging.ERROR, __file__, 1, "재구축 실패", None, sys.exc_info()
            )
        record.transaction_id = "TXN-9"

        first_line, _, rest = formatter.format(record).partition("\n")

        assert first_line == "재구축 실패 | transaction_id=TXN-9"
        assert "RuntimeError: boom" in rest


class TestSetupLogging:
    """setup_logging 테스트"""

    def test_log_file_path(self, temp_dir: Path) -> None:
        assert get_log_file_path("web", temp_dir) == temp_dir / "web" / "web.log"

    def test_writes_file_with_context(self, temp_dir: Path, restore_root_logger) -> None:
        setup_logging("scripts", log_dir=temp_dir)

        logging.getLogger("core.ledger.rebuilder").info(
            "원장 재구축 완료", extra={"accounts": ["cash"], "entries_written": 3}
        )
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = (temp_dir / "scripts" / "scripts.log").read_text(encoding="utf-8")
        assert "원장 재구축 완료 | accounts=['cash'] entries_written=3" in content

    def test_no_duplicate_handlers(self, temp_dir: Path, restore_root_logger) -> None:
        setup_logging("web", log_dir=temp_dir)
        setup_logging("web", log_dir=temp_dir)

        assert len(logging.getLogger().handlers) == 2
        assert logging.getLogger("aiosqlite").level == logging.WARNING
