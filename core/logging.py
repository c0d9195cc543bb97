"""
로깅 설정 유틸리티

Web과 관리 스크립트에서 사용하는 공통 로깅 설정.
- 콘솔: INFO 레벨
- 파일: INFO 레벨 (TimedRotatingFileHandler, daily)
- 로그 호출의 extra= 중 원장 필드(transaction_id, account 등)는 줄 끝에 key=value로 출력

사용법:
    from core.logging import setup_logging
    setup_logging("web")      # Web용 로거 설정
    setup_logging("scripts")  # 관리 스크립트용 로거 설정
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 14  # 2주치 파일 유지

# extra= 로 전달되어 로그 줄에 붙는 필드 (출력 순서)
CONTEXT_FIELDS: tuple[str, ...] = (
    "transaction_id",
    "new_id",
    "sequence_number",
    "kind",
    "amount",
    "account",
    "accounts",
    "transactions_processed",
    "entries_written",
    "final_balances",
    "cached_balance",
    "ledger_balance",
    "replayed_balance",
    "chain_valid",
    "label",
    "attempt",
    "merge_mode",
    "imported",
    "skipped",
    "error",
)

# SQL 실행마다 로그를 남기는 로거 등 (WARNING 이상만)
NOISY_LOGGERS = [
    "aiosqlite",
    "httpcore",
    "httpx",
    "asyncio",
    "uvicorn.access",
]


class ContextFormatter(logging.Formatter):
    """extra= 원장 필드를 메시지 뒤에 붙이는 Formatter

    Example:
        >>> logger.info("거래 생성", extra={"transaction_id": "TXN-1", "amount": "100"})
        ... | 거래 생성 | transaction_id=TXN-1 amount=100
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        if not context:
            return line

        # 예외 traceback이 있으면 첫 줄(메시지) 뒤에 삽입
        head, sep, tail = line.partition("\n")
        return f"{head} | {' '.join(context)}{sep}{tail}"


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """로그 파일 경로 반환

    Args:
        process_name: 프로세스 이름 ("web" 또는 "scripts")
        log_dir: 로그 디렉토리 (None이면 기본 경로)
    """
    base_dir = log_dir if log_dir is not None else Paths.LOGS_DIR
    return base_dir / process_name / f"{process_name}.log"


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """로깅 설정 초기화

    프로세스 이름별 로그 디렉토리에 파일 로그 저장 (매일 자정 롤링).
    여러 번 호출해도 핸들러는 중복되지 않음.

    Args:
        process_name: 프로세스 이름 ("web" 또는 "scripts")
        console_level: 콘솔 로그 레벨
        file_level: 파일 로그 레벨
        log_dir: 로그 루트 디렉토리 (None이면 Paths.LOGS_DIR)

    Returns:
        설정된 루트 Logger
    """
    log_file = get_log_file_path(process_name, log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # 핸들러에서 필터링
    root_logger.handlers.clear()

    formatter = ContextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"  # web.log.2025-01-05
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        f"로깅 초기화 완료: {process_name} ({log_file}, {LOG_FILE_BACKUP_COUNT}일 보관)"
    )
    return root_logger
