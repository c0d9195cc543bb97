"""
pytest 공통 fixture 정의

임시 디렉토리, settings.yaml, 스키마가 생성된 임시 SQLite DB
"""

import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import LedgerConfig, Settings
from core.ledger.service import LedgerService


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    settings_content = """# 테스트용 settings.yaml
mode: development

ledger:
  max_commit_retries: 3
  retry_backoff_ms: 10
  rebuild_batch_size: 2

web:
  host: 0.0.0.0
  port: 9000
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_production(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성 (production 모드, db_path 지정)"""
    settings_content = """mode: production
db_path: data/ledger.db
"""
    settings_path = temp_dir / "settings_prod.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 settings.yaml 파일 생성"""
    settings_path = temp_dir / "settings_invalid.yaml"
    settings_path.write_text("mode: testnet\n", encoding="utf-8")
    return settings_path


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """Settings 싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def ledger_config() -> LedgerConfig:
    """작은 배치 크기로 배치 경계를 자주 넘도록 설정"""
    return LedgerConfig(max_commit_retries=3, retry_backoff_ms=5, rebuild_batch_size=2)


@pytest_asyncio.fixture
async def db(temp_dir: Path) -> SQLiteAdapter:
    """스키마가 생성된 임시 DB"""
    adapter = SQLiteAdapter(temp_dir / "test_ledger.db")
    await adapter.connect()
    await init_schema(adapter)

    yield adapter

    await adapter.close()


@pytest.fixture
def service(db: SQLiteAdapter, ledger_config: LedgerConfig) -> LedgerService:
    """LedgerService 인스턴스"""
    return LedgerService(db, ledger_config)
