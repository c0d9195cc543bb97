"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, Settings 싱글턴 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    AppConfig,
    LedgerConfig,
    Settings,
    SettingsLoadError,
    WebConfig,
    get_db_path,
    get_settings,
    load_config,
)
from core.constants import Defaults, Paths
from core.types import AppMode


class TestConfigDataclasses:
    """설정 데이터클래스 테스트"""

    def test_ledger_defaults(self) -> None:
        config = LedgerConfig()

        assert config.max_commit_retries == Defaults.MAX_COMMIT_RETRIES
        assert config.retry_backoff_ms == Defaults.RETRY_BACKOFF_MS
        assert config.rebuild_batch_size == Defaults.REBUILD_BATCH_SIZE

    def test_frozen(self) -> None:
        """불변성 확인"""
        config = AppConfig(mode=AppMode.DEVELOPMENT)

        with pytest.raises(AttributeError):
            config.mode = AppMode.PRODUCTION  # type: ignore


class TestLoadConfig:
    """load_config 테스트"""

    def test_load_valid_file(self, temp_settings_file: Path) -> None:
        config = load_config(temp_settings_file)

        assert config.mode == AppMode.DEVELOPMENT
        assert config.ledger == LedgerConfig(
            max_commit_retries=3, retry_backoff_ms=10, rebuild_batch_size=2
        )
        assert config.web == WebConfig(host="0.0.0.0", port=9000)
        assert config.db_path is None

    def test_db_path_relative_to_settings_file(
        self, temp_settings_file_production: Path
    ) -> None:
        """상대 db_path는 설정 파일 기준"""
        config = load_config(temp_settings_file_production)

        assert config.mode == AppMode.PRODUCTION
        assert config.db_path == temp_settings_file_production.parent / "data" / "ledger.db"
        assert config.ledger == LedgerConfig()

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(SettingsLoadError, match="찾을 수 없습니다"):
            load_config(temp_dir / "nope.yaml")

    def test_empty_file(self, temp_dir: Path) -> None:
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="비어 있습니다"):
            load_config(path)

    def test_broken_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "broken.yaml"
        path.write_text("mode: [development\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="파싱 실패"):
            load_config(path)

    def test_missing_mode(self, temp_dir: Path) -> None:
        path = temp_dir / "no_mode.yaml"
        path.write_text("web:\n  port: 8000\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="mode"):
            load_config(path)

    def test_invalid_mode(self, temp_settings_file_invalid_mode: Path) -> None:
        with pytest.raises(ValueError, match="유효하지 않은 mode"):
            load_config(temp_settings_file_invalid_mode)

    @pytest.mark.parametrize("value", ["0", "-1", "abc", "true"])
    def test_invalid_retry_count(self, temp_dir: Path, value: str) -> None:
        path = temp_dir / "bad_ledger.yaml"
        path.write_text(
            f"mode: development\nledger:\n  max_commit_retries: {value}\n",
            encoding="utf-8",
        )

        with pytest.raises(SettingsLoadError, match="max_commit_retries"):
            load_config(path)


class TestGetDbPath:
    """get_db_path 테스트"""

    def test_by_mode(self) -> None:
        assert get_db_path(AppConfig(mode=AppMode.PRODUCTION)) == Paths.PROD_DB
        assert get_db_path(AppConfig(mode=AppMode.DEVELOPMENT)) == Paths.DEV_DB

    def test_explicit_path(self, temp_dir: Path) -> None:
        config = AppConfig(mode=AppMode.PRODUCTION, db_path=temp_dir / "x.db")

        assert get_db_path(config) == temp_dir / "x.db"


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, temp_settings_file: Path) -> None:
        first = get_settings(temp_settings_file)
        second = get_settings()

        assert first is second
        assert second.mode == AppMode.DEVELOPMENT
        assert second.ledger.rebuild_batch_size == 2
        assert second.web.port == 9000

    def test_reset(self, temp_settings_file: Path, temp_settings_file_production: Path) -> None:
        assert get_settings(temp_settings_file).mode == AppMode.DEVELOPMENT

        Settings.reset()

        assert get_settings(temp_settings_file_production).mode == AppMode.PRODUCTION
