"""
설정 로더

settings.yaml 로드 및 Ledger/Web 설정 생성
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths
from core.types import AppMode


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger 엔진 설정

    원자 단위 재시도 및 재구축 배치 크기
    """

    max_commit_retries: int = Defaults.MAX_COMMIT_RETRIES
    retry_backoff_ms: int = Defaults.RETRY_BACKOFF_MS
    rebuild_batch_size: int = Defaults.REBUILD_BATCH_SIZE


@dataclass(frozen=True)
class WebConfig:
    """Web 서버 설정"""

    host: str = Defaults.WEB_HOST
    port: int = Defaults.WEB_PORT


@dataclass(frozen=True)
class AppConfig:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: AppMode
    db_path: Path | None = None
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    web: WebConfig = field(default_factory=WebConfig)


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def _positive_int(section: dict[str, Any], key: str, default: int) -> int:
    """양의 정수 설정값 읽기"""
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SettingsLoadError(
            f"'{key}' 값은 양의 정수여야 합니다: {value!r}"
        )
    return value


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")

    # mode 검증
    mode_str = data.get("mode")
    if mode_str is None:
        raise SettingsLoadError("settings.yaml에 'mode' 필드가 없습니다")

    try:
        mode = AppMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in AppMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    ledger_section = data.get("ledger") or {}
    ledger = LedgerConfig(
        max_commit_retries=_positive_int(
            ledger_section, "max_commit_retries", Defaults.MAX_COMMIT_RETRIES
        ),
        retry_backoff_ms=_positive_int(
            ledger_section, "retry_backoff_ms", Defaults.RETRY_BACKOFF_MS
        ),
        rebuild_batch_size=_positive_int(
            ledger_section, "rebuild_batch_size", Defaults.REBUILD_BATCH_SIZE
        ),
    )

    web_section = data.get("web") or {}
    web = WebConfig(
        host=str(web_section.get("host", Defaults.WEB_HOST)),
        port=_positive_int(web_section, "port", Defaults.WEB_PORT),
    )

    # db_path를 지정하면 모드별 기본 경로 대신 사용 (상대 경로는 설정 파일 기준)
    db_path = data.get("db_path")
    resolved_db_path: Path | None = None
    if db_path:
        resolved_db_path = Path(db_path)
        if not resolved_db_path.is_absolute():
            resolved_db_path = path.parent / resolved_db_path

    return AppConfig(
        mode=mode,
        db_path=resolved_db_path,
        ledger=ledger,
        web=web,
    )


def get_db_path(config: AppConfig) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        config: AppConfig 인스턴스

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if config.db_path is not None:
        return config.db_path
    if config.mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    else:
        return Paths.DEV_DB


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(settings_path)

    @property
    def mode(self) -> AppMode:
        """현재 실행 모드"""
        assert self._config is not None
        return self._config.mode

    @property
    def ledger(self) -> LedgerConfig:
        """Ledger 엔진 설정"""
        assert self._config is not None
        return self._config.ledger

    @property
    def web(self) -> WebConfig:
        """Web 서버 설정"""
        assert self._config is not None
        return self._config.web

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        assert self._config is not None
        return get_db_path(self._config)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
