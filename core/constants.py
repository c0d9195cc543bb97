"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → fundledger/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent

# API 버전
APP_VERSION: str = "1.0.0"


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 원자 단위 커밋 재시도 (database is locked 대응)
    MAX_COMMIT_RETRIES: int = 5
    RETRY_BACKOFF_MS: int = 50

    # 재구축 시 거래 로그를 읽는 배치 크기
    REBUILD_BATCH_SIZE: int = 500

    # 목록 조회 기본 개수
    LIST_LIMIT: int = 100


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "fundledger_prod.db"
    DEV_DB: Path = DATA_DIR / "fundledger_dev.db"


class BackupFormat:
    """거래 로그 백업 포맷"""

    VERSION: str = "1.0"
