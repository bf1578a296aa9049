"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    CURRENCY: str = "USD"
    ENTRY_NUMBER_PREFIX: str = "JE-"

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 페이지네이션
    PAGE: int = 1
    PER_PAGE: int = 50
    MAX_PER_PAGE: int = 500

    # 저장소 일시 오류(database is locked) 재시도 횟수
    STORAGE_MAX_RETRIES: int = 3


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    CLI_LOGS_DIR: Path = LOGS_DIR / "cli"

    # 설정 파일
    CONFIG_FILE: Path = CONFIG_DIR / "ledger.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "ledger.db"


class MoneyLimits:
    """금액 범위 (signed 64-bit 최소 단위)"""

    MIN_MINOR_UNITS: int = -(2**63)
    MAX_MINOR_UNITS: int = 2**63 - 1

    # 최소 단위 : 주 단위 비율 (센트 → 달러)
    MINOR_PER_MAJOR: int = 100
