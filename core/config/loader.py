"""
설정 로더

ledger.yaml 로드 및 Ledger 설정 생성.
파일이 없으면 기본값 사용.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths
from core.ledger.money import CURRENCY_PATTERN
from core.ledger.types import CurrencyMixingPolicy


@dataclass(frozen=True)
class LedgerSettings:
    """Ledger 설정 (ledger.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    default_currency: str = Defaults.CURRENCY
    entry_number_prefix: str = Defaults.ENTRY_NUMBER_PREFIX
    allow_forced_year_close: bool = True
    balance_currency_mixing: CurrencyMixingPolicy = CurrencyMixingPolicy.REJECT

    # 저장소
    db_path: Path = Paths.LEDGER_DB
    storage_max_retries: int = Defaults.STORAGE_MAX_RETRIES

    # Web
    web_host: str = Defaults.WEB_HOST
    web_port: int = Defaults.WEB_PORT


class SettingsLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise SettingsLoadError(f"ledger.yaml의 '{name}' 섹션 형식이 잘못되었습니다")
    return section


def _resolve_path(value: str | Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """딕셔너리에서 LedgerSettings 생성

    Raises:
        SettingsLoadError: 섹션 형식이 잘못된 경우
        ValueError: 유효하지 않은 값인 경우 (키 이름 포함)
    """
    default_currency = data.get("default_currency", Defaults.CURRENCY)
    if not isinstance(default_currency, str) or not CURRENCY_PATTERN.match(default_currency):
        raise ValueError(
            f"유효하지 않은 default_currency입니다: '{default_currency}'. "
            "대문자 3글자 ISO 코드여야 합니다"
        )

    prefix = data.get("entry_number_prefix", Defaults.ENTRY_NUMBER_PREFIX)
    if not isinstance(prefix, str):
        raise ValueError(f"entry_number_prefix는 문자열이어야 합니다: {prefix!r}")

    allow_forced = data.get("allow_forced_year_close", True)
    if not isinstance(allow_forced, bool):
        raise ValueError(f"allow_forced_year_close는 true/false여야 합니다: {allow_forced!r}")

    mixing_str = data.get("balance_currency_mixing", CurrencyMixingPolicy.REJECT.value)
    try:
        mixing = CurrencyMixingPolicy(mixing_str)
    except ValueError as e:
        valid_values = [p.value for p in CurrencyMixingPolicy]
        raise ValueError(
            f"유효하지 않은 balance_currency_mixing입니다: '{mixing_str}'. "
            f"유효한 값: {valid_values}"
        ) from e

    database = _section(data, "database")
    storage = _section(data, "storage")
    web = _section(data, "web")

    max_retries = storage.get("max_retries", Defaults.STORAGE_MAX_RETRIES)
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 1:
        raise ValueError(f"storage.max_retries는 1 이상의 정수여야 합니다: {max_retries!r}")

    web_port = web.get("port", Defaults.WEB_PORT)
    if isinstance(web_port, bool) or not isinstance(web_port, int) or not 0 < web_port < 65536:
        raise ValueError(f"web.port가 유효하지 않습니다: {web_port!r}")

    return LedgerSettings(
        default_currency=default_currency,
        entry_number_prefix=prefix,
        allow_forced_year_close=allow_forced,
        balance_currency_mixing=mixing,
        db_path=_resolve_path(database.get("path", Paths.LEDGER_DB)),
        storage_max_retries=max_retries,
        web_host=str(web.get("host", Defaults.WEB_HOST)),
        web_port=web_port,
    )


def load_settings(path: Path | None = None) -> LedgerSettings:
    """ledger.yaml 파일 로드

    Args:
        path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerSettings 인스턴스

    Raises:
        SettingsLoadError: 명시한 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 값인 경우
    """
    if path is None:
        path = Paths.CONFIG_FILE
        # 기본 경로에 파일이 없으면 기본값
        if not path.exists():
            return LedgerSettings()

    if not path.exists():
        raise SettingsLoadError(f"ledger.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"ledger.yaml 파싱 실패: {e}") from e

    if data is None:
        return LedgerSettings()

    if not isinstance(data, dict):
        raise SettingsLoadError("ledger.yaml 최상위는 매핑이어야 합니다")

    return parse_settings(data)


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    ledger.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _ledger: LedgerSettings | None = None

    def __new__(cls, config_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._ledger is None:
            Settings._ledger = load_settings(config_path)

    @property
    def ledger(self) -> LedgerSettings:
        """Ledger 설정"""
        assert self._ledger is not None
        return self._ledger

    @property
    def db_path(self) -> Path:
        """DB 경로"""
        return self.ledger.db_path

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._ledger = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        config_path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(config_path)
