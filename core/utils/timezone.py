"""
날짜/시간 유틸리티

내부 저장: UTC | 회계일자: date (타임존 없음) 원칙 준수를 위한 헬퍼 함수
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """datetime을 UTC로 정규화

    Args:
        dt: datetime 객체 (naive면 UTC로 간주)

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_rfc3339(dt: datetime) -> str:
    """타임스탬프를 RFC 3339 문자열로 변환

    Example:
        >>> to_rfc3339(datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc))
        '2024-06-15T09:30:00Z'
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_rfc3339(value: str) -> datetime:
    """RFC 3339 문자열을 UTC datetime으로 변환"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def entry_stamp(dt: datetime) -> str:
    """분개 번호용 초 단위 스탬프 (YYYYMMDDHHMMSS, UTC)

    Example:
        >>> entry_stamp(datetime(2024, 6, 15, 9, 30, 5, tzinfo=timezone.utc))
        '20240615093005'
    """
    return ensure_utc(dt).strftime("%Y%m%d%H%M%S")


def parse_entry_stamp(stamp: str) -> datetime:
    """entry_stamp 문자열을 UTC datetime으로 변환

    Raises:
        ValueError: 형식이 잘못된 경우
    """
    return datetime.strptime(stamp, "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
