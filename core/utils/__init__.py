"""
유틸리티 패키지

타임존/날짜 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    ensure_utc,
    entry_stamp,
    now_utc,
    parse_entry_stamp,
    parse_rfc3339,
    to_rfc3339,
)

__all__ = [
    "ensure_utc",
    "entry_stamp",
    "now_utc",
    "parse_entry_stamp",
    "parse_rfc3339",
    "to_rfc3339",
]
