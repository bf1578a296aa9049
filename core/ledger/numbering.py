"""
분개 번호 규칙

형식: {prefix}{YYYYMMDDHHMMSS}-{seq:06d}
- 스탬프는 UTC 초 단위. 같은 초 안에서는 seq 증가.
- 한 초에 seq가 999999를 넘으면 다음 초 스탬프로 넘어가 seq 1부터 (고정 폭 유지).
- 시계가 뒤로 가더라도 직전 스탬프를 유지하여 단조성 보장.
- 카운터 상태(last_stamp, last_seq)는 저장소가 트랜잭션 안에서 보관.
"""

from datetime import datetime, timedelta

from core.utils.timezone import entry_stamp, parse_entry_stamp

SEQ_WIDTH: int = 6
MAX_SEQ: int = 10**SEQ_WIDTH - 1


def advance_counter(last_stamp: str, last_seq: int, now: datetime) -> tuple[str, int]:
    """다음 (stamp, seq) 계산

    Args:
        last_stamp: 직전 발급 스탬프 (없으면 빈 문자열)
        last_seq: 직전 발급 순번
        now: 현재 시각

    Returns:
        (stamp, seq)
    """
    stamp = entry_stamp(now)
    if stamp < last_stamp:
        stamp = last_stamp

    if stamp != last_stamp:
        return stamp, 1
    if last_seq < MAX_SEQ:
        return stamp, last_seq + 1

    # 같은 초의 순번 소진
    return entry_stamp(parse_entry_stamp(last_stamp) + timedelta(seconds=1)), 1


def format_entry_number(prefix: str, stamp: str, seq: int) -> str:
    """분개 번호 문자열 생성

    Example:
        >>> format_entry_number("JE-", "20240615093005", 2)
        'JE-20240615093005-000002'
    """
    return f"{prefix}{stamp}-{seq:0{SEQ_WIDTH}d}"
