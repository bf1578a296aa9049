"""분개 번호 규칙 테스트"""

from datetime import datetime, timedelta, timezone

from core.ledger.numbering import MAX_SEQ, advance_counter, format_entry_number
from core.utils.timezone import entry_stamp, parse_entry_stamp

T0 = datetime(2024, 6, 15, 9, 30, 5, tzinfo=timezone.utc)


class TestAdvanceCounter:
    """(stamp, seq) 계산"""

    def test_first_number(self) -> None:
        """최초 발급"""
        assert advance_counter("", 0, T0) == ("20240615093005", 1)

    def test_same_second_increments_seq(self) -> None:
        """같은 초 안에서는 seq 증가"""
        assert advance_counter("20240615093005", 1, T0) == ("20240615093005", 2)

    def test_new_second_resets_seq(self) -> None:
        """다음 초에는 seq 1부터"""
        later = T0 + timedelta(seconds=1)
        assert advance_counter("20240615093005", 7, later) == ("20240615093006", 1)

    def test_clock_going_backwards_stays_monotonic(self) -> None:
        """시계가 뒤로 가도 직전 스탬프 유지"""
        earlier = T0 - timedelta(hours=1)
        assert advance_counter("20240615093005", 3, earlier) == ("20240615093005", 4)

    def test_naive_datetime_treated_as_utc(self) -> None:
        assert advance_counter("", 0, T0.replace(tzinfo=None)) == ("20240615093005", 1)


class TestFormatEntryNumber:
    """번호 문자열"""

    def test_format(self) -> None:
        assert format_entry_number("JE-", "20240615093005", 2) == "JE-20240615093005-000002"

    def test_ordering_matches_issue_order(self) -> None:
        """문자열 정렬 = 발급 순서"""
        numbers = []
        stamp, seq = "", 0
        for offset in [0, 0, 0, 1, 1, 3]:
            stamp, seq = advance_counter(stamp, seq, T0 + timedelta(seconds=offset))
            numbers.append(format_entry_number("JE-", stamp, seq))

        assert numbers == sorted(numbers)
        assert len(set(numbers)) == len(numbers)


class TestSequenceExhaustion:
    """한 초 안에서 순번 소진"""

    def test_carries_into_next_second(self) -> None:
        assert advance_counter("20240615093005", MAX_SEQ, T0) == ("20240615093006", 1)

    def test_carry_across_minute_and_day(self) -> None:
        late = datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
        assert advance_counter("20241231235959", MAX_SEQ, late) == ("20250101000000", 1)

    def test_carried_stamp_continues_when_clock_catches_up(self) -> None:
        """넘어간 스탬프의 초에 도달해도 순번은 이어서 증가"""
        stamp, seq = advance_counter("20240615093005", MAX_SEQ, T0)
        assert advance_counter(stamp, seq, T0 + timedelta(seconds=1)) == ("20240615093006", 2)
        assert advance_counter(stamp, seq, T0) == ("20240615093006", 2)

    def test_numbers_keep_fixed_width_and_order(self) -> None:
        """999999 다음 번호도 고정 폭, 문자열 정렬 = 발급 순서"""
        last = format_entry_number("JE-", "20240615093005", MAX_SEQ)
        stamp, seq = advance_counter("20240615093005", MAX_SEQ, T0)
        carried = format_entry_number("JE-", stamp, seq)

        assert last == "JE-20240615093005-999999"
        assert carried == "JE-20240615093006-000001"
        assert len(carried) == len(last)
        assert sorted([carried, last]) == [last, carried]

    def test_parse_entry_stamp(self) -> None:
        assert parse_entry_stamp("20240615093005") == T0
        assert entry_stamp(parse_entry_stamp("20240615093005")) == "20240615093005"
