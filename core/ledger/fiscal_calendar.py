"""
회계 달력 (FiscalCalendar)

회계연도/기간 정의 및 일자별 변경 가능 여부 판정.

판정 규칙:
- 일자를 포함하는 회계연도가 없으면 닫힘 ("no fiscal year covers this date")
- 회계연도가 Closed면 연도 내 모든 일자가 닫힘
- 회계연도가 Open이면 해당 일자를 포함하는 기간의 상태를 따름
- 기간이 없는 일자는 연도 상태를 따름
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Callable
from uuid import UUID

from core.ledger.errors import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from core.ledger.models import EntryFilter, FiscalPeriod, FiscalYear, new_id
from core.ledger.types import EntryStatus, PeriodStatus, YearStatus
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.interfaces import IJournalStore, IStoreTxn

logger = logging.getLogger(__name__)

NO_YEAR_MESSAGE = "no fiscal year covers this date"
CLOSED_MESSAGE = "period closed"


def month_ranges(start_date: date, end_date: date) -> list[tuple[date, date]]:
    """달력 월 경계로 구간 분할 (양 끝은 주어진 구간으로 절단)

    Example:
        >>> month_ranges(date(2024, 1, 15), date(2024, 3, 10))[0]
        (datetime.date(2024, 1, 15), datetime.date(2024, 1, 31))
    """
    ranges: list[tuple[date, date]] = []
    cursor = start_date
    while cursor <= end_date:
        last_day = calendar.monthrange(cursor.year, cursor.month)[1]
        month_end = min(date(cursor.year, cursor.month, last_day), end_date)
        ranges.append((cursor, month_end))
        cursor = month_end + timedelta(days=1)
    return ranges


class FiscalCalendar:
    """회계연도/기간 관리

    Args:
        store: JournalStore 포트
        allow_forced_close: close_year/close_period의 force 허용 여부
        clock: 현재 시각 함수 (테스트 주입용)
    """

    def __init__(
        self,
        store: IJournalStore,
        allow_forced_close: bool = True,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.allow_forced_close = allow_forced_close
        self.clock = clock

    # -------------------------------------------------------------------------
    # 회계연도
    # -------------------------------------------------------------------------

    async def create_year(self, name: str, start_date: date, end_date: date) -> FiscalYear:
        """회계연도 생성 (Open 상태)

        Raises:
            ValidationError: 이름 누락, end_date <= start_date
            ConflictError: 기존 연도와 구간 중복
        """
        if not name or not name.strip():
            raise ValidationError("name must not be empty")
        if end_date <= start_date:
            raise ValidationError("end_date must be after start_date")

        async with self.store.begin_txn() as txn:
            if await txn.find_overlapping_years(start_date, end_date):
                raise ConflictError("fiscal year overlaps an existing year")

            now = self.clock()
            year = FiscalYear(
                id=new_id(),
                name=name,
                start_date=start_date,
                end_date=end_date,
                status=YearStatus.OPEN,
                created_at=now,
                updated_at=now,
            )
            await txn.insert_year(year)

        logger.info(
            "회계연도 생성",
            extra={
                "fiscal_year_id": str(year.id),
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
        )
        return year

    async def close_year(self, year_id: UUID, force: bool = False) -> FiscalYear:
        """회계연도 마감

        강제 마감 시 남은 Draft 분개는 전기 불가 상태로 남음 (삭제는 가능).

        Raises:
            NotFoundError: 연도 없음
            ConflictError: 이미 마감됨
            ValidationError: 강제 마감이 허용되지 않은 설정
            BusinessRuleError: 연도 내 Draft 분개 존재 (force=False)
        """
        async with self.store.begin_txn() as txn:
            year = await self._require_year(txn, year_id)
            if year.status == YearStatus.CLOSED:
                raise ConflictError("fiscal year already closed")

            await self._check_drafts(txn, year.start_date, year.end_date, force, "fiscal year")

            closed = replace(year, status=YearStatus.CLOSED, updated_at=self.clock())
            await txn.update_year(closed)

        logger.info("회계연도 마감", extra={"fiscal_year_id": str(year_id), "force": force})
        return closed

    async def reopen_year(self, year_id: UUID) -> FiscalYear:
        """회계연도 재개

        Raises:
            NotFoundError: 연도 없음
            ConflictError: 이미 Open
        """
        async with self.store.begin_txn() as txn:
            year = await self._require_year(txn, year_id)
            if year.status == YearStatus.OPEN:
                raise ConflictError("fiscal year already open")

            reopened = replace(year, status=YearStatus.OPEN, updated_at=self.clock())
            await txn.update_year(reopened)

        logger.info("회계연도 재개", extra={"fiscal_year_id": str(year_id)})
        return reopened

    async def list_years(self) -> list[FiscalYear]:
        """회계연도 목록 (start_date 오름차순)"""
        async with self.store.begin_txn(readonly=True) as txn:
            return await txn.list_years()

    async def get_year(self, year_id: UUID) -> FiscalYear:
        async with self.store.begin_txn(readonly=True) as txn:
            return await self._require_year(txn, year_id)

    async def find_year_for_date(self, on_date: date) -> FiscalYear:
        """일자를 포함하는 회계연도

        Raises:
            NotFoundError: 포함하는 연도 없음
        """
        async with self.store.begin_txn(readonly=True) as txn:
            year = await txn.find_year_for_date(on_date)
        if year is None:
            raise NotFoundError(NO_YEAR_MESSAGE)
        return year

    async def current_year(self, today: date | None = None) -> FiscalYear:
        """현재 회계연도

        오늘을 포함하는 Open 연도, 없으면 시작일이 가장 늦은 Open 연도.

        Raises:
            NotFoundError: Open 연도 없음
        """
        if today is None:
            today = self.clock().date()

        open_years = [y for y in await self.list_years() if y.is_open]
        if not open_years:
            raise NotFoundError("no open fiscal year")

        for year in open_years:
            if year.contains(today):
                return year
        return max(open_years, key=lambda y: y.start_date)

    # -------------------------------------------------------------------------
    # 회계기간
    # -------------------------------------------------------------------------

    async def create_period(
        self,
        year_id: UUID,
        name: str,
        start_date: date,
        end_date: date,
    ) -> FiscalPeriod:
        """회계기간 생성

        Raises:
            NotFoundError: 연도 없음
            ValidationError: 이름 누락, end_date < start_date, 연도 구간 밖
            ConflictError: 같은 연도의 기존 기간과 중복
        """
        if not name or not name.strip():
            raise ValidationError("name must not be empty")
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

        async with self.store.begin_txn() as txn:
            year = await self._require_year(txn, year_id)
            if start_date < year.start_date or end_date > year.end_date:
                raise ValidationError("period must fall within its fiscal year")

            siblings = await txn.list_periods(year.id)
            for sibling in siblings:
                if sibling.start_date <= end_date and start_date <= sibling.end_date:
                    raise ConflictError("fiscal period overlaps an existing period")

            period_number = max((p.period_number for p in siblings), default=0) + 1
            period = self._new_period(year.id, period_number, name, start_date, end_date)
            await txn.insert_period(period)

        logger.info(
            "회계기간 생성",
            extra={"fiscal_period_id": str(period.id), "fiscal_year_id": str(year_id)},
        )
        return period

    async def create_monthly_periods(self, year_id: UUID) -> list[FiscalPeriod]:
        """월별 회계기간 일괄 생성 (period_number 1..n)

        Raises:
            NotFoundError: 연도 없음
            ConflictError: 이미 기간이 있는 연도
        """
        async with self.store.begin_txn() as txn:
            year = await self._require_year(txn, year_id)
            if await txn.list_periods(year.id):
                raise ConflictError("fiscal year already has periods")

            periods = []
            for number, (start, end) in enumerate(month_ranges(year.start_date, year.end_date), 1):
                period = self._new_period(year.id, number, start.strftime("%Y-%m"), start, end)
                await txn.insert_period(period)
                periods.append(period)

        logger.info(
            "월별 회계기간 생성",
            extra={"fiscal_year_id": str(year_id), "count": len(periods)},
        )
        return periods

    async def list_periods(self, year_id: UUID) -> list[FiscalPeriod]:
        """연도의 기간 목록 (start_date 오름차순)"""
        async with self.store.begin_txn(readonly=True) as txn:
            await self._require_year(txn, year_id)
            return await txn.list_periods(year_id)

    async def get_period(self, period_id: UUID) -> FiscalPeriod:
        async with self.store.begin_txn(readonly=True) as txn:
            return await self._require_period(txn, period_id)

    async def close_period(self, period_id: UUID, force: bool = False) -> FiscalPeriod:
        """회계기간 마감 (Draft 규칙은 연도와 동일)"""
        async with self.store.begin_txn() as txn:
            period = await self._require_period(txn, period_id)
            if period.status == PeriodStatus.CLOSED:
                raise ConflictError("fiscal period already closed")

            await self._check_drafts(
                txn, period.start_date, period.end_date, force, "fiscal period"
            )

            closed = replace(period, status=PeriodStatus.CLOSED, updated_at=self.clock())
            await txn.update_period(closed)

        logger.info("회계기간 마감", extra={"fiscal_period_id": str(period_id), "force": force})
        return closed

    async def reopen_period(self, period_id: UUID) -> FiscalPeriod:
        async with self.store.begin_txn() as txn:
            period = await self._require_period(txn, period_id)
            if period.status == PeriodStatus.OPEN:
                raise ConflictError("fiscal period already open")

            reopened = replace(period, status=PeriodStatus.OPEN, updated_at=self.clock())
            await txn.update_period(reopened)

        logger.info("회계기간 재개", extra={"fiscal_period_id": str(period_id)})
        return reopened

    # -------------------------------------------------------------------------
    # 판정
    # -------------------------------------------------------------------------

    async def is_open_for(self, on_date: date) -> bool:
        """해당 일자에 전기 가능한지 여부"""
        async with self.store.begin_txn(readonly=True) as txn:
            return await self.closed_reason_in(txn, on_date) is None

    async def closed_reason_in(self, txn: IStoreTxn, on_date: date) -> str | None:
        """닫힌 사유 (열려 있으면 None)"""
        year = await txn.find_year_for_date(on_date)
        if year is None:
            return NO_YEAR_MESSAGE
        if not year.is_open:
            return CLOSED_MESSAGE

        period = await txn.find_period_for_date(on_date)
        if period is not None and not period.is_open:
            return CLOSED_MESSAGE
        return None

    async def assert_open_in(self, txn: IStoreTxn, on_date: date) -> None:
        """전기 가능 여부 확인

        Raises:
            BusinessRuleError: 포함하는 연도가 없거나 마감된 기간
        """
        reason = await self.closed_reason_in(txn, on_date)
        if reason is not None:
            raise BusinessRuleError(reason)

    # -------------------------------------------------------------------------
    # 내부 헬퍼
    # -------------------------------------------------------------------------

    async def _require_year(self, txn: IStoreTxn, year_id: UUID) -> FiscalYear:
        year = await txn.get_year(year_id)
        if year is None:
            raise NotFoundError(f"fiscal year not found: {year_id}")
        return year

    async def _require_period(self, txn: IStoreTxn, period_id: UUID) -> FiscalPeriod:
        period = await txn.get_period(period_id)
        if period is None:
            raise NotFoundError(f"fiscal period not found: {period_id}")
        return period

    async def _check_drafts(
        self,
        txn: IStoreTxn,
        start_date: date,
        end_date: date,
        force: bool,
        label: str,
    ) -> None:
        if force:
            if not self.allow_forced_close:
                raise ValidationError("forced close is disabled")
            return

        _, draft_count = await txn.list_entries(
            EntryFilter(date_from=start_date, date_to=end_date, status=EntryStatus.DRAFT),
            page=1,
            per_page=1,
        )
        if draft_count:
            raise BusinessRuleError(f"{label} has {draft_count} draft entries")

    def _new_period(
        self,
        year_id: UUID,
        period_number: int,
        name: str,
        start_date: date,
        end_date: date,
    ) -> FiscalPeriod:
        now = self.clock()
        return FiscalPeriod(
            id=new_id(),
            fiscal_year_id=year_id,
            period_number=period_number,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=PeriodStatus.OPEN,
            created_at=now,
            updated_at=now,
        )
