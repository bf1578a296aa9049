"""
회계연도 / 회계기간 API 라우트

회계연도:
    POST /fiscal-years                       - 생성 (구간 중복 시 409)
    GET  /fiscal-years                       - 목록
    GET  /fiscal-years/current               - 현재 Open 연도
    GET  /fiscal-years/{id}                  - 조회
    POST /fiscal-years/{id}/close?force=     - 마감
    POST /fiscal-years/{id}/reopen           - 재개
    POST /fiscal-years/{id}/periods          - 기간 생성
    POST /fiscal-years/{id}/periods/monthly  - 월별 기간 일괄 생성
    GET  /fiscal-years/{id}/periods          - 기간 목록

회계기간:
    GET  /fiscal-periods/{id}
    POST /fiscal-periods/{id}/close?force=
    POST /fiscal-periods/{id}/reopen
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from core.ledger.fiscal_calendar import FiscalCalendar
from web.dependencies import get_calendar
from web.models.requests import FiscalPeriodCreateRequest, FiscalYearCreateRequest
from web.models.responses import FiscalPeriodResponse, FiscalYearResponse

router = APIRouter(prefix="/fiscal-years", tags=["Fiscal Years"])
periods_router = APIRouter(prefix="/fiscal-periods", tags=["Fiscal Years"])


# =========================================================================
# 회계연도
# =========================================================================

@router.post("", response_model=FiscalYearResponse)
async def create_year(
    request: FiscalYearCreateRequest,
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalYearResponse:
    """회계연도 생성"""
    year = await calendar.create_year(request.name, request.start_date, request.end_date)
    return FiscalYearResponse.from_domain(year)


@router.get("", response_model=list[FiscalYearResponse])
async def list_years(
    calendar: FiscalCalendar = Depends(get_calendar),
) -> list[FiscalYearResponse]:
    """회계연도 목록 (start_date 오름차순)"""
    return [FiscalYearResponse.from_domain(y) for y in await calendar.list_years()]


# /{year_id}보다 먼저 등록해야 함
@router.get("/current", response_model=FiscalYearResponse)
async def current_year(
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalYearResponse:
    """현재 회계연도

    오늘을 포함하는 Open 연도, 없으면 가장 최근 Open 연도.
    """
    return FiscalYearResponse.from_domain(await calendar.current_year())


@router.get("/{year_id}", response_model=FiscalYearResponse)
async def get_year(
    year_id: UUID,
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalYearResponse:
    return FiscalYearResponse.from_domain(await calendar.get_year(year_id))


@router.post("/{year_id}/close", response_model=FiscalYearResponse)
async def close_year(
    year_id: UUID,
    force: bool = Query(default=False, description="Draft 분개가 있어도 마감"),
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalYearResponse:
    """회계연도 마감

    연도 안에 Draft 분개가 있으면 force 없이는 422.
    """
    return FiscalYearResponse.from_domain(await calendar.close_year(year_id, force=force))


@router.post("/{year_id}/reopen", response_model=FiscalYearResponse)
async def reopen_year(
    year_id: UUID,
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalYearResponse:
    return FiscalYearResponse.from_domain(await calendar.reopen_year(year_id))


# =========================================================================
# 연도별 회계기간
# =========================================================================

@router.post("/{year_id}/periods", response_model=FiscalPeriodResponse)
async def create_period(
    year_id: UUID,
    request: FiscalPeriodCreateRequest,
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalPeriodResponse:
    """회계기간 생성 (연도 안, 다른 기간과 겹치지 않음)"""
    period = await calendar.create_period(
        year_id, request.name, request.start_date, request.end_date
    )
    return FiscalPeriodResponse.from_domain(period)


@router.post("/{year_id}/periods/monthly", response_model=list[FiscalPeriodResponse])
async def create_monthly_periods(
    year_id: UUID,
    calendar: FiscalCalendar = Depends(get_calendar),
) -> list[FiscalPeriodResponse]:
    """월별 회계기간 일괄 생성

    이미 기간이 있는 연도는 409.
    """
    periods = await calendar.create_monthly_periods(year_id)
    return [FiscalPeriodResponse.from_domain(p) for p in periods]


@router.get("/{year_id}/periods", response_model=list[FiscalPeriodResponse])
async def list_periods(
    year_id: UUID,
    calendar: FiscalCalendar = Depends(get_calendar),
) -> list[FiscalPeriodResponse]:
    return [FiscalPeriodResponse.from_domain(p) for p in await calendar.list_periods(year_id)]


# =========================================================================
# 회계기간
# =========================================================================

@periods_router.get("/{period_id}", response_model=FiscalPeriodResponse)
async def get_period(
    period_id: UUID,
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalPeriodResponse:
    return FiscalPeriodResponse.from_domain(await calendar.get_period(period_id))


@periods_router.post("/{period_id}/close", response_model=FiscalPeriodResponse)
async def close_period(
    period_id: UUID,
    force: bool = Query(default=False, description="Draft 분개가 있어도 마감"),
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalPeriodResponse:
    """회계기간 마감"""
    return FiscalPeriodResponse.from_domain(await calendar.close_period(period_id, force=force))


@periods_router.post("/{period_id}/reopen", response_model=FiscalPeriodResponse)
async def reopen_period(
    period_id: UUID,
    calendar: FiscalCalendar = Depends(get_calendar),
) -> FiscalPeriodResponse:
    return FiscalPeriodResponse.from_domain(await calendar.reopen_period(period_id))
