"""
보고서 API 라우트

GET /reports/trial-balance?as_of=
GET /reports/account-balance/{account_id}?as_of=&include_descendants=
GET /reports/account-balances?as_of=
GET /reports/balance-sheet?as_of=&currency=
GET /reports/profit-and-loss?from=&to=&currency=
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from core.config.loader import LedgerSettings
from core.ledger.journal_engine import JournalEngine
from core.ledger.reports import LedgerReports
from core.ledger.types import CurrencyMixingPolicy
from web.dependencies import get_app_settings, get_engine, get_reports
from web.models.responses import (
    AccountBalanceItemResponse,
    AccountBalancesResponse,
    BalanceSheetResponse,
    MoneyListResponse,
    MoneyResponse,
    ProfitAndLossResponse,
    TrialBalanceRowResponse,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/trial-balance", response_model=list[TrialBalanceRowResponse])
async def trial_balance(
    as_of: date = Query(..., description="기준일 (YYYY-MM-DD, 포함)"),
    engine: JournalEngine = Depends(get_engine),
) -> list[TrialBalanceRowResponse]:
    """시산표

    기준일 이전 전기 항목이 있는 계정만 (계정 × 통화).
    """
    result = await engine.trial_balance(as_of)
    return [TrialBalanceRowResponse.from_domain(row) for row in result.rows]


@router.get(
    "/account-balance/{account_id}",
    response_model=MoneyResponse | MoneyListResponse,
)
async def account_balance(
    account_id: UUID,
    as_of: date = Query(..., description="기준일 (YYYY-MM-DD, 포함)"),
    include_descendants: bool = Query(default=False, description="하위 계정 포함"),
    engine: JournalEngine = Depends(get_engine),
    settings: LedgerSettings = Depends(get_app_settings),
) -> MoneyResponse | MoneyListResponse:
    """계정 잔액

    reject 모드: {amount, currency}, 통화 혼합 시 422
    per_currency 모드: {"balances": [{amount, currency}, ...]}
    """
    if settings.balance_currency_mixing == CurrencyMixingPolicy.PER_CURRENCY:
        balances = await engine.account_balance_by_currency(
            account_id, as_of, include_descendants
        )
        return MoneyListResponse(balances=[MoneyResponse.from_money(m) for m in balances])

    balance = await engine.account_balance(account_id, as_of, include_descendants)
    return MoneyResponse.from_money(balance)


@router.get("/account-balances", response_model=AccountBalancesResponse)
async def account_balances(
    as_of: date = Query(..., description="기준일 (YYYY-MM-DD, 포함)"),
    engine: JournalEngine = Depends(get_engine),
) -> AccountBalancesResponse:
    """활동이 있는 모든 계정의 잔액"""
    balances = await engine.account_balances(as_of)
    return AccountBalancesResponse(
        as_of=as_of,
        balances=[AccountBalanceItemResponse.from_domain(b) for b in balances],
    )


@router.get("/balance-sheet", response_model=BalanceSheetResponse)
async def balance_sheet(
    as_of: date = Query(..., description="기준일 (YYYY-MM-DD, 포함)"),
    currency: str | None = Query(default=None, description="통화 (생략 시 기본 통화)"),
    reports: LedgerReports = Depends(get_reports),
) -> BalanceSheetResponse:
    """재무상태표"""
    return BalanceSheetResponse.from_domain(await reports.balance_sheet(as_of, currency))


@router.get("/profit-and-loss", response_model=ProfitAndLossResponse)
async def profit_and_loss(
    date_from: date = Query(..., alias="from", description="시작일 (포함)"),
    date_to: date = Query(..., alias="to", description="종료일 (포함)"),
    currency: str | None = Query(default=None, description="통화 (생략 시 기본 통화)"),
    reports: LedgerReports = Depends(get_reports),
) -> ProfitAndLossResponse:
    """손익계산서"""
    report = await reports.profit_and_loss(date_from, date_to, currency)
    return ProfitAndLossResponse.from_domain(report)
