"""
예산 API 라우트

POST   /budgets                 - 예산 생성
GET    /budgets                 - 예산 목록 (시작일 최근 순)
GET    /budgets/{id}            - 예산 조회
DELETE /budgets/{id}            - 예산 삭제
GET    /budgets/{id}/variance   - 예산 대비 실적
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response

from core.config.loader import LedgerSettings
from core.ledger.budgets import Budgets
from web.dependencies import get_app_settings, get_budgets
from web.models.requests import BudgetCreateRequest
from web.models.responses import BudgetReportResponse, BudgetResponse

router = APIRouter(prefix="/budgets", tags=["Budgets"])


@router.post("", response_model=BudgetResponse)
async def create_budget(
    request: BudgetCreateRequest,
    budgets: Budgets = Depends(get_budgets),
    settings: LedgerSettings = Depends(get_app_settings),
) -> BudgetResponse:
    currency, lines = request.to_lines(settings.default_currency)
    budget = await budgets.create_budget(
        name=request.name,
        start_date=request.start_date,
        end_date=request.end_date,
        lines=lines,
        currency=currency,
    )
    return BudgetResponse.from_domain(budget)


@router.get("", response_model=list[BudgetResponse])
async def list_budgets(
    budgets: Budgets = Depends(get_budgets),
) -> list[BudgetResponse]:
    return [BudgetResponse.from_domain(b) for b in await budgets.list_budgets()]


@router.get("/{budget_id}", response_model=BudgetResponse)
async def get_budget(
    budget_id: UUID,
    budgets: Budgets = Depends(get_budgets),
) -> BudgetResponse:
    return BudgetResponse.from_domain(await budgets.get_budget(budget_id))


@router.delete("/{budget_id}", status_code=204)
async def delete_budget(
    budget_id: UUID,
    budgets: Budgets = Depends(get_budgets),
) -> Response:
    await budgets.delete_budget(budget_id)
    return Response(status_code=204)


@router.get("/{budget_id}/variance", response_model=BudgetReportResponse)
async def budget_variance(
    budget_id: UUID,
    budgets: Budgets = Depends(get_budgets),
) -> BudgetReportResponse:
    """예산 대비 실적

    실적은 예산 기간의 전기 항목 부호 잔액 (하위 계정 포함), 차이 = 예산 - 실적.
    """
    return BudgetReportResponse.from_domain(await budgets.budget_vs_actual(budget_id))
