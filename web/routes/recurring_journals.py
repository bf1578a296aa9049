"""
반복 분개 API 라우트

POST /recurring-journals                   - 템플릿 생성
GET  /recurring-journals?status=           - 템플릿 목록
POST /recurring-journals/process?today=    - 도래한 회차 분개 작성
GET  /recurring-journals/{id}              - 템플릿 조회
POST /recurring-journals/{id}/deactivate   - 비활성화
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from core.config.loader import LedgerSettings
from core.ledger.recurring import RecurringJournals
from core.ledger.types import RecurringStatus
from web.dependencies import get_app_settings, get_recurring
from web.models.requests import RecurringJournalCreateRequest
from web.models.responses import (
    JournalEntryResponse,
    ProcessDueResponse,
    RecurringJournalResponse,
)

router = APIRouter(prefix="/recurring-journals", tags=["Recurring Journals"])


@router.post("", response_model=RecurringJournalResponse)
async def create_template(
    request: RecurringJournalCreateRequest,
    recurring: RecurringJournals = Depends(get_recurring),
    settings: LedgerSettings = Depends(get_app_settings),
) -> RecurringJournalResponse:
    """반복 분개 템플릿 생성

    항목 규칙은 분개 작성과 동일. currency 생략 시 default_currency 적용.
    """
    currency, lines = request.to_inputs(settings.default_currency)
    template = await recurring.create_template(
        name=request.name,
        frequency=request.frequency,
        start_date=request.start_date,
        lines=lines,
        interval=request.interval,
        end_date=request.end_date,
        description=request.description,
        currency=currency,
        auto_post=request.auto_post,
    )
    return RecurringJournalResponse.from_domain(template)


@router.get("", response_model=list[RecurringJournalResponse])
async def list_templates(
    status: RecurringStatus | None = Query(default=None, description="상태 필터"),
    recurring: RecurringJournals = Depends(get_recurring),
) -> list[RecurringJournalResponse]:
    return [RecurringJournalResponse.from_domain(t) for t in await recurring.list_templates(status)]


# /{template_id}보다 먼저 등록해야 함
@router.post("/process", response_model=ProcessDueResponse)
async def process_due(
    today: date | None = Query(default=None, description="기준일 (생략 시 오늘, UTC)"),
    recurring: RecurringJournals = Depends(get_recurring),
) -> ProcessDueResponse:
    """도래한 회차를 분개로 작성 (밀린 회차 포함)"""
    run_date = today if today is not None else recurring.clock().date()
    entries = await recurring.process_due(run_date)
    return ProcessDueResponse(
        run_date=run_date,
        processed=len(entries),
        entries=[JournalEntryResponse.from_domain(e) for e in entries],
    )


@router.get("/{template_id}", response_model=RecurringJournalResponse)
async def get_template(
    template_id: UUID,
    recurring: RecurringJournals = Depends(get_recurring),
) -> RecurringJournalResponse:
    return RecurringJournalResponse.from_domain(await recurring.get_template(template_id))


@router.post("/{template_id}/deactivate", response_model=RecurringJournalResponse)
async def deactivate_template(
    template_id: UUID,
    recurring: RecurringJournals = Depends(get_recurring),
) -> RecurringJournalResponse:
    """비활성화 (Active가 아니면 409)"""
    return RecurringJournalResponse.from_domain(await recurring.deactivate(template_id))
