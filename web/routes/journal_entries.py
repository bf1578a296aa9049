"""
분개 API 라우트

POST   /journal-entries               - Draft 분개 작성
GET    /journal-entries               - 분개 목록 (date DESC, entry_number DESC)
GET    /journal-entries/{id}          - 분개 조회
PUT    /journal-entries/{id}          - Draft 분개 수정
DELETE /journal-entries/{id}          - Draft 분개 삭제
POST   /journal-entries/{id}/post     - 전기
POST   /journal-entries/{id}/reverse  - 역분개
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from core.config.loader import LedgerSettings
from core.constants import Defaults
from core.ledger.journal_engine import JournalEngine
from core.ledger.models import EntryFilter
from core.ledger.types import EntryStatus
from web.dependencies import get_app_settings, get_engine
from web.models.requests import JournalEntryRequest, ReverseRequest
from web.models.responses import JournalEntryListResponse, JournalEntryResponse

router = APIRouter(prefix="/journal-entries", tags=["Journal Entries"])


@router.post("", response_model=JournalEntryResponse)
async def create_entry(
    request: JournalEntryRequest,
    engine: JournalEngine = Depends(get_engine),
    settings: LedgerSettings = Depends(get_app_settings),
) -> JournalEntryResponse:
    """Draft 분개 작성

    currency 생략 시 default_currency 적용.
    """
    currency, lines = request.to_inputs(settings.default_currency)
    entry = await engine.create_entry(
        entry_date=request.entry_date,
        description=request.description,
        lines=lines,
        reference=request.reference,
        currency=currency,
    )
    return JournalEntryResponse.from_domain(entry)


@router.get("", response_model=JournalEntryListResponse)
async def list_entries(
    page: int = Query(default=Defaults.PAGE, ge=1),
    per_page: int = Query(default=Defaults.PER_PAGE, ge=1, le=Defaults.MAX_PER_PAGE),
    account_id: UUID | None = Query(default=None, description="계정 필터"),
    date_from: date | None = Query(default=None, description="시작일 (포함)"),
    date_to: date | None = Query(default=None, description="종료일 (포함)"),
    status: EntryStatus | None = Query(default=None, description="상태 필터"),
    engine: JournalEngine = Depends(get_engine),
) -> JournalEntryListResponse:
    """분개 목록"""
    result = await engine.list_entries(
        EntryFilter(account_id=account_id, date_from=date_from, date_to=date_to, status=status),
        page=page,
        per_page=per_page,
    )
    return JournalEntryListResponse.from_page(result)


@router.get("/{entry_id}", response_model=JournalEntryResponse)
async def get_entry(
    entry_id: UUID,
    engine: JournalEngine = Depends(get_engine),
) -> JournalEntryResponse:
    return JournalEntryResponse.from_domain(await engine.get_entry(entry_id))


@router.put("/{entry_id}", response_model=JournalEntryResponse)
async def update_entry(
    entry_id: UUID,
    request: JournalEntryRequest,
    engine: JournalEngine = Depends(get_engine),
    settings: LedgerSettings = Depends(get_app_settings),
) -> JournalEntryResponse:
    """Draft 분개 수정 (전체 교체)

    Draft가 아니면 409.
    """
    currency, lines = request.to_inputs(settings.default_currency)
    entry = await engine.update_draft(
        entry_id,
        entry_date=request.entry_date,
        description=request.description,
        lines=lines,
        reference=request.reference,
        currency=currency,
    )
    return JournalEntryResponse.from_domain(entry)


@router.delete("/{entry_id}", status_code=204)
async def delete_entry(
    entry_id: UUID,
    engine: JournalEngine = Depends(get_engine),
) -> Response:
    await engine.delete_entry(entry_id)
    return Response(status_code=204)


@router.post("/{entry_id}/post", response_model=JournalEntryResponse)
async def post_entry(
    entry_id: UUID,
    engine: JournalEngine = Depends(get_engine),
) -> JournalEntryResponse:
    """전기

    불균형/마감 기간이면 422, Draft가 아니면 409.
    """
    return JournalEntryResponse.from_domain(await engine.post_entry(entry_id))


@router.post("/{entry_id}/reverse", response_model=JournalEntryResponse)
async def reverse_entry(
    entry_id: UUID,
    request: ReverseRequest,
    engine: JournalEngine = Depends(get_engine),
) -> JournalEntryResponse:
    """역분개

    차변/대변을 바꾼 분개를 작성해 전기하고 원분개를 Reversed로 표시.
    응답은 새 역분개.
    """
    reversal = await engine.reverse_entry(entry_id, request.reversal_date, request.description)
    return JournalEntryResponse.from_domain(reversal)
