"""
계정과목표 API 라우트

POST   /accounts       - 계정 생성
GET    /accounts       - 계정 목록 (페이지네이션, 유형/상태/상위 계정 필터)
GET    /accounts/{id}  - 계정 조회
PUT    /accounts/{id}  - 계정 부분 수정
DELETE /accounts/{id}  - 계정 삭제 (참조 없음, 하위 계정 없음)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from core.constants import Defaults
from core.ledger.account_book import AccountBook
from core.ledger.models import AccountFilter, paginate
from core.ledger.types import AccountStatus, AccountType
from web.dependencies import get_book
from web.models.requests import AccountCreateRequest, AccountUpdateRequest
from web.models.responses import AccountListResponse, AccountResponse

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse)
async def create_account(
    request: AccountCreateRequest,
    book: AccountBook = Depends(get_book),
) -> AccountResponse:
    """계정 생성

    code 중복 시 409.
    """
    account = await book.create_account(
        code=request.code,
        name=request.name,
        account_type=request.account_type,
        parent_id=request.parent_id,
        description=request.description,
    )
    return AccountResponse.from_domain(account)


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    page: int = Query(default=Defaults.PAGE, ge=1, description="페이지 번호"),
    per_page: int = Query(
        default=Defaults.PER_PAGE, ge=1, le=Defaults.MAX_PER_PAGE, description="페이지당 개수"
    ),
    account_type: AccountType | None = Query(default=None, description="계정 유형 필터"),
    status: AccountStatus | None = Query(default=None, description="상태 필터"),
    parent_id: UUID | None = Query(default=None, description="상위 계정 필터"),
    book: AccountBook = Depends(get_book),
) -> AccountListResponse:
    """계정 목록 (code 오름차순)"""
    accounts = await book.list_accounts(
        AccountFilter(account_type=account_type, status=status, parent_id=parent_id)
    )
    return AccountListResponse.from_page(paginate(accounts, page, per_page))


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: UUID,
    book: AccountBook = Depends(get_book),
) -> AccountResponse:
    """계정 조회"""
    return AccountResponse.from_domain(await book.get_account(account_id))


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: UUID,
    request: AccountUpdateRequest,
    book: AccountBook = Depends(get_book),
) -> AccountResponse:
    """계정 부분 수정

    보낸 필드만 반영. code 변경은 400.
    """
    account = await book.update_account(account_id, **request.to_patch())
    return AccountResponse.from_domain(account)


@router.delete("/{account_id}", status_code=204)
async def delete_account(
    account_id: UUID,
    book: AccountBook = Depends(get_book),
) -> Response:
    """계정 삭제

    분개에서 참조 중이거나 하위 계정이 있으면 409.
    """
    await book.delete_account(account_id)
    return Response(status_code=204)
