"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.

JournalStore 계약:
- begin_txn()은 스코프 트랜잭션을 반환. 정상 종료 시 커밋, 예외/취소 시 롤백.
- 쓰기 트랜잭션은 직렬화됨 (동시에 하나). 읽기 트랜잭션은 커밋된 상태만 관찰.
- update_entry_status()는 비교-교환(CAS). 기대 상태가 아니면 False.
- next_entry_number()는 트랜잭션에 참여하며 단조 증가. 롤백 시 번호 소모 없음.
"""

from datetime import date, datetime
from typing import AsyncContextManager, Collection, Protocol, runtime_checkable
from uuid import UUID

from core.ledger.models import (
    Account,
    AccountFilter,
    Budget,
    EntryFilter,
    FiscalPeriod,
    FiscalYear,
    JournalEntry,
    PostedLine,
    RecurringJournal,
)
from core.ledger.types import EntryStatus, RecurringStatus


@runtime_checkable
class IStoreTxn(Protocol):
    """저장소 트랜잭션 핸들

    모든 조회는 None/빈 목록으로 부재를 표현하며, 오류 매핑은 엔진이 담당.
    드라이버 오류는 StorageError로 변환되어 전파됨.
    """

    # -------------------------------------------------------------------------
    # 계정
    # -------------------------------------------------------------------------

    async def insert_account(self, account: Account) -> None:
        ...

    async def update_account(self, account: Account) -> None:
        ...

    async def delete_account(self, account_id: UUID) -> None:
        ...

    async def get_account(self, account_id: UUID) -> Account | None:
        ...

    async def get_account_by_code(self, code: str) -> Account | None:
        ...

    async def list_accounts(self, account_filter: AccountFilter | None = None) -> list[Account]:
        """계정 목록 (code 오름차순)"""
        ...

    async def account_has_entries(self, account_id: UUID, posted_only: bool = False) -> bool:
        """계정을 참조하는 분개 항목 존재 여부

        Args:
            posted_only: True면 Posted/Reversed 분개만 확인
        """
        ...

    # -------------------------------------------------------------------------
    # 분개
    # -------------------------------------------------------------------------

    async def insert_entry(self, entry: JournalEntry) -> None:
        ...

    async def replace_draft(self, entry: JournalEntry) -> bool:
        """Draft 분개 전체 교체 (Draft가 아니면 False)"""
        ...

    async def update_entry_status(
        self,
        entry_id: UUID,
        old_status: EntryStatus,
        new_status: EntryStatus,
        *,
        updated_at: datetime,
        posted_at: datetime | None = None,
        reversed_by_id: UUID | None = None,
    ) -> bool:
        """상태 비교-교환 (CAS)

        Returns:
            old_status가 일치하여 변경되었으면 True
        """
        ...

    async def delete_entry(self, entry_id: UUID, expected_status: EntryStatus) -> bool:
        """분개 삭제 (expected_status가 아니면 False)"""
        ...

    async def get_entry(self, entry_id: UUID) -> JournalEntry | None:
        ...

    async def list_entries(
        self,
        entry_filter: EntryFilter,
        page: int,
        per_page: int,
    ) -> tuple[list[JournalEntry], int]:
        """분개 목록 (date DESC, entry_number DESC)

        Returns:
            (현재 페이지 항목, 전체 개수)
        """
        ...

    async def list_posted_lines(
        self,
        account_ids: Collection[UUID] | None,
        date_to: date,
        date_from: date | None = None,
    ) -> list[PostedLine]:
        """전기(Posted/Reversed) 분개 항목 조회

        Args:
            account_ids: 대상 계정 (None이면 전체)
            date_to: 분개 일자 상한 (포함)
            date_from: 분개 일자 하한 (포함)
        """
        ...

    async def posted_total(self, currency: str) -> int:
        """통화별 전기(Posted/Reversed) 항목 차변 누계"""
        ...

    async def next_entry_number(self, now: datetime, prefix: str) -> str:
        """다음 분개 번호 발급 ({prefix}{YYYYMMDDHHMMSS}-{seq:06d})"""
        ...

    # -------------------------------------------------------------------------
    # 회계연도 / 기간
    # -------------------------------------------------------------------------

    async def insert_year(self, year: FiscalYear) -> None:
        ...

    async def update_year(self, year: FiscalYear) -> None:
        ...

    async def get_year(self, year_id: UUID) -> FiscalYear | None:
        ...

    async def list_years(self) -> list[FiscalYear]:
        """회계연도 목록 (start_date 오름차순)"""
        ...

    async def find_year_for_date(self, on_date: date) -> FiscalYear | None:
        ...

    async def find_overlapping_years(self, start_date: date, end_date: date) -> list[FiscalYear]:
        ...

    async def insert_period(self, period: FiscalPeriod) -> None:
        ...

    async def update_period(self, period: FiscalPeriod) -> None:
        ...

    async def get_period(self, period_id: UUID) -> FiscalPeriod | None:
        ...

    async def list_periods(self, year_id: UUID) -> list[FiscalPeriod]:
        """기간 목록 (start_date 오름차순)"""
        ...

    async def find_period_for_date(self, on_date: date) -> FiscalPeriod | None:
        ...

    # -------------------------------------------------------------------------
    # 반복 분개 / 예산
    # -------------------------------------------------------------------------

    async def insert_recurring(self, template: RecurringJournal) -> None:
        ...

    async def update_recurring(self, template: RecurringJournal) -> None:
        ...

    async def get_recurring(self, template_id: UUID) -> RecurringJournal | None:
        ...

    async def list_recurring(self, status: RecurringStatus | None = None) -> list[RecurringJournal]:
        """반복 분개 목록 (name, id 순)"""
        ...

    async def list_due_recurring(self, on_date: date) -> list[RecurringJournal]:
        """도래한 Active 템플릿 (next_run_date, name 순)"""
        ...

    async def insert_budget(self, budget: Budget) -> None:
        ...

    async def get_budget(self, budget_id: UUID) -> Budget | None:
        ...

    async def list_budgets(self) -> list[Budget]:
        """예산 목록 (start_date DESC, name 순)"""
        ...

    async def delete_budget(self, budget_id: UUID) -> bool:
        """예산 삭제 (없으면 False)"""
        ...

    async def account_has_plans(self, account_id: UUID) -> bool:
        """반복 분개 템플릿 또는 예산 항목이 계정을 참조하는지 여부"""
        ...


@runtime_checkable
class IJournalStore(Protocol):
    """JournalStore 포트

    엔진은 구체 DB가 아닌 이 능력(capability)에 의존.
    """

    def begin_txn(self, readonly: bool = False) -> AsyncContextManager[IStoreTxn]:
        """스코프 트랜잭션 획득

        Args:
            readonly: 읽기 전용 (쓰기 직렬화에 참여하지 않음)
        """
        ...

    async def close(self) -> None:
        ...
