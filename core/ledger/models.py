"""
Ledger 도메인 모델

계정, 분개, 회계연도/기간 등 저장소와 엔진이 주고받는 레코드.
모든 레코드는 불변(frozen)이며, 변경은 dataclasses.replace로 새 레코드를 만들어 저장.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Generic, TypeVar
from uuid import UUID, uuid4

from core.ledger.money import Money
from core.ledger.types import (
    AccountStatus,
    AccountType,
    EntryStatus,
    JournalSide,
    PeriodStatus,
    RecurringFrequency,
    RecurringStatus,
    YearStatus,
)

T = TypeVar("T")


def new_id() -> UUID:
    """128-bit 식별자 생성"""
    return uuid4()


@dataclass(frozen=True)
class Account:
    """계정 (계정과목표의 노드)

    Attributes:
        id: 계정 ID
        code: 계정 코드 (전체 유일, 대소문자 구분)
        name: 표시 이름
        account_type: 계정 유형
        parent_id: 상위 계정 ID (같은 유형이어야 함)
        description: 설명
        status: Active / Inactive
    """

    id: UUID
    code: str
    name: str
    account_type: AccountType
    created_at: datetime
    updated_at: datetime
    parent_id: UUID | None = None
    description: str | None = None
    status: AccountStatus = AccountStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


@dataclass(frozen=True)
class JournalLineInput:
    """분개 항목 입력 (ID 부여 전)"""

    account_id: UUID
    debit: Money
    credit: Money
    description: str | None = None


@dataclass(frozen=True)
class JournalLine:
    """분개 항목

    debit / credit 중 정확히 하나만 양수.
    """

    line_id: UUID
    account_id: UUID
    debit: Money
    credit: Money
    description: str | None = None

    @property
    def currency(self) -> str:
        return self.debit.currency

    @property
    def side(self) -> JournalSide:
        return JournalSide.DEBIT if self.debit.is_positive() else JournalSide.CREDIT

    @property
    def amount(self) -> Money:
        """방향과 무관한 금액"""
        return self.debit if self.debit.is_positive() else self.credit

    def swapped(self, line_id: UUID) -> JournalLine:
        """차변/대변을 바꾼 항목 (역분개용)"""
        return JournalLine(
            line_id=line_id,
            account_id=self.account_id,
            debit=self.credit,
            credit=self.debit,
            description=self.description,
        )


@dataclass(frozen=True)
class JournalEntry:
    """분개

    하나의 거래에 대한 복식부기 기록.
    차변 합계 = 대변 합계 (정수 일치)
    """

    id: UUID
    entry_number: str
    date: date
    description: str
    currency: str
    lines: tuple[JournalLine, ...]
    created_at: datetime
    updated_at: datetime
    status: EntryStatus = EntryStatus.DRAFT
    reference: str | None = None
    posted_at: datetime | None = None

    # 역분개 연결
    reversed_by_id: UUID | None = None  # 이 분개를 취소한 역분개
    reversal_of_id: UUID | None = None  # 이 분개가 취소하는 원분개

    @property
    def total_debit(self) -> int:
        return sum(line.debit.minor_units for line in self.lines)

    @property
    def total_credit(self) -> int:
        return sum(line.credit.minor_units for line in self.lines)

    def is_balanced(self) -> bool:
        """차변 합계 = 대변 합계 (정수 비교)"""
        return self.total_debit == self.total_credit

    @property
    def account_ids(self) -> list[UUID]:
        """참조 계정 ID (중복 제거, 순서 유지)"""
        return list(dict.fromkeys(line.account_id for line in self.lines))


@dataclass(frozen=True)
class PostedLine:
    """잔액 집계용 전기 항목 (저장소 조회 결과)"""

    entry_id: UUID
    entry_date: date
    account_id: UUID
    debit: int
    credit: int
    currency: str


@dataclass(frozen=True)
class FiscalYear:
    """회계연도

    종료일 포함. 연도 간 구간 중복 불가.
    """

    id: UUID
    name: str
    start_date: date
    end_date: date
    created_at: datetime
    updated_at: datetime
    status: YearStatus = YearStatus.OPEN

    def contains(self, on_date: date) -> bool:
        return self.start_date <= on_date <= self.end_date

    @property
    def is_open(self) -> bool:
        return self.status == YearStatus.OPEN


@dataclass(frozen=True)
class FiscalPeriod:
    """회계기간 (회계연도의 하위 구간)"""

    id: UUID
    fiscal_year_id: UUID
    period_number: int
    name: str
    start_date: date
    end_date: date
    created_at: datetime
    updated_at: datetime
    status: PeriodStatus = PeriodStatus.OPEN

    def contains(self, on_date: date) -> bool:
        return self.start_date <= on_date <= self.end_date

    @property
    def is_open(self) -> bool:
        return self.status == PeriodStatus.OPEN


# -------------------------------------------------------------------------
# 반복 분개 / 예산
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class RecurringJournal:
    """반복 분개 템플릿

    회차 k의 일자는 start_date에서 (주기 × interval × k)만큼 이동한 날.
    next_run_date가 None이면 더 생성할 회차 없음.

    Attributes:
        run_count: 지금까지 생성한 회차 수
        last_entry_id: 마지막으로 생성한 분개
    """

    id: UUID
    name: str
    frequency: RecurringFrequency
    interval: int
    start_date: date
    currency: str
    lines: tuple[JournalLineInput, ...]
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    end_date: date | None = None
    auto_post: bool = False
    status: RecurringStatus = RecurringStatus.ACTIVE
    run_count: int = 0
    next_run_date: date | None = None
    last_run_date: date | None = None
    last_entry_id: UUID | None = None

    @property
    def entry_description(self) -> str:
        return self.description or self.name

    @property
    def account_ids(self) -> list[UUID]:
        return list(dict.fromkeys(line.account_id for line in self.lines))

    def is_due(self, on_date: date) -> bool:
        return (
            self.status == RecurringStatus.ACTIVE
            and self.next_run_date is not None
            and self.next_run_date <= on_date
        )


@dataclass(frozen=True)
class BudgetLine:
    """예산 항목 (계정별 기간 예산액)"""

    account_id: UUID
    amount: Money


@dataclass(frozen=True)
class Budget:
    """예산 (start_date ~ end_date, 양 끝 포함, 단일 통화)"""

    id: UUID
    name: str
    start_date: date
    end_date: date
    currency: str
    lines: tuple[BudgetLine, ...]
    created_at: datetime
    updated_at: datetime

    @property
    def total(self) -> int:
        return sum(line.amount.minor_units for line in self.lines)

    @property
    def account_ids(self) -> list[UUID]:
        return [line.account_id for line in self.lines]


@dataclass(frozen=True)
class BudgetVarianceLine:
    """예산 대비 실적 (계정별)

    실적은 기간 내 전기 항목의 유형별 부호 잔액 (하위 계정 포함).
    차이 = 예산 - 실적
    """

    account: Account
    budget: Money
    actual: Money

    @property
    def variance(self) -> int:
        return self.budget.minor_units - self.actual.minor_units

    @property
    def variance_percent(self) -> float:
        """예산 대비 차이 비율 (표시용, 예산이 0이면 0.0)"""
        if self.budget.minor_units <= 0:
            return 0.0
        return round(self.variance * 100 / self.budget.minor_units, 2)


@dataclass(frozen=True)
class BudgetReport:
    """예산 대비 실적 보고"""

    budget: Budget
    lines: list[BudgetVarianceLine] = field(default_factory=list)

    @property
    def total_budget(self) -> int:
        return sum(line.budget.minor_units for line in self.lines)

    @property
    def total_actual(self) -> int:
        return sum(line.actual.minor_units for line in self.lines)

    @property
    def total_variance(self) -> int:
        return self.total_budget - self.total_actual


# -------------------------------------------------------------------------
# 조회 필터 / 페이지
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class AccountFilter:
    """계정 목록 필터"""

    account_type: AccountType | None = None
    status: AccountStatus | None = None
    parent_id: UUID | None = None

    def matches(self, account: Account) -> bool:
        if self.account_type is not None and account.account_type != self.account_type:
            return False
        if self.status is not None and account.status != self.status:
            return False
        if self.parent_id is not None and account.parent_id != self.parent_id:
            return False
        return True


@dataclass(frozen=True)
class EntryFilter:
    """분개 목록 필터 (날짜 구간은 양 끝 포함)"""

    account_id: UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    status: EntryStatus | None = None

    def matches(self, entry: JournalEntry) -> bool:
        if self.status is not None and entry.status != self.status:
            return False
        if self.date_from is not None and entry.date < self.date_from:
            return False
        if self.date_to is not None and entry.date > self.date_to:
            return False
        if self.account_id is not None and self.account_id not in entry.account_ids:
            return False
        return True


@dataclass(frozen=True)
class Page(Generic[T]):
    """페이지 응답

    Attributes:
        items: 현재 페이지 항목
        total: 전체 항목 수
        page: 현재 페이지 (1부터)
        per_page: 페이지 크기
    """

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 50

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.per_page - 1) // self.per_page


def paginate(items: list[T], page: int, per_page: int) -> Page[T]:
    """메모리 내 목록을 페이지로 자르기"""
    offset = (page - 1) * per_page
    return Page(
        items=items[offset : offset + per_page],
        total=len(items),
        page=page,
        per_page=per_page,
    )


# -------------------------------------------------------------------------
# 조회 결과 (잔액 / 시산표)
# -------------------------------------------------------------------------

@dataclass(frozen=True)
class AccountBalance:
    """계정 잔액 (유형별 부호 규칙 적용)"""

    account: Account
    balance: Money


@dataclass(frozen=True)
class TrialBalanceRow:
    """시산표 행 (계정 × 통화)

    debit_total / credit_total은 전기 항목의 총액(상계 전).
    """

    account: Account
    debit_total: Money
    credit_total: Money

    @property
    def currency(self) -> str:
        return self.debit_total.currency

    @property
    def balance(self) -> Money:
        """유형별 부호 규칙을 적용한 순잔액"""
        if self.account.account_type.is_debit_normal:
            return self.debit_total - self.credit_total
        return self.credit_total - self.debit_total


@dataclass(frozen=True)
class TrialBalance:
    """시산표

    통화별로 차변 합계 = 대변 합계가 성립해야 함.
    """

    as_of: date
    rows: list[TrialBalanceRow] = field(default_factory=list)

    def totals(self) -> dict[str, tuple[int, int]]:
        """통화별 (차변 합계, 대변 합계)"""
        result: dict[str, tuple[int, int]] = {}
        for row in self.rows:
            debit, credit = result.get(row.currency, (0, 0))
            result[row.currency] = (
                debit + row.debit_total.minor_units,
                credit + row.credit_total.minor_units,
            )
        return result

    def is_balanced(self) -> bool:
        return all(debit == credit for debit, credit in self.totals().values())
