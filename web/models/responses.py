"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
금액은 {"amount": 정수 최소 단위, "currency": 통화 코드}
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from core.ledger.models import (
    Account,
    AccountBalance,
    Budget,
    BudgetLine,
    BudgetReport,
    BudgetVarianceLine,
    FiscalPeriod,
    FiscalYear,
    JournalEntry,
    JournalLine,
    JournalLineInput,
    Page,
    RecurringJournal,
    TrialBalanceRow,
)
from core.ledger.money import Money
from core.ledger.reports import BalanceSheet, ProfitAndLoss


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="API 버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class MoneyResponse(BaseModel):
    """금액"""

    amount: int = Field(..., description="정수 최소 단위")
    currency: str = Field(..., description="통화 (ISO 4217)")

    @classmethod
    def from_money(cls, money: Money) -> "MoneyResponse":
        return cls(amount=money.minor_units, currency=money.currency)


class MoneyListResponse(BaseModel):
    """통화별 금액 목록 (per_currency 모드)"""

    balances: list[MoneyResponse] = Field(default_factory=list, description="통화별 잔액")


# =========================================================================
# 계정
# =========================================================================

class AccountResponse(BaseModel):
    """계정 응답"""

    id: UUID = Field(..., description="계정 ID")
    code: str = Field(..., description="계정 코드")
    name: str = Field(..., description="계정 이름")
    account_type: str = Field(..., description="계정 유형")
    parent_id: UUID | None = Field(default=None, description="상위 계정 ID")
    description: str | None = Field(default=None, description="설명")
    status: str = Field(..., description="Active / Inactive")
    created_at: datetime = Field(..., description="생성 시간")
    updated_at: datetime = Field(..., description="수정 시간")

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            code=account.code,
            name=account.name,
            account_type=account.account_type.value,
            parent_id=account.parent_id,
            description=account.description,
            status=account.status.value,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class AccountListResponse(BaseModel):
    """계정 목록 응답 (페이지네이션)"""

    items: list[AccountResponse] = Field(default_factory=list, description="계정 목록")
    total: int = Field(..., description="전체 개수")
    page: int = Field(..., description="현재 페이지")
    per_page: int = Field(..., description="페이지당 개수")
    total_pages: int = Field(..., description="전체 페이지 수")

    @classmethod
    def from_page(cls, page: Page[Account]) -> "AccountListResponse":
        return cls(
            items=[AccountResponse.from_domain(a) for a in page.items],
            total=page.total,
            page=page.page,
            per_page=page.per_page,
            total_pages=page.total_pages,
        )


# =========================================================================
# 회계연도 / 기간
# =========================================================================

class FiscalYearResponse(BaseModel):
    """회계연도 응답"""

    id: UUID
    name: str
    start_date: date
    end_date: date
    status: str = Field(..., description="Open / Closed")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, year: FiscalYear) -> "FiscalYearResponse":
        return cls(
            id=year.id,
            name=year.name,
            start_date=year.start_date,
            end_date=year.end_date,
            status=year.status.value,
            created_at=year.created_at,
            updated_at=year.updated_at,
        )


class FiscalPeriodResponse(BaseModel):
    """회계기간 응답"""

    id: UUID
    fiscal_year_id: UUID
    period_number: int
    name: str
    start_date: date
    end_date: date
    status: str = Field(..., description="Open / Closed")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, period: FiscalPeriod) -> "FiscalPeriodResponse":
        return cls(
            id=period.id,
            fiscal_year_id=period.fiscal_year_id,
            period_number=period.period_number,
            name=period.name,
            start_date=period.start_date,
            end_date=period.end_date,
            status=period.status.value,
            created_at=period.created_at,
            updated_at=period.updated_at,
        )


# =========================================================================
# 분개
# =========================================================================

class JournalLineResponse(BaseModel):
    """분개 항목 응답"""

    line_id: UUID
    account_id: UUID
    debit: int = Field(..., description="차변 금액 (최소 단위)")
    credit: int = Field(..., description="대변 금액 (최소 단위)")
    side: str = Field(..., description="Debit / Credit")
    amount: int = Field(..., description="양수인 쪽 금액")
    currency: str
    description: str | None = None

    @classmethod
    def from_domain(cls, line: JournalLine) -> "JournalLineResponse":
        return cls(
            line_id=line.line_id,
            account_id=line.account_id,
            debit=line.debit.minor_units,
            credit=line.credit.minor_units,
            side=line.side.value,
            amount=line.amount.minor_units,
            currency=line.currency,
            description=line.description,
        )


class JournalEntryResponse(BaseModel):
    """분개 응답"""

    id: UUID = Field(..., description="분개 ID")
    entry_number: str = Field(..., description="분개 번호")
    entry_date: date = Field(..., alias="date", description="회계일자")
    description: str
    reference: str | None = None
    currency: str
    status: str = Field(..., description="Draft / Posted / Reversed")
    lines: list[JournalLineResponse] = Field(default_factory=list)
    total_debit: int
    total_credit: int
    posted_at: datetime | None = None
    reversed_by_id: UUID | None = None
    reversal_of_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}

    @classmethod
    def from_domain(cls, entry: JournalEntry) -> "JournalEntryResponse":
        return cls(
            id=entry.id,
            entry_number=entry.entry_number,
            entry_date=entry.date,
            description=entry.description,
            reference=entry.reference,
            currency=entry.currency,
            status=entry.status.value,
            lines=[JournalLineResponse.from_domain(line) for line in entry.lines],
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            posted_at=entry.posted_at,
            reversed_by_id=entry.reversed_by_id,
            reversal_of_id=entry.reversal_of_id,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


class JournalEntryListResponse(BaseModel):
    """분개 목록 응답 (페이지네이션)"""

    items: list[JournalEntryResponse] = Field(default_factory=list)
    total: int
    page: int
    per_page: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page[JournalEntry]) -> "JournalEntryListResponse":
        return cls(
            items=[JournalEntryResponse.from_domain(e) for e in page.items],
            total=page.total,
            page=page.page,
            per_page=page.per_page,
            total_pages=page.total_pages,
        )


# =========================================================================
# 반복 분개
# =========================================================================

class RecurringLineResponse(BaseModel):
    """반복 분개 템플릿 항목"""

    account_id: UUID
    debit: int
    credit: int
    description: str | None = None

    @classmethod
    def from_domain(cls, line: JournalLineInput) -> "RecurringLineResponse":
        return cls(
            account_id=line.account_id,
            debit=line.debit.minor_units,
            credit=line.credit.minor_units,
            description=line.description,
        )


class RecurringJournalResponse(BaseModel):
    """반복 분개 템플릿 응답"""

    id: UUID
    name: str
    description: str | None = None
    frequency: str
    interval: int
    start_date: date
    end_date: date | None = None
    currency: str
    auto_post: bool
    status: str = Field(..., description="Active / Inactive / Completed")
    run_count: int
    next_run_date: date | None = None
    last_run_date: date | None = None
    last_entry_id: UUID | None = None
    lines: list[RecurringLineResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, template: RecurringJournal) -> "RecurringJournalResponse":
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            frequency=template.frequency.value,
            interval=template.interval,
            start_date=template.start_date,
            end_date=template.end_date,
            currency=template.currency,
            auto_post=template.auto_post,
            status=template.status.value,
            run_count=template.run_count,
            next_run_date=template.next_run_date,
            last_run_date=template.last_run_date,
            last_entry_id=template.last_entry_id,
            lines=[RecurringLineResponse.from_domain(line) for line in template.lines],
            created_at=template.created_at,
            updated_at=template.updated_at,
        )


class ProcessDueResponse(BaseModel):
    """반복 분개 실행 결과"""

    run_date: date
    processed: int = Field(..., description="작성된 분개 수")
    entries: list[JournalEntryResponse] = Field(default_factory=list)


# =========================================================================
# 보고서
# =========================================================================

class AccountSummary(BaseModel):
    """보고서용 계정 요약"""

    id: UUID
    code: str
    name: str
    account_type: str

    @classmethod
    def from_domain(cls, account: Account) -> "AccountSummary":
        return cls(
            id=account.id,
            code=account.code,
            name=account.name,
            account_type=account.account_type.value,
        )


class TrialBalanceRowResponse(BaseModel):
    """시산표 행"""

    account: AccountSummary
    debit_total: MoneyResponse
    credit_total: MoneyResponse
    balance: MoneyResponse

    @classmethod
    def from_domain(cls, row: TrialBalanceRow) -> "TrialBalanceRowResponse":
        return cls(
            account=AccountSummary.from_domain(row.account),
            debit_total=MoneyResponse.from_money(row.debit_total),
            credit_total=MoneyResponse.from_money(row.credit_total),
            balance=MoneyResponse.from_money(row.balance),
        )


class AccountBalanceItemResponse(BaseModel):
    """계정 잔액 항목"""

    account: AccountSummary
    balance: MoneyResponse

    @classmethod
    def from_domain(cls, item: AccountBalance) -> "AccountBalanceItemResponse":
        return cls(
            account=AccountSummary.from_domain(item.account),
            balance=MoneyResponse.from_money(item.balance),
        )


class AccountBalancesResponse(BaseModel):
    """계정 잔액 목록"""

    as_of: date
    balances: list[AccountBalanceItemResponse] = Field(default_factory=list)


class BalanceSheetResponse(BaseModel):
    """재무상태표 응답"""

    as_of: date
    currency: str
    assets: list[AccountBalanceItemResponse] = Field(default_factory=list)
    liabilities: list[AccountBalanceItemResponse] = Field(default_factory=list)
    equity: list[AccountBalanceItemResponse] = Field(default_factory=list)
    total_assets: MoneyResponse
    total_liabilities: MoneyResponse
    total_equity: MoneyResponse
    net_income: MoneyResponse = Field(..., description="미마감 당기순이익")
    is_balanced: bool

    @classmethod
    def from_domain(cls, sheet: BalanceSheet) -> "BalanceSheetResponse":
        return cls(
            as_of=sheet.as_of,
            currency=sheet.currency,
            assets=[AccountBalanceItemResponse.from_domain(i) for i in sheet.assets],
            liabilities=[AccountBalanceItemResponse.from_domain(i) for i in sheet.liabilities],
            equity=[AccountBalanceItemResponse.from_domain(i) for i in sheet.equity],
            total_assets=MoneyResponse.from_money(sheet.total_assets),
            total_liabilities=MoneyResponse.from_money(sheet.total_liabilities),
            total_equity=MoneyResponse.from_money(sheet.total_equity),
            net_income=MoneyResponse.from_money(sheet.net_income),
            is_balanced=sheet.is_balanced,
        )


class ProfitAndLossResponse(BaseModel):
    """손익계산서 응답"""

    date_from: date
    date_to: date
    currency: str
    revenue: list[AccountBalanceItemResponse] = Field(default_factory=list)
    expenses: list[AccountBalanceItemResponse] = Field(default_factory=list)
    total_revenue: MoneyResponse
    total_expenses: MoneyResponse
    net_income: MoneyResponse

    @classmethod
    def from_domain(cls, report: ProfitAndLoss) -> "ProfitAndLossResponse":
        return cls(
            date_from=report.date_from,
            date_to=report.date_to,
            currency=report.currency,
            revenue=[AccountBalanceItemResponse.from_domain(i) for i in report.revenue],
            expenses=[AccountBalanceItemResponse.from_domain(i) for i in report.expenses],
            total_revenue=MoneyResponse.from_money(report.total_revenue),
            total_expenses=MoneyResponse.from_money(report.total_expenses),
            net_income=MoneyResponse.from_money(report.net_income),
        )


# =========================================================================
# 예산
# =========================================================================

class BudgetLineResponse(BaseModel):
    """예산 항목"""

    account_id: UUID
    amount: int

    @classmethod
    def from_domain(cls, line: BudgetLine) -> "BudgetLineResponse":
        return cls(account_id=line.account_id, amount=line.amount.minor_units)


class BudgetResponse(BaseModel):
    """예산 응답"""

    id: UUID
    name: str
    start_date: date
    end_date: date
    currency: str
    lines: list[BudgetLineResponse] = Field(default_factory=list)
    total: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, budget: Budget) -> "BudgetResponse":
        return cls(
            id=budget.id,
            name=budget.name,
            start_date=budget.start_date,
            end_date=budget.end_date,
            currency=budget.currency,
            lines=[BudgetLineResponse.from_domain(line) for line in budget.lines],
            total=budget.total,
            created_at=budget.created_at,
            updated_at=budget.updated_at,
        )


class BudgetVarianceLineResponse(BaseModel):
    """예산 대비 실적 행"""

    account: AccountSummary
    budget: MoneyResponse
    actual: MoneyResponse
    variance: int = Field(..., description="예산 - 실적")
    variance_percent: float = Field(..., description="예산 대비 차이 비율 (%)")

    @classmethod
    def from_domain(cls, line: BudgetVarianceLine) -> "BudgetVarianceLineResponse":
        return cls(
            account=AccountSummary.from_domain(line.account),
            budget=MoneyResponse.from_money(line.budget),
            actual=MoneyResponse.from_money(line.actual),
            variance=line.variance,
            variance_percent=line.variance_percent,
        )


class BudgetReportResponse(BaseModel):
    """예산 대비 실적 응답"""

    budget_id: UUID
    name: str
    start_date: date
    end_date: date
    currency: str
    lines: list[BudgetVarianceLineResponse] = Field(default_factory=list)
    total_budget: int
    total_actual: int
    total_variance: int

    @classmethod
    def from_domain(cls, report: BudgetReport) -> "BudgetReportResponse":
        return cls(
            budget_id=report.budget.id,
            name=report.budget.name,
            start_date=report.budget.start_date,
            end_date=report.budget.end_date,
            currency=report.budget.currency,
            lines=[BudgetVarianceLineResponse.from_domain(line) for line in report.lines],
            total_budget=report.total_budget,
            total_actual=report.total_actual,
            total_variance=report.total_variance,
        )
