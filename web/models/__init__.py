"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    BudgetCreateRequest,
    BudgetLineRequest,
    FiscalPeriodCreateRequest,
    FiscalYearCreateRequest,
    JournalEntryRequest,
    JournalLineRequest,
    RecurringJournalCreateRequest,
    ReverseRequest,
)
from web.models.responses import (
    AccountBalanceItemResponse,
    AccountBalancesResponse,
    AccountListResponse,
    AccountResponse,
    BalanceSheetResponse,
    BudgetLineResponse,
    BudgetReportResponse,
    BudgetResponse,
    BudgetVarianceLineResponse,
    FiscalPeriodResponse,
    FiscalYearResponse,
    HealthResponse,
    JournalEntryListResponse,
    JournalEntryResponse,
    JournalLineResponse,
    MoneyListResponse,
    MoneyResponse,
    ProcessDueResponse,
    ProfitAndLossResponse,
    RecurringJournalResponse,
    RecurringLineResponse,
    TrialBalanceRowResponse,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "BudgetCreateRequest",
    "BudgetLineRequest",
    "FiscalPeriodCreateRequest",
    "FiscalYearCreateRequest",
    "JournalEntryRequest",
    "JournalLineRequest",
    "RecurringJournalCreateRequest",
    "ReverseRequest",
    # Responses
    "AccountBalanceItemResponse",
    "AccountBalancesResponse",
    "AccountListResponse",
    "AccountResponse",
    "BalanceSheetResponse",
    "BudgetLineResponse",
    "BudgetReportResponse",
    "BudgetResponse",
    "BudgetVarianceLineResponse",
    "FiscalPeriodResponse",
    "FiscalYearResponse",
    "HealthResponse",
    "JournalEntryListResponse",
    "JournalEntryResponse",
    "JournalLineResponse",
    "MoneyListResponse",
    "MoneyResponse",
    "ProcessDueResponse",
    "ProfitAndLossResponse",
    "RecurringJournalResponse",
    "RecurringLineResponse",
    "TrialBalanceRowResponse",
]
