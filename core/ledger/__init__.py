"""
복식부기 (Double-Entry Bookkeeping) 코어

계정과목표, 분개(차변 = 대변), 회계연도/기간 기반 전기 통제.

사용 예시:
```python
from adapters.mock import InMemoryJournalStore
from core.ledger import build_ledger

ledger = build_ledger(InMemoryJournalStore())

cash = await ledger.book.create_account("1100", "Cash", AccountType.ASSET)
sales = await ledger.book.create_account("4100", "Sales", AccountType.REVENUE)
await ledger.calendar.create_year("FY2024", date(2024, 1, 1), date(2024, 12, 31))

entry = await ledger.engine.create_entry(
    date(2024, 6, 15),
    "sale",
    [
        JournalLineInput(cash.id, Money(10000, "USD"), Money.zero("USD")),
        JournalLineInput(sales.id, Money.zero("USD"), Money(10000, "USD")),
    ],
)
await ledger.engine.post_entry(entry.id)

# 잔액 / 시산표
balance = await ledger.engine.account_balance(cash.id, date(2024, 6, 30))
trial_balance = await ledger.engine.trial_balance(date(2024, 6, 30))
```
"""

from core.ledger.account_book import UNSET, AccountBook
from core.ledger.budgets import Budgets
from core.ledger.errors import (
    BusinessRuleError,
    ConflictError,
    CurrencyMismatchError,
    ErrorKind,
    LedgerError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from core.ledger.fiscal_calendar import FiscalCalendar
from core.ledger.journal_engine import JournalEngine
from core.ledger.models import (
    Account,
    AccountBalance,
    AccountFilter,
    Budget,
    BudgetLine,
    BudgetReport,
    BudgetVarianceLine,
    EntryFilter,
    FiscalPeriod,
    FiscalYear,
    JournalEntry,
    JournalLine,
    JournalLineInput,
    Page,
    RecurringJournal,
    TrialBalance,
    TrialBalanceRow,
)
from core.ledger.money import Money
from core.ledger.recurring import RecurringJournals
from core.ledger.reports import BalanceSheet, LedgerReports, ProfitAndLoss
from core.ledger.service import LedgerService, build_ledger, seed_default_chart
from core.ledger.types import (
    DEFAULT_CHART,
    AccountStatus,
    AccountType,
    CurrencyMixingPolicy,
    EntryStatus,
    JournalSide,
    PeriodStatus,
    RecurringFrequency,
    RecurringStatus,
    YearStatus,
)

__all__ = [
    # 핵심 클래스
    "AccountBook",
    "FiscalCalendar",
    "JournalEngine",
    "LedgerReports",
    "LedgerService",
    "RecurringJournals",
    "Budgets",
    "build_ledger",
    "seed_default_chart",
    "UNSET",
    # 값 / 레코드
    "Money",
    "Account",
    "AccountBalance",
    "AccountFilter",
    "EntryFilter",
    "FiscalPeriod",
    "FiscalYear",
    "JournalEntry",
    "JournalLine",
    "JournalLineInput",
    "Page",
    "TrialBalance",
    "TrialBalanceRow",
    "RecurringJournal",
    "Budget",
    "BudgetLine",
    "BudgetReport",
    "BudgetVarianceLine",
    "BalanceSheet",
    "ProfitAndLoss",
    # Enum
    "AccountType",
    "AccountStatus",
    "EntryStatus",
    "YearStatus",
    "PeriodStatus",
    "JournalSide",
    "RecurringFrequency",
    "RecurringStatus",
    "CurrencyMixingPolicy",
    # 오류
    "ErrorKind",
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "BusinessRuleError",
    "CurrencyMismatchError",
    "StorageError",
    # 상수
    "DEFAULT_CHART",
]
