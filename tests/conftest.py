"""
pytest 공통 fixture 정의

메모리 저장소 기반 Ledger 구성 요소 + 기본 계정/회계연도
"""

from datetime import date, datetime, timezone
from typing import Callable

import pytest
import pytest_asyncio

from adapters.mock.memory_store import InMemoryJournalStore
from core.config.loader import LedgerSettings
from core.ledger.account_book import AccountBook
from core.ledger.budgets import Budgets
from core.ledger.fiscal_calendar import FiscalCalendar
from core.ledger.journal_engine import JournalEngine
from core.ledger.models import Account, FiscalYear, JournalLineInput
from core.ledger.money import Money
from core.ledger.recurring import RecurringJournals
from core.ledger.reports import LedgerReports
from core.ledger.service import LedgerService, build_ledger

FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """테스트용 시계 (호출마다 고정 시각 반환, 수동 이동 가능)"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryJournalStore:
    """메모리 JournalStore"""
    return InMemoryJournalStore()


@pytest.fixture
def settings() -> LedgerSettings:
    """기본 Ledger 설정"""
    return LedgerSettings()


@pytest.fixture
def ledger(store: InMemoryJournalStore, settings: LedgerSettings, clock: FakeClock) -> LedgerService:
    """메모리 저장소 기반 Ledger"""
    return build_ledger(store, settings, clock=clock)


@pytest.fixture
def book(ledger: LedgerService) -> AccountBook:
    return ledger.book


@pytest.fixture
def calendar(ledger: LedgerService) -> FiscalCalendar:
    return ledger.calendar


@pytest.fixture
def engine(ledger: LedgerService) -> JournalEngine:
    return ledger.engine


@pytest.fixture
def reports(ledger: LedgerService) -> LedgerReports:
    return ledger.reports


@pytest_asyncio.fixture
async def chart(book: AccountBook) -> dict[str, Account]:
    """기본 계정 (code → Account)

    1000 Cash (Asset), 2000 Payables (Liability), 3000 Capital (Equity),
    4000 Sales (Revenue), 5000 Rent (Expense)
    """
    accounts = {}
    for code, name, account_type in [
        ("1000", "Cash", "Asset"),
        ("2000", "Payables", "Liability"),
        ("3000", "Capital", "Equity"),
        ("4000", "Sales", "Revenue"),
        ("5000", "Rent", "Expense"),
    ]:
        accounts[code] = await book.create_account(code, name, account_type)
    return accounts


@pytest_asyncio.fixture
async def fy2024(calendar: FiscalCalendar) -> FiscalYear:
    """FY2024 (2024-01-01 ~ 2024-12-31, Open)"""
    return await calendar.create_year("FY2024", date(2024, 1, 1), date(2024, 12, 31))


@pytest.fixture
def make_lines() -> Callable[..., list[JournalLineInput]]:
    """분개 항목 생성 헬퍼

    Example:
        make_lines((cash, 10000, 0), (sales, 0, 10000))
    """

    def _make(*rows: tuple[Account, int, int], currency: str = "USD") -> list[JournalLineInput]:
        return [
            JournalLineInput(
                account_id=account.id,
                debit=Money(debit, currency),
                credit=Money(credit, currency),
            )
            for account, debit, credit in rows
        ]

    return _make


@pytest.fixture
def sale_lines(chart: dict[str, Account], make_lines) -> list[JournalLineInput]:
    """Cash 10000 / Sales 10000"""
    return make_lines((chart["1000"], 10000, 0), (chart["4000"], 0, 10000))


@pytest.fixture
def recurring(ledger: LedgerService) -> RecurringJournals:
    return ledger.recurring


@pytest.fixture
def budgets(ledger: LedgerService) -> Budgets:
    return ledger.budgets
