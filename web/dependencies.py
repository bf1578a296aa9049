"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
Ledger 구성 요소는 앱 생명주기에서 생성되어 app.state에 보관.
"""

from fastapi import Request

from core.config.loader import LedgerSettings
from core.ledger.account_book import AccountBook
from core.ledger.budgets import Budgets
from core.ledger.errors import StorageError
from core.ledger.fiscal_calendar import FiscalCalendar
from core.ledger.journal_engine import JournalEngine
from core.ledger.recurring import RecurringJournals
from core.ledger.reports import LedgerReports
from core.ledger.service import LedgerService


def get_ledger(request: Request) -> LedgerService:
    """Ledger 서비스 반환

    Raises:
        StorageError: 저장소가 준비되지 않은 경우
    """
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        raise StorageError("ledger store is not ready")
    return ledger


def get_app_settings(request: Request) -> LedgerSettings:
    """애플리케이션 설정 반환"""
    return get_ledger(request).settings


def get_book(request: Request) -> AccountBook:
    return get_ledger(request).book


def get_calendar(request: Request) -> FiscalCalendar:
    return get_ledger(request).calendar


def get_engine(request: Request) -> JournalEngine:
    return get_ledger(request).engine


def get_reports(request: Request) -> LedgerReports:
    return get_ledger(request).reports


def get_recurring(request: Request) -> RecurringJournals:
    return get_ledger(request).recurring


def get_budgets(request: Request) -> Budgets:
    return get_ledger(request).budgets
