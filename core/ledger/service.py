"""
Ledger 서비스 조립

저장소 하나를 공유하는 AccountBook, FiscalCalendar, JournalEngine, LedgerReports,
반복 분개(RecurringJournals), 예산(Budgets) 구성.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from core.ledger.account_book import AccountBook
from core.ledger.budgets import Budgets
from core.ledger.errors import NotFoundError
from core.ledger.fiscal_calendar import FiscalCalendar
from core.ledger.journal_engine import JournalEngine
from core.ledger.models import Account
from core.ledger.recurring import RecurringJournals
from core.ledger.reports import LedgerReports
from core.ledger.types import DEFAULT_CHART, AccountType
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.interfaces import IJournalStore
    from core.config.loader import LedgerSettings

logger = logging.getLogger(__name__)


@dataclass
class LedgerService:
    """Ledger 구성 요소 묶음"""

    store: IJournalStore
    settings: LedgerSettings
    book: AccountBook
    calendar: FiscalCalendar
    engine: JournalEngine
    reports: LedgerReports
    recurring: RecurringJournals
    budgets: Budgets

    async def close(self) -> None:
        await self.store.close()


def build_ledger(
    store: IJournalStore,
    settings: LedgerSettings | None = None,
    clock: Callable[[], datetime] = now_utc,
) -> LedgerService:
    """저장소로 Ledger 구성

    Args:
        store: JournalStore 구현체 (SQLite 또는 메모리)
        settings: Ledger 설정 (None이면 기본값)
        clock: 현재 시각 함수 (테스트 주입용)
    """
    if settings is None:
        # core.config.loader가 core.ledger를 참조하므로 지연 import
        from core.config.loader import LedgerSettings

        settings = LedgerSettings()

    book = AccountBook(store, clock=clock)
    calendar = FiscalCalendar(
        store,
        allow_forced_close=settings.allow_forced_year_close,
        clock=clock,
    )
    engine = JournalEngine(
        store,
        book,
        calendar,
        entry_number_prefix=settings.entry_number_prefix,
        default_currency=settings.default_currency,
        clock=clock,
    )
    return LedgerService(
        store=store,
        settings=settings,
        book=book,
        calendar=calendar,
        engine=engine,
        reports=LedgerReports(engine),
        recurring=RecurringJournals(store, book, engine, clock=clock),
        budgets=Budgets(store, book, engine, clock=clock),
    )


async def seed_default_chart(
    book: AccountBook,
    chart: list[tuple[str, str, str, str | None]] = DEFAULT_CHART,
) -> list[Account]:
    """기본 계정과목표 생성

    이미 존재하는 코드는 건너뜀 (재실행 안전).

    Returns:
        새로 생성된 계정 목록
    """
    created: list[Account] = []
    for code, name, account_type, parent_code in chart:
        try:
            await book.get_by_code(code)
            continue
        except NotFoundError:
            pass

        parent_id = None
        if parent_code is not None:
            parent_id = (await book.get_by_code(parent_code)).id

        created.append(
            await book.create_account(code, name, AccountType(account_type), parent_id=parent_id)
        )

    logger.info("기본 계정과목표 생성", extra={"count": len(created)})
    return created
