"""SQLiteJournalStore 통합 테스트

실제 SQLite 파일 위에서 Ledger 전체 흐름 검증
"""

import asyncio
from datetime import date
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_store import SQLiteJournalStore
from core.config.loader import LedgerSettings
from core.ledger.errors import BusinessRuleError, ConflictError, NotFoundError, StorageError
from core.ledger.models import BudgetLine, EntryFilter, JournalLineInput
from core.ledger.money import Money
from core.ledger.service import LedgerService, build_ledger, seed_default_chart
from core.ledger.types import EntryStatus, PeriodStatus, RecurringFrequency, RecurringStatus

SALE_DATE = date(2024, 6, 15)


def _lines(debit_account, credit_account, amount: int, currency: str = "USD") -> list[JournalLineInput]:
    return [
        JournalLineInput(debit_account.id, Money(amount, currency), Money.zero(currency)),
        JournalLineInput(credit_account.id, Money.zero(currency), Money(amount, currency)),
    ]


@pytest_asyncio.fixture
async def sqlite_ledger(tmp_path: Path, clock) -> LedgerService:
    """임시 파일 DB 기반 Ledger"""
    store = SQLiteJournalStore(tmp_path / "ledger.db", busy_timeout_ms=5000)
    await store.open()
    ledger = build_ledger(store, LedgerSettings(), clock=clock)
    yield ledger
    await ledger.close()


@pytest_asyncio.fixture
async def accounts(sqlite_ledger: LedgerService) -> dict:
    book = sqlite_ledger.book
    return {
        "cash": await book.create_account("1000", "Cash", "Asset"),
        "payables": await book.create_account("2000", "Payables", "Liability"),
        "sales": await book.create_account("4000", "Sales", "Revenue"),
        "rent": await book.create_account("5000", "Rent", "Expense"),
    }


@pytest_asyncio.fixture
async def year(sqlite_ledger: LedgerService):
    return await sqlite_ledger.calendar.create_year("FY2024", date(2024, 1, 1), date(2024, 12, 31))


class TestSQLiteScenarios:
    """기본 시나리오"""

    @pytest.mark.asyncio
    async def test_post_sale(self, sqlite_ledger, accounts, year) -> None:
        """작성 → 전기 → 잔액/시산표"""
        engine = sqlite_ledger.engine
        entry = await engine.create_entry(
            SALE_DATE, "sale", _lines(accounts["cash"], accounts["sales"], 10000)
        )
        posted = await engine.post_entry(entry.id)

        assert posted.status == EntryStatus.POSTED
        assert posted.posted_at is not None
        assert await engine.account_balance(accounts["cash"].id, SALE_DATE) == Money(10000, "USD")
        assert await engine.account_balance(accounts["sales"].id, SALE_DATE) == Money(10000, "USD")

        trial = await engine.trial_balance(SALE_DATE)
        assert trial.is_balanced()
        assert trial.totals() == {"USD": (10000, 10000)}

    @pytest.mark.asyncio
    async def test_unbalanced_rejected(self, sqlite_ledger, accounts, year) -> None:
        """불균형 분개는 저장되지 않음"""
        lines = [
            JournalLineInput(accounts["cash"].id, Money(100, "USD"), Money.zero("USD")),
            JournalLineInput(accounts["sales"].id, Money.zero("USD"), Money(90, "USD")),
        ]
        with pytest.raises(BusinessRuleError, match="entry must balance"):
            await sqlite_ledger.engine.create_entry(SALE_DATE, "bad", lines)

        page = await sqlite_ledger.engine.list_entries()
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_closed_year_blocks_post(self, sqlite_ledger, accounts, year) -> None:
        """마감된 연도 일자의 전기 거부, 상태 유지"""
        entry = await sqlite_ledger.engine.create_entry(
            SALE_DATE, "sale", _lines(accounts["cash"], accounts["sales"], 500)
        )
        await sqlite_ledger.calendar.close_year(year.id, force=True)

        with pytest.raises(BusinessRuleError, match="period closed"):
            await sqlite_ledger.engine.post_entry(entry.id)

        stored = await sqlite_ledger.engine.get_entry(entry.id)
        assert stored.status == EntryStatus.DRAFT

    @pytest.mark.asyncio
    async def test_reverse(self, sqlite_ledger, accounts, year) -> None:
        """역분개 후 잔액 0, 양방향 연결"""
        engine = sqlite_ledger.engine
        entry = await engine.create_entry(
            SALE_DATE, "sale", _lines(accounts["cash"], accounts["sales"], 10000)
        )
        await engine.post_entry(entry.id)

        reversal = await engine.reverse_entry(entry.id, date(2024, 6, 20), "undo")
        original = await engine.get_entry(entry.id)

        assert original.status == EntryStatus.REVERSED
        assert original.reversed_by_id == reversal.id
        assert reversal.reversal_of_id == entry.id
        assert reversal.status == EntryStatus.POSTED
        assert reversal.lines[0].credit == Money(10000, "USD")
        assert await engine.account_balance(accounts["cash"].id, date(2024, 6, 30)) == Money(0, "USD")

        with pytest.raises(ConflictError, match="already reversed"):
            await engine.reverse_entry(entry.id, date(2024, 6, 21), "again")

    @pytest.mark.asyncio
    async def test_concurrent_post(self, sqlite_ledger, accounts, year) -> None:
        """동시 전기는 정확히 하나만 성공"""
        engine = sqlite_ledger.engine
        entry = await engine.create_entry(
            SALE_DATE, "sale", _lines(accounts["cash"], accounts["sales"], 700)
        )

        results = await asyncio.gather(
            engine.post_entry(entry.id),
            engine.post_entry(entry.id),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], ConflictError)
        assert await engine.account_balance(accounts["cash"].id, SALE_DATE) == Money(700, "USD")

    @pytest.mark.asyncio
    async def test_inactive_account_blocks_post(self, sqlite_ledger, accounts, year) -> None:
        """작성 후 비활성화된 계정은 전기 거부"""
        entry = await sqlite_ledger.engine.create_entry(
            SALE_DATE, "rent", _lines(accounts["rent"], accounts["cash"], 300)
        )
        await sqlite_ledger.book.deactivate(accounts["rent"].id)

        with pytest.raises(BusinessRuleError, match="inactive"):
            await sqlite_ledger.engine.post_entry(entry.id)


class TestSQLitePersistence:
    """영속성 및 조회"""

    @pytest.mark.asyncio
    async def test_numbering_survives_reopen(self, tmp_path: Path, clock) -> None:
        """재연결 후에도 분개 번호는 이어짐"""
        db_path = tmp_path / "reopen.db"

        async with SQLiteJournalStore(db_path) as store:
            ledger = build_ledger(store, clock=clock)
            cash = await ledger.book.create_account("1000", "Cash", "Asset")
            sales = await ledger.book.create_account("4000", "Sales", "Revenue")
            first = await ledger.engine.create_entry(SALE_DATE, "a", _lines(cash, sales, 1))

        async with SQLiteJournalStore(db_path) as store:
            ledger = build_ledger(store, clock=clock)
            second = await ledger.engine.create_entry(SALE_DATE, "b", _lines(cash, sales, 1))
            reloaded = await ledger.engine.get_entry(first.id)

        assert first.entry_number == "JE-20240615120000-000001"
        assert second.entry_number == "JE-20240615120000-000002"
        assert reloaded.lines == first.lines

    @pytest.mark.asyncio
    async def test_list_order_and_filters(self, sqlite_ledger, accounts) -> None:
        """date DESC, entry_number DESC 정렬 및 필터"""
        engine = sqlite_ledger.engine
        a = await engine.create_entry(date(2024, 1, 5), "a", _lines(accounts["cash"], accounts["sales"], 1))
        b = await engine.create_entry(date(2024, 3, 5), "b", _lines(accounts["rent"], accounts["payables"], 2))
        c = await engine.create_entry(date(2024, 3, 5), "c", _lines(accounts["cash"], accounts["sales"], 3))

        page = await engine.list_entries(per_page=2)
        assert [e.id for e in page.items] == [c.id, b.id]
        assert page.total == 3
        assert page.total_pages == 2

        page2 = await engine.list_entries(page=2, per_page=2)
        assert [e.id for e in page2.items] == [a.id]

        by_account = await engine.list_entries(EntryFilter(account_id=accounts["rent"].id))
        assert [e.id for e in by_account.items] == [b.id]

        by_date = await engine.list_entries(EntryFilter(date_to=date(2024, 2, 1)))
        assert [e.id for e in by_date.items] == [a.id]

    @pytest.mark.asyncio
    async def test_delete_draft_removes_lines(self, sqlite_ledger, accounts) -> None:
        """Draft 삭제 시 항목도 삭제, 계정 삭제 가능해짐"""
        engine = sqlite_ledger.engine
        entry = await engine.create_entry(SALE_DATE, "x", _lines(accounts["rent"], accounts["payables"], 5))

        await engine.delete_entry(entry.id)

        with pytest.raises(NotFoundError):
            await engine.get_entry(entry.id)
        await sqlite_ledger.book.delete_account(accounts["rent"].id)

    @pytest.mark.asyncio
    async def test_update_draft(self, sqlite_ledger, accounts) -> None:
        """Draft 교체 시 번호 유지, 항목 교체"""
        engine = sqlite_ledger.engine
        entry = await engine.create_entry(SALE_DATE, "x", _lines(accounts["cash"], accounts["sales"], 5))

        updated = await engine.update_draft(
            entry.id, date(2024, 6, 16), "y", _lines(accounts["rent"], accounts["cash"], 9)
        )
        stored = await engine.get_entry(entry.id)

        assert stored.entry_number == entry.entry_number
        assert stored.description == "y"
        assert stored.total_debit == 9
        assert stored.lines == updated.lines

    @pytest.mark.asyncio
    async def test_commit_failure_rolls_back(self, sqlite_ledger, accounts) -> None:
        """트랜잭션 중 오류 시 아무것도 남지 않음"""
        store = sqlite_ledger.store

        with pytest.raises(StorageError):
            async with store.begin_txn() as txn:
                await txn.insert_account(accounts["cash"])

        assert len(await sqlite_ledger.book.list_accounts()) == 4

    @pytest.mark.asyncio
    async def test_seed_chart_idempotent(self, sqlite_ledger) -> None:
        """기본 계정과목표는 재실행 안전"""
        created = await seed_default_chart(sqlite_ledger.book)
        again = await seed_default_chart(sqlite_ledger.book)

        assert len(created) > 0
        assert again == []


class TestSQLitePeriods:
    """회계기간"""

    @pytest.mark.asyncio
    async def test_monthly_periods_and_close(self, sqlite_ledger, accounts, year) -> None:
        """월별 기간 생성 후 기간 마감 시 전기 거부"""
        calendar = sqlite_ledger.calendar
        periods = await calendar.create_monthly_periods(year.id)
        assert len(periods) == 12

        june = next(p for p in periods if p.start_date == date(2024, 6, 1))
        closed = await calendar.close_period(june.id)
        assert closed.status == PeriodStatus.CLOSED

        entry = await sqlite_ledger.engine.create_entry(
            SALE_DATE, "sale", _lines(accounts["cash"], accounts["sales"], 100)
        )
        with pytest.raises(BusinessRuleError, match="period closed"):
            await sqlite_ledger.engine.post_entry(entry.id)

        await calendar.reopen_period(june.id)
        posted = await sqlite_ledger.engine.post_entry(entry.id)
        assert posted.status == EntryStatus.POSTED

        stored = await calendar.list_periods(year.id)
        assert [p.period_number for p in stored] == list(range(1, 13))


class TestSQLitePlans:
    """반복 분개 / 예산"""

    @pytest.mark.asyncio
    async def test_recurring_round_trip(self, sqlite_ledger, accounts, year) -> None:
        """템플릿 저장/조회, 도래 회차 실행 후 진행 상태 보존"""
        recurring = sqlite_ledger.recurring
        template = await recurring.create_template(
            "office rent",
            RecurringFrequency.MONTHLY,
            date(2024, 1, 31),
            _lines(accounts["rent"], accounts["cash"], 150000),
            end_date=date(2024, 3, 31),
            auto_post=True,
        )
        assert await recurring.get_template(template.id) == template

        entries = await recurring.process_due(date(2024, 12, 31))
        assert [e.date for e in entries] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
        assert all(e.status == EntryStatus.POSTED for e in entries)

        stored = await recurring.get_template(template.id)
        assert stored.status == RecurringStatus.COMPLETED
        assert stored.run_count == 3
        assert stored.next_run_date is None
        assert stored.last_run_date == date(2024, 3, 31)
        assert stored.last_entry_id == entries[-1].id
        assert stored.lines == template.lines

        balance = await sqlite_ledger.engine.account_balance(accounts["rent"].id, date(2024, 12, 31))
        assert balance == Money(450000, "USD")

    @pytest.mark.asyncio
    async def test_budget_round_trip(self, sqlite_ledger, accounts, year) -> None:
        """예산 저장/조회, 실적 집계, 참조 계정 삭제 차단"""
        budgets = sqlite_ledger.budgets
        budget = await budgets.create_budget(
            "H1 2024",
            date(2024, 1, 1),
            date(2024, 6, 30),
            [BudgetLine(accounts["rent"].id, Money(300000, "USD"))],
        )
        assert await budgets.get_budget(budget.id) == budget
        assert await budgets.list_budgets() == [budget]

        entry = await sqlite_ledger.engine.create_entry(
            SALE_DATE, "rent", _lines(accounts["rent"], accounts["cash"], 120000)
        )
        await sqlite_ledger.engine.post_entry(entry.id)

        report = await budgets.budget_vs_actual(budget.id)
        assert report.lines[0].actual == Money(120000, "USD")
        assert report.total_variance == 180000

        with pytest.raises(ConflictError, match="budgets"):
            await sqlite_ledger.book.delete_account(accounts["rent"].id)

        await budgets.delete_budget(budget.id)
        with pytest.raises(NotFoundError):
            await budgets.get_budget(budget.id)

    @pytest.mark.asyncio
    async def test_posted_total(self, sqlite_ledger, accounts, year) -> None:
        engine = sqlite_ledger.engine
        for amount in (100, 250):
            entry = await engine.create_entry(
                SALE_DATE, "sale", _lines(accounts["cash"], accounts["sales"], amount)
            )
            await engine.post_entry(entry.id)
        await engine.create_entry(SALE_DATE, "draft", _lines(accounts["cash"], accounts["sales"], 999))

        async with sqlite_ledger.store.begin_txn(readonly=True) as txn:
            assert await txn.posted_total("USD") == 350
            assert await txn.posted_total("EUR") == 0
