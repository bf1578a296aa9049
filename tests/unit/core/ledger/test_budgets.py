"""Budgets 테스트

예산 생성 검증, 예산 대비 실적 (기간, 하위 계정, 통화, 부호)
"""

from datetime import date
from uuid import uuid4

import pytest

from core.constants import MoneyLimits
from core.ledger.account_book import AccountBook
from core.ledger.budgets import Budgets
from core.ledger.errors import (
    ConflictError,
    CurrencyMismatchError,
    NotFoundError,
    ValidationError,
)
from core.ledger.journal_engine import JournalEngine
from core.ledger.models import BudgetLine
from core.ledger.money import Money

H1_START = date(2024, 1, 1)
H1_END = date(2024, 6, 30)


def _usd(amount: int) -> Money:
    return Money(amount, "USD")


async def _post(engine: JournalEngine, on_date: date, lines) -> None:
    entry = await engine.create_entry(on_date, "activity", lines)
    await engine.post_entry(entry.id)


class TestCreateBudget:
    """예산 생성"""

    @pytest.mark.asyncio
    async def test_create(self, budgets: Budgets, chart) -> None:
        budget = await budgets.create_budget(
            "H1 2024",
            H1_START,
            H1_END,
            [BudgetLine(chart["5000"].id, _usd(100000)), BudgetLine(chart["4000"].id, _usd(50000))],
        )

        assert budget.currency == "USD"
        assert budget.total == 150000
        assert await budgets.get_budget(budget.id) == budget

    @pytest.mark.parametrize(
        "name, start, end, message",
        [
            ("", H1_START, H1_END, "name"),
            ("H1", H1_END, H1_START, "end date"),
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_header(
        self, budgets: Budgets, chart, name: str, start: date, end: date, message: str
    ) -> None:
        with pytest.raises(ValidationError, match=message):
            await budgets.create_budget(name, start, end, [BudgetLine(chart["5000"].id, _usd(1))])

    @pytest.mark.asyncio
    async def test_invalid_lines(self, budgets: Budgets, chart) -> None:
        rent = chart["5000"].id

        with pytest.raises(ValidationError, match="at least one line"):
            await budgets.create_budget("x", H1_START, H1_END, [])

        with pytest.raises(ValidationError, match="negative"):
            await budgets.create_budget("x", H1_START, H1_END, [BudgetLine(rent, _usd(-1))])

        with pytest.raises(ValidationError, match="duplicate account"):
            await budgets.create_budget(
                "x", H1_START, H1_END, [BudgetLine(rent, _usd(1)), BudgetLine(rent, _usd(2))]
            )

        with pytest.raises(ValidationError, match="account not found"):
            await budgets.create_budget("x", H1_START, H1_END, [BudgetLine(uuid4(), _usd(1))])

        assert await budgets.list_budgets() == []

    @pytest.mark.asyncio
    async def test_currency_mismatch(self, budgets: Budgets, chart) -> None:
        with pytest.raises(CurrencyMismatchError):
            await budgets.create_budget(
                "x",
                H1_START,
                H1_END,
                [BudgetLine(chart["5000"].id, Money(100, "EUR"))],
                currency="USD",
            )

    @pytest.mark.asyncio
    async def test_total_out_of_range(self, budgets: Budgets, chart) -> None:
        lines = [
            BudgetLine(chart["5000"].id, _usd(MoneyLimits.MAX_MINOR_UNITS)),
            BudgetLine(chart["4000"].id, _usd(1)),
        ]
        with pytest.raises(ValidationError, match="64-bit"):
            await budgets.create_budget("x", H1_START, H1_END, lines)

    @pytest.mark.asyncio
    async def test_list_delete(self, budgets: Budgets, chart) -> None:
        """목록은 시작일 최근 순"""
        line = [BudgetLine(chart["5000"].id, _usd(1))]
        older = await budgets.create_budget("FY2023", date(2023, 1, 1), date(2023, 12, 31), line)
        newer = await budgets.create_budget("FY2024", date(2024, 1, 1), date(2024, 12, 31), line)

        assert [b.id for b in await budgets.list_budgets()] == [newer.id, older.id]

        await budgets.delete_budget(newer.id)
        assert [b.id for b in await budgets.list_budgets()] == [older.id]
        with pytest.raises(NotFoundError):
            await budgets.delete_budget(newer.id)
        with pytest.raises(NotFoundError):
            await budgets.get_budget(newer.id)

    @pytest.mark.asyncio
    async def test_referenced_account_cannot_be_deleted(
        self, budgets: Budgets, book: AccountBook, chart
    ) -> None:
        budget = await budgets.create_budget(
            "H1", H1_START, H1_END, [BudgetLine(chart["5000"].id, _usd(1))]
        )
        with pytest.raises(ConflictError, match="budgets"):
            await book.delete_account(chart["5000"].id)

        await budgets.delete_budget(budget.id)
        await book.delete_account(chart["5000"].id)


class TestBudgetVsActual:
    """예산 대비 실적"""

    @pytest.mark.asyncio
    async def test_variance(
        self, budgets: Budgets, engine: JournalEngine, chart, fy2024, make_lines
    ) -> None:
        """기간 안의 전기 항목만 실적 (Draft, 기간 밖 제외)"""
        rent, cash = chart["5000"], chart["1000"]
        budget = await budgets.create_budget(
            "H1", H1_START, H1_END, [BudgetLine(rent.id, _usd(100000))]
        )

        await _post(engine, date(2024, 3, 1), make_lines((rent, 30000, 0), (cash, 0, 30000)))
        await _post(engine, date(2024, 7, 1), make_lines((rent, 20000, 0), (cash, 0, 20000)))
        await engine.create_entry(
            date(2024, 4, 1), "draft", make_lines((rent, 5000, 0), (cash, 0, 5000))
        )

        report = await budgets.budget_vs_actual(budget.id)

        [line] = report.lines
        assert line.account == rent
        assert line.budget == _usd(100000)
        assert line.actual == _usd(30000)
        assert line.variance == 70000
        assert line.variance_percent == 70.0
        assert (report.total_budget, report.total_actual, report.total_variance) == (
            100000,
            30000,
            70000,
        )

    @pytest.mark.asyncio
    async def test_boundaries_inclusive(
        self, budgets: Budgets, engine: JournalEngine, chart, fy2024, make_lines
    ) -> None:
        rent, cash = chart["5000"], chart["1000"]
        budget = await budgets.create_budget(
            "H1", H1_START, H1_END, [BudgetLine(rent.id, _usd(1000))]
        )
        for on_date in (H1_START, H1_END, date(2024, 7, 1)):
            await _post(engine, on_date, make_lines((rent, 100, 0), (cash, 0, 100)))

        report = await budgets.budget_vs_actual(budget.id)
        assert report.lines[0].actual == _usd(200)

    @pytest.mark.asyncio
    async def test_over_budget_and_revenue_sign(
        self, budgets: Budgets, engine: JournalEngine, chart, fy2024, make_lines
    ) -> None:
        """수익 계정 실적은 대-차 (양수), 초과 시 차이는 음수"""
        sales, cash = chart["4000"], chart["1000"]
        budget = await budgets.create_budget(
            "Sales", H1_START, H1_END, [BudgetLine(sales.id, _usd(8000))]
        )
        await _post(engine, date(2024, 5, 1), make_lines((cash, 10000, 0), (sales, 0, 10000)))

        line = (await budgets.budget_vs_actual(budget.id)).lines[0]
        assert line.actual == _usd(10000)
        assert line.variance == -2000
        assert line.variance_percent == -25.0

    @pytest.mark.asyncio
    async def test_descendants_roll_up(
        self,
        budgets: Budgets,
        book: AccountBook,
        engine: JournalEngine,
        chart,
        fy2024,
        make_lines,
    ) -> None:
        """하위 계정 실적은 상위 계정 예산에 합산"""
        rent, cash = chart["5000"], chart["1000"]
        office = await book.create_account("5100", "Office Rent", "Expense", parent_id=rent.id)
        budget = await budgets.create_budget(
            "H1", H1_START, H1_END, [BudgetLine(rent.id, _usd(10000))]
        )

        await _post(engine, date(2024, 2, 1), make_lines((rent, 1000, 0), (cash, 0, 1000)))
        await _post(engine, date(2024, 2, 1), make_lines((office, 2500, 0), (cash, 0, 2500)))

        line = (await budgets.budget_vs_actual(budget.id)).lines[0]
        assert line.actual == _usd(3500)

    @pytest.mark.asyncio
    async def test_other_currency_excluded(
        self, budgets: Budgets, engine: JournalEngine, chart, fy2024, make_lines
    ) -> None:
        rent, cash = chart["5000"], chart["1000"]
        budget = await budgets.create_budget(
            "H1", H1_START, H1_END, [BudgetLine(rent.id, _usd(1000))]
        )
        await _post(
            engine,
            date(2024, 2, 1),
            make_lines((rent, 700, 0), (cash, 0, 700), currency="EUR"),
        )

        report = await budgets.budget_vs_actual(budget.id)
        assert report.lines[0].actual == _usd(0)
        assert report.total_variance == 1000

    @pytest.mark.asyncio
    async def test_zero_budget_percent(self, budgets: Budgets, chart) -> None:
        budget = await budgets.create_budget(
            "H1", H1_START, H1_END, [BudgetLine(chart["5000"].id, _usd(0))]
        )
        line = (await budgets.budget_vs_actual(budget.id)).lines[0]
        assert line.variance == 0
        assert line.variance_percent == 0.0

    @pytest.mark.asyncio
    async def test_missing_budget(self, budgets: Budgets) -> None:
        with pytest.raises(NotFoundError):
            await budgets.budget_vs_actual(uuid4())
