"""
재무제표 (LedgerReports)

전기 항목 집계 결과로 재무상태표와 손익계산서 생성.
단일 통화 기준. 다른 통화 항목은 제외.
"""

from dataclasses import dataclass, field
from datetime import date

from core.ledger.errors import ValidationError
from core.ledger.journal_engine import JournalEngine
from core.ledger.models import AccountBalance, TrialBalanceRow
from core.ledger.money import Money, validate_currency
from core.ledger.types import AccountType


@dataclass(frozen=True)
class BalanceSheet:
    """재무상태표

    자산 = 부채 + 자본 + 미마감 당기순이익
    """

    as_of: date
    currency: str
    total_assets: Money
    total_liabilities: Money
    total_equity: Money
    net_income: Money
    assets: list[AccountBalance] = field(default_factory=list)
    liabilities: list[AccountBalance] = field(default_factory=list)
    equity: list[AccountBalance] = field(default_factory=list)

    @property
    def is_balanced(self) -> bool:
        right = self.total_liabilities + self.total_equity + self.net_income
        return self.total_assets == right


@dataclass(frozen=True)
class ProfitAndLoss:
    """손익계산서 (date_from ~ date_to, 양 끝 포함)"""

    date_from: date
    date_to: date
    currency: str
    total_revenue: Money
    total_expenses: Money
    net_income: Money
    revenue: list[AccountBalance] = field(default_factory=list)
    expenses: list[AccountBalance] = field(default_factory=list)


def _section(
    rows: list[TrialBalanceRow],
    account_type: AccountType,
    currency: str,
) -> tuple[list[AccountBalance], Money]:
    items = [
        AccountBalance(account=row.account, balance=row.balance)
        for row in rows
        if row.account.account_type == account_type and row.currency == currency
    ]
    total = Money.zero(currency)
    for item in items:
        total = total + item.balance
    return items, total


class LedgerReports:
    """재무제표 생성기

    Args:
        engine: 분개 엔진 (집계 제공)
    """

    def __init__(self, engine: JournalEngine):
        self.engine = engine

    def _currency(self, currency: str | None) -> str:
        return validate_currency(currency or self.engine.default_currency)

    async def balance_sheet(self, as_of: date, currency: str | None = None) -> BalanceSheet:
        """재무상태표 (as_of 시점)"""
        currency = self._currency(currency)
        rows = await self.engine.activity(as_of)

        assets, total_assets = _section(rows, AccountType.ASSET, currency)
        liabilities, total_liabilities = _section(rows, AccountType.LIABILITY, currency)
        equity, total_equity = _section(rows, AccountType.EQUITY, currency)
        _, total_revenue = _section(rows, AccountType.REVENUE, currency)
        _, total_expenses = _section(rows, AccountType.EXPENSE, currency)

        return BalanceSheet(
            as_of=as_of,
            currency=currency,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            total_equity=total_equity,
            net_income=total_revenue - total_expenses,
        )

    async def profit_and_loss(
        self,
        date_from: date,
        date_to: date,
        currency: str | None = None,
    ) -> ProfitAndLoss:
        """손익계산서

        Raises:
            ValidationError: date_from > date_to
        """
        if date_from > date_to:
            raise ValidationError("date_from must not be after date_to")

        currency = self._currency(currency)
        rows = await self.engine.activity(date_to, date_from)

        revenue, total_revenue = _section(rows, AccountType.REVENUE, currency)
        expenses, total_expenses = _section(rows, AccountType.EXPENSE, currency)

        return ProfitAndLoss(
            date_from=date_from,
            date_to=date_to,
            currency=currency,
            revenue=revenue,
            expenses=expenses,
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            net_income=total_revenue - total_expenses,
        )
