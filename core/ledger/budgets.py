"""
예산 (Budgets)

계정별 기간 예산액과 예산 대비 실적(variance) 조회.
실적은 예산 기간의 전기 활동(engine.activity)에서 계정과 하위 계정의 부호 잔액 합.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Sequence
from uuid import UUID

from core.constants import MoneyLimits
from core.ledger.errors import CurrencyMismatchError, NotFoundError, ValidationError
from core.ledger.journal_engine import JournalEngine
from core.ledger.models import Budget, BudgetLine, BudgetReport, BudgetVarianceLine, new_id
from core.ledger.money import Money, validate_currency
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.interfaces import IJournalStore, IStoreTxn
    from core.ledger.account_book import AccountBook

logger = logging.getLogger(__name__)


class Budgets:
    """예산 관리

    Args:
        store: JournalStore 포트
        book: 계정과목표 (하위 계정 집계용)
        engine: 분개 엔진 (기간 활동 조회용)
        clock: 현재 시각 함수 (테스트 주입용)
    """

    def __init__(
        self,
        store: IJournalStore,
        book: AccountBook,
        engine: JournalEngine,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.book = book
        self.engine = engine
        self.clock = clock

    async def create_budget(
        self,
        name: str,
        start_date: date,
        end_date: date,
        lines: Sequence[BudgetLine],
        currency: str | None = None,
    ) -> Budget:
        """예산 생성

        Raises:
            ValidationError: 이름 누락, 기간 역전, 항목 없음, 음수 금액, 계정 중복/없음, 합계 범위 초과
            CurrencyMismatchError: 예산/항목 통화 불일치
        """
        if not name or not name.strip():
            raise ValidationError("name must not be empty")
        if end_date < start_date:
            raise ValidationError("end date must not be before start date")
        if not lines:
            raise ValidationError("budget needs at least one line")

        budget_currency = validate_currency(
            currency if currency is not None else lines[0].amount.currency
        )
        seen: set[UUID] = set()
        for index, line in enumerate(lines, 1):
            if line.amount.currency != budget_currency:
                raise CurrencyMismatchError(budget_currency, line.amount.currency)
            if line.amount.is_negative():
                raise ValidationError(f"line {index}: amount must not be negative")
            if line.account_id in seen:
                raise ValidationError(f"line {index}: duplicate account")
            seen.add(line.account_id)

        if sum(line.amount.minor_units for line in lines) > MoneyLimits.MAX_MINOR_UNITS:
            raise ValidationError("budget total out of 64-bit range")

        async with self.store.begin_txn() as txn:
            for line in lines:
                if await txn.get_account(line.account_id) is None:
                    raise ValidationError(f"account not found: {line.account_id}")

            now = self.clock()
            budget = Budget(
                id=new_id(),
                name=name,
                start_date=start_date,
                end_date=end_date,
                currency=budget_currency,
                lines=tuple(lines),
                created_at=now,
                updated_at=now,
            )
            await txn.insert_budget(budget)

        logger.info(
            "예산 생성",
            extra={"budget_id": str(budget.id), "line_count": len(lines), "total": budget.total},
        )
        return budget

    async def get_budget(self, budget_id: UUID) -> Budget:
        """예산 조회

        Raises:
            NotFoundError: 예산 없음
        """
        async with self.store.begin_txn(readonly=True) as txn:
            return await self._require_in(txn, budget_id)

    async def list_budgets(self) -> list[Budget]:
        """예산 목록 (시작일 최근 순)"""
        async with self.store.begin_txn(readonly=True) as txn:
            return await txn.list_budgets()

    async def delete_budget(self, budget_id: UUID) -> None:
        async with self.store.begin_txn() as txn:
            if not await txn.delete_budget(budget_id):
                raise NotFoundError(f"budget not found: {budget_id}")

        logger.info("예산 삭제", extra={"budget_id": str(budget_id)})

    async def budget_vs_actual(self, budget_id: UUID) -> BudgetReport:
        """예산 대비 실적

        실적 = 예산 기간(양 끝 포함) 전기 항목의 유형별 부호 잔액, 하위 계정 포함.
        예산 통화 이외의 활동은 제외.

        Raises:
            NotFoundError: 예산 없음
        """
        async with self.store.begin_txn(readonly=True) as txn:
            budget = await self._require_in(txn, budget_id)
            scopes = []
            for line in budget.lines:
                account = await self.book.require_in(txn, line.account_id)
                subtree = {account.id}
                subtree.update(a.id for a in await self.book.descendants_in(txn, account.id))
                scopes.append((line, account, subtree))

        rows = await self.engine.activity(budget.end_date, budget.start_date)

        variance_lines = []
        for line, account, subtree in scopes:
            actual = sum(
                row.balance.minor_units
                for row in rows
                if row.account.id in subtree and row.currency == budget.currency
            )
            variance_lines.append(
                BudgetVarianceLine(
                    account=account,
                    budget=line.amount,
                    actual=Money(actual, budget.currency),
                )
            )

        return BudgetReport(budget=budget, lines=variance_lines)

    async def _require_in(self, txn: IStoreTxn, budget_id: UUID) -> Budget:
        budget = await txn.get_budget(budget_id)
        if budget is None:
            raise NotFoundError(f"budget not found: {budget_id}")
        return budget
