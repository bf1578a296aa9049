"""
Mock 저장소

테스트용 메모리 내 JournalStore.
IJournalStore, IStoreTxn Protocol 준수.

트랜잭션 모델:
- 쓰기 트랜잭션은 asyncio.Lock으로 직렬화되고, 상태 사본 위에서 작업한 뒤
  정상 종료 시에만 사본을 커밋 상태로 교체 (예외/취소 시 사본 폐기).
- 읽기 트랜잭션은 시작 시점의 커밋 상태를 그대로 관찰.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import AsyncIterator, Collection
from uuid import UUID

from core.ledger.errors import StorageError
from core.ledger.models import (
    Account,
    AccountFilter,
    Budget,
    EntryFilter,
    FiscalPeriod,
    FiscalYear,
    JournalEntry,
    PostedLine,
    RecurringJournal,
)
from core.ledger.numbering import advance_counter, format_entry_number
from core.ledger.types import EntryStatus, RecurringStatus


@dataclass
class MemoryState:
    """Mock 상태 (메모리 내 저장)"""

    # 계정 (id -> Account)
    accounts: dict[UUID, Account] = field(default_factory=dict)

    # 분개 (id -> JournalEntry)
    entries: dict[UUID, JournalEntry] = field(default_factory=dict)

    # 회계연도 / 기간
    years: dict[UUID, FiscalYear] = field(default_factory=dict)
    periods: dict[UUID, FiscalPeriod] = field(default_factory=dict)

    # 반복 분개 템플릿 / 예산
    recurring: dict[UUID, RecurringJournal] = field(default_factory=dict)
    budgets: dict[UUID, Budget] = field(default_factory=dict)

    # 분개 번호 카운터
    last_stamp: str = ""
    last_seq: int = 0

    def copy(self) -> MemoryState:
        """작업용 사본 (레코드는 불변이므로 얕은 복사로 충분)"""
        return MemoryState(
            accounts=dict(self.accounts),
            entries=dict(self.entries),
            years=dict(self.years),
            periods=dict(self.periods),
            recurring=dict(self.recurring),
            budgets=dict(self.budgets),
            last_stamp=self.last_stamp,
            last_seq=self.last_seq,
        )


class MemoryTxn:
    """메모리 트랜잭션 핸들

    IStoreTxn Protocol 구현.
    """

    def __init__(self, state: MemoryState, readonly: bool = False):
        self._state = state
        self._readonly = readonly

    async def _suspend(self) -> None:
        # 실제 저장소처럼 매 호출마다 제어권 양보
        await asyncio.sleep(0)

    def _check_writable(self) -> None:
        if self._readonly:
            raise StorageError("write attempted in read-only transaction")

    # -------------------------------------------------------------------------
    # 계정
    # -------------------------------------------------------------------------

    async def insert_account(self, account: Account) -> None:
        self._check_writable()
        await self._suspend()
        if account.id in self._state.accounts:
            raise StorageError(f"duplicate account id: {account.id}")
        self._state.accounts[account.id] = account

    async def update_account(self, account: Account) -> None:
        self._check_writable()
        await self._suspend()
        self._state.accounts[account.id] = account

    async def delete_account(self, account_id: UUID) -> None:
        self._check_writable()
        await self._suspend()
        self._state.accounts.pop(account_id, None)

    async def get_account(self, account_id: UUID) -> Account | None:
        await self._suspend()
        return self._state.accounts.get(account_id)

    async def get_account_by_code(self, code: str) -> Account | None:
        await self._suspend()
        return next(
            (a for a in self._state.accounts.values() if a.code == code),
            None,
        )

    async def list_accounts(self, account_filter: AccountFilter | None = None) -> list[Account]:
        await self._suspend()
        account_filter = account_filter or AccountFilter()
        accounts = [a for a in self._state.accounts.values() if account_filter.matches(a)]
        return sorted(accounts, key=lambda a: a.code)

    async def account_has_entries(self, account_id: UUID, posted_only: bool = False) -> bool:
        await self._suspend()
        for entry in self._state.entries.values():
            if posted_only and not entry.status.is_posted:
                continue
            if any(line.account_id == account_id for line in entry.lines):
                return True
        return False

    # -------------------------------------------------------------------------
    # 분개
    # -------------------------------------------------------------------------

    async def insert_entry(self, entry: JournalEntry) -> None:
        self._check_writable()
        await self._suspend()
        if entry.id in self._state.entries:
            raise StorageError(f"duplicate entry id: {entry.id}")
        self._state.entries[entry.id] = entry

    async def replace_draft(self, entry: JournalEntry) -> bool:
        self._check_writable()
        await self._suspend()
        current = self._state.entries.get(entry.id)
        if current is None or current.status != EntryStatus.DRAFT:
            return False
        self._state.entries[entry.id] = entry
        return True

    async def update_entry_status(
        self,
        entry_id: UUID,
        old_status: EntryStatus,
        new_status: EntryStatus,
        *,
        updated_at: datetime,
        posted_at: datetime | None = None,
        reversed_by_id: UUID | None = None,
    ) -> bool:
        self._check_writable()
        await self._suspend()
        current = self._state.entries.get(entry_id)
        if current is None or current.status != old_status:
            return False

        changes: dict = {"status": new_status, "updated_at": updated_at}
        if posted_at is not None:
            changes["posted_at"] = posted_at
        if reversed_by_id is not None:
            changes["reversed_by_id"] = reversed_by_id
        self._state.entries[entry_id] = replace(current, **changes)
        return True

    async def delete_entry(self, entry_id: UUID, expected_status: EntryStatus) -> bool:
        self._check_writable()
        await self._suspend()
        current = self._state.entries.get(entry_id)
        if current is None or current.status != expected_status:
            return False
        del self._state.entries[entry_id]
        return True

    async def get_entry(self, entry_id: UUID) -> JournalEntry | None:
        await self._suspend()
        return self._state.entries.get(entry_id)

    async def list_entries(
        self,
        entry_filter: EntryFilter,
        page: int,
        per_page: int,
    ) -> tuple[list[JournalEntry], int]:
        await self._suspend()
        matched = [e for e in self._state.entries.values() if entry_filter.matches(e)]
        matched.sort(key=lambda e: (e.date, e.entry_number), reverse=True)
        offset = (page - 1) * per_page
        return matched[offset : offset + per_page], len(matched)

    async def list_posted_lines(
        self,
        account_ids: Collection[UUID] | None,
        date_to: date,
        date_from: date | None = None,
    ) -> list[PostedLine]:
        await self._suspend()
        wanted = set(account_ids) if account_ids is not None else None
        result: list[PostedLine] = []
        for entry in self._state.entries.values():
            if not entry.status.is_posted or entry.date > date_to:
                continue
            if date_from is not None and entry.date < date_from:
                continue
            for line in entry.lines:
                if wanted is not None and line.account_id not in wanted:
                    continue
                result.append(
                    PostedLine(
                        entry_id=entry.id,
                        entry_date=entry.date,
                        account_id=line.account_id,
                        debit=line.debit.minor_units,
                        credit=line.credit.minor_units,
                        currency=line.currency,
                    )
                )
        return result

    async def posted_total(self, currency: str) -> int:
        await self._suspend()
        return sum(
            line.debit.minor_units
            for entry in self._state.entries.values()
            if entry.status.is_posted and entry.currency == currency
            for line in entry.lines
        )

    async def next_entry_number(self, now: datetime, prefix: str) -> str:
        self._check_writable()
        await self._suspend()
        stamp, seq = advance_counter(self._state.last_stamp, self._state.last_seq, now)
        self._state.last_stamp = stamp
        self._state.last_seq = seq
        return format_entry_number(prefix, stamp, seq)

    # -------------------------------------------------------------------------
    # 회계연도 / 기간
    # -------------------------------------------------------------------------

    async def insert_year(self, year: FiscalYear) -> None:
        self._check_writable()
        await self._suspend()
        self._state.years[year.id] = year

    async def update_year(self, year: FiscalYear) -> None:
        self._check_writable()
        await self._suspend()
        self._state.years[year.id] = year

    async def get_year(self, year_id: UUID) -> FiscalYear | None:
        await self._suspend()
        return self._state.years.get(year_id)

    async def list_years(self) -> list[FiscalYear]:
        await self._suspend()
        return sorted(self._state.years.values(), key=lambda y: y.start_date)

    async def find_year_for_date(self, on_date: date) -> FiscalYear | None:
        await self._suspend()
        return next(
            (y for y in self._state.years.values() if y.contains(on_date)),
            None,
        )

    async def find_overlapping_years(self, start_date: date, end_date: date) -> list[FiscalYear]:
        await self._suspend()
        return [
            y for y in self._state.years.values()
            if y.start_date <= end_date and start_date <= y.end_date
        ]

    async def insert_period(self, period: FiscalPeriod) -> None:
        self._check_writable()
        await self._suspend()
        self._state.periods[period.id] = period

    async def update_period(self, period: FiscalPeriod) -> None:
        self._check_writable()
        await self._suspend()
        self._state.periods[period.id] = period

    async def get_period(self, period_id: UUID) -> FiscalPeriod | None:
        await self._suspend()
        return self._state.periods.get(period_id)

    async def list_periods(self, year_id: UUID) -> list[FiscalPeriod]:
        await self._suspend()
        periods = [p for p in self._state.periods.values() if p.fiscal_year_id == year_id]
        return sorted(periods, key=lambda p: p.start_date)

    async def find_period_for_date(self, on_date: date) -> FiscalPeriod | None:
        await self._suspend()
        return next(
            (p for p in self._state.periods.values() if p.contains(on_date)),
            None,
        )

    # -------------------------------------------------------------------------
    # 반복 분개 / 예산
    # -------------------------------------------------------------------------

    async def insert_recurring(self, template: RecurringJournal) -> None:
        self._check_writable()
        await self._suspend()
        if template.id in self._state.recurring:
            raise StorageError(f"duplicate recurring journal id: {template.id}")
        self._state.recurring[template.id] = template

    async def update_recurring(self, template: RecurringJournal) -> None:
        self._check_writable()
        await self._suspend()
        self._state.recurring[template.id] = template

    async def get_recurring(self, template_id: UUID) -> RecurringJournal | None:
        await self._suspend()
        return self._state.recurring.get(template_id)

    async def list_recurring(self, status: RecurringStatus | None = None) -> list[RecurringJournal]:
        await self._suspend()
        templates = [
            t for t in self._state.recurring.values()
            if status is None or t.status == status
        ]
        return sorted(templates, key=lambda t: (t.name, str(t.id)))

    async def list_due_recurring(self, on_date: date) -> list[RecurringJournal]:
        await self._suspend()
        due = [t for t in self._state.recurring.values() if t.is_due(on_date)]
        return sorted(due, key=lambda t: (t.next_run_date, t.name))

    async def insert_budget(self, budget: Budget) -> None:
        self._check_writable()
        await self._suspend()
        if budget.id in self._state.budgets:
            raise StorageError(f"duplicate budget id: {budget.id}")
        self._state.budgets[budget.id] = budget

    async def get_budget(self, budget_id: UUID) -> Budget | None:
        await self._suspend()
        return self._state.budgets.get(budget_id)

    async def list_budgets(self) -> list[Budget]:
        await self._suspend()
        budgets = sorted(self._state.budgets.values(), key=lambda b: b.name)
        return sorted(budgets, key=lambda b: b.start_date, reverse=True)

    async def delete_budget(self, budget_id: UUID) -> bool:
        self._check_writable()
        await self._suspend()
        return self._state.budgets.pop(budget_id, None) is not None

    async def account_has_plans(self, account_id: UUID) -> bool:
        await self._suspend()
        if any(account_id in t.account_ids for t in self._state.recurring.values()):
            return True
        return any(account_id in b.account_ids for b in self._state.budgets.values())


class InMemoryJournalStore:
    """메모리 내 JournalStore

    IJournalStore Protocol 구현.
    테스트에서 SQLite 대신 주입하여 동일한 계약으로 엔진 검증.

    사용 예시:
    ```python
    store = InMemoryJournalStore()
    engine = build_ledger(store)

    # 커밋 실패 시뮬레이션
    store.fail_next_commit = True
    ```
    """

    def __init__(self, state: MemoryState | None = None):
        self.state = state or MemoryState()
        self._write_lock = asyncio.Lock()

        # 시뮬레이션 옵션
        self.fail_next_commit: bool = False
        self.commit_count: int = 0

    @asynccontextmanager
    async def begin_txn(self, readonly: bool = False) -> AsyncIterator[MemoryTxn]:
        """스코프 트랜잭션

        정상 종료 시 커밋, 예외/취소 시 작업 사본 폐기.
        """
        if readonly:
            yield MemoryTxn(self.state, readonly=True)
            return

        async with self._write_lock:
            working = self.state.copy()
            yield MemoryTxn(working)

            if self.fail_next_commit:
                self.fail_next_commit = False
                raise StorageError("simulated commit failure")

            self.state = working
            self.commit_count += 1

    async def close(self) -> None:
        """연결 종료 (메모리 저장소는 할 일 없음)"""
        return None
