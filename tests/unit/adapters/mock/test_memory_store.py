"""
메모리 JournalStore 테스트

트랜잭션 격리, 커밋 실패 시뮬레이션, 상태 CAS 검증.
"""

import asyncio
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from adapters.mock.memory_store import InMemoryJournalStore
from core.ledger.errors import StorageError
from core.ledger.models import (
    Account,
    Budget,
    BudgetLine,
    JournalEntry,
    JournalLine,
    JournalLineInput,
    RecurringJournal,
    new_id,
)
from core.ledger.money import Money
from core.ledger.types import AccountType, EntryStatus, RecurringFrequency, RecurringStatus

FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def _account(code: str = "1000") -> Account:
    return Account(
        id=new_id(),
        code=code,
        name=f"Account {code}",
        account_type=AccountType.ASSET,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


def _entry(debit_account: Account, credit_account: Account) -> JournalEntry:
    return JournalEntry(
        id=new_id(),
        entry_number="JE-20240615120000-000001",
        date=date(2024, 6, 15),
        description="sale",
        currency="USD",
        lines=(
            JournalLine(new_id(), debit_account.id, Money(500, "USD"), Money.zero("USD")),
            JournalLine(new_id(), credit_account.id, Money.zero("USD"), Money(500, "USD")),
        ),
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


class TestInMemoryTransactions:
    """트랜잭션 모델 테스트"""

    @pytest.mark.asyncio
    async def test_commit_on_success(self) -> None:
        """정상 종료 시 커밋"""
        store = InMemoryJournalStore()
        account = _account()

        async with store.begin_txn() as txn:
            await txn.insert_account(account)

        async with store.begin_txn(readonly=True) as txn:
            assert await txn.get_account(account.id) == account
        assert store.commit_count == 1

    @pytest.mark.asyncio
    async def test_discard_on_exception(self) -> None:
        """예외 시 작업 사본 폐기"""
        store = InMemoryJournalStore()
        account = _account()

        with pytest.raises(RuntimeError):
            async with store.begin_txn() as txn:
                await txn.insert_account(account)
                raise RuntimeError("boom")

        async with store.begin_txn(readonly=True) as txn:
            assert await txn.get_account(account.id) is None
        assert store.commit_count == 0

    @pytest.mark.asyncio
    async def test_fail_next_commit(self) -> None:
        """커밋 실패 시뮬레이션은 한 번만 적용"""
        store = InMemoryJournalStore()
        store.fail_next_commit = True

        with pytest.raises(StorageError):
            async with store.begin_txn() as txn:
                await txn.insert_account(_account("1000"))

        async with store.begin_txn() as txn:
            await txn.insert_account(_account("2000"))

        async with store.begin_txn(readonly=True) as txn:
            codes = [a.code for a in await txn.list_accounts()]
        assert codes == ["2000"]

    @pytest.mark.asyncio
    async def test_readonly_rejects_writes(self) -> None:
        """읽기 전용 트랜잭션 쓰기 거부"""
        store = InMemoryJournalStore()

        async with store.begin_txn(readonly=True) as txn:
            with pytest.raises(StorageError):
                await txn.insert_account(_account())

    @pytest.mark.asyncio
    async def test_reader_sees_committed_snapshot(self) -> None:
        """읽기 트랜잭션은 미커밋 쓰기를 관찰하지 않음"""
        store = InMemoryJournalStore()
        account = _account()
        inserted = asyncio.Event()
        release = asyncio.Event()

        async def writer() -> None:
            async with store.begin_txn() as txn:
                await txn.insert_account(account)
                inserted.set()
                await release.wait()

        task = asyncio.create_task(writer())
        await inserted.wait()

        async with store.begin_txn(readonly=True) as txn:
            assert await txn.get_account(account.id) is None

        release.set()
        await task

        async with store.begin_txn(readonly=True) as txn:
            assert await txn.get_account(account.id) is not None

    @pytest.mark.asyncio
    async def test_writers_serialized(self) -> None:
        """쓰기 트랜잭션은 동시에 하나"""
        store = InMemoryJournalStore()
        active = 0
        peak = 0

        async def writer(code: str) -> None:
            nonlocal active, peak
            async with store.begin_txn() as txn:
                active += 1
                peak = max(peak, active)
                await txn.insert_account(_account(code))
                await asyncio.sleep(0)
                active -= 1

        await asyncio.gather(*(writer(str(1000 + i)) for i in range(5)))

        assert peak == 1
        assert store.commit_count == 5


class TestInMemoryEntries:
    """분개 저장 테스트"""

    @pytest.mark.asyncio
    async def test_status_cas(self) -> None:
        """기대 상태가 아니면 False"""
        store = InMemoryJournalStore()
        cash, sales = _account("1000"), _account("4000")
        entry = _entry(cash, sales)

        async with store.begin_txn() as txn:
            await txn.insert_account(cash)
            await txn.insert_account(sales)
            await txn.insert_entry(entry)

        async with store.begin_txn() as txn:
            first = await txn.update_entry_status(
                entry.id, EntryStatus.DRAFT, EntryStatus.POSTED,
                updated_at=FIXED_NOW, posted_at=FIXED_NOW,
            )
            second = await txn.update_entry_status(
                entry.id, EntryStatus.DRAFT, EntryStatus.POSTED,
                updated_at=FIXED_NOW, posted_at=FIXED_NOW,
            )

        assert first is True
        assert second is False

        async with store.begin_txn(readonly=True) as txn:
            stored = await txn.get_entry(entry.id)
        assert stored.status == EntryStatus.POSTED
        assert stored.posted_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_posted_lines_exclude_drafts(self) -> None:
        """Draft 항목은 잔액 집계 대상 아님"""
        store = InMemoryJournalStore()
        cash, sales = _account("1000"), _account("4000")
        entry = _entry(cash, sales)

        async with store.begin_txn() as txn:
            await txn.insert_entry(entry)
            assert await txn.list_posted_lines(None, date(2024, 12, 31)) == []
            await txn.update_entry_status(
                entry.id, EntryStatus.DRAFT, EntryStatus.POSTED, updated_at=FIXED_NOW
            )
            lines = await txn.list_posted_lines([cash.id], date(2024, 12, 31))

        assert len(lines) == 1
        assert lines[0].debit == 500

    @pytest.mark.asyncio
    async def test_posted_total(self) -> None:
        """통화별 전기 차변 누계 (Draft 제외)"""
        store = InMemoryJournalStore()
        entry = _entry(_account("1000"), _account("4000"))

        async with store.begin_txn() as txn:
            await txn.insert_entry(entry)
            assert await txn.posted_total("USD") == 0
            await txn.update_entry_status(
                entry.id, EntryStatus.DRAFT, EntryStatus.POSTED, updated_at=FIXED_NOW
            )
            assert await txn.posted_total("USD") == 500
            assert await txn.posted_total("EUR") == 0

    @pytest.mark.asyncio
    async def test_delete_requires_expected_status(self) -> None:
        """삭제는 기대 상태일 때만"""
        store = InMemoryJournalStore()
        entry = _entry(_account("1000"), _account("4000"))

        async with store.begin_txn() as txn:
            await txn.insert_entry(entry)
            assert await txn.delete_entry(entry.id, EntryStatus.POSTED) is False
            assert await txn.delete_entry(entry.id, EntryStatus.DRAFT) is True
            assert await txn.get_entry(entry.id) is None

    @pytest.mark.asyncio
    async def test_number_not_consumed_on_rollback(self) -> None:
        """롤백된 트랜잭션의 번호는 재사용"""
        store = InMemoryJournalStore()

        with pytest.raises(RuntimeError):
            async with store.begin_txn() as txn:
                first = await txn.next_entry_number(FIXED_NOW, "JE-")
                raise RuntimeError("boom")

        async with store.begin_txn() as txn:
            again = await txn.next_entry_number(FIXED_NOW, "JE-")

        assert first == again == "JE-20240615120000-000001"


def _template(account_ids: tuple, name: str, start: date, next_run: date | None) -> RecurringJournal:
    debit_id, credit_id = account_ids
    return RecurringJournal(
        id=new_id(),
        name=name,
        frequency=RecurringFrequency.MONTHLY,
        interval=1,
        start_date=start,
        currency="USD",
        lines=(
            JournalLineInput(debit_id, Money(100, "USD"), Money.zero("USD")),
            JournalLineInput(credit_id, Money.zero("USD"), Money(100, "USD")),
        ),
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
        next_run_date=next_run,
    )


class TestInMemoryPlans:
    """반복 분개 / 예산 저장 테스트"""

    @pytest.mark.asyncio
    async def test_due_recurring_order(self) -> None:
        """도래한 Active 템플릿만 (next_run_date, name 순)"""
        store = InMemoryJournalStore()
        ids = (new_id(), new_id())
        late = _template(ids, "b-rent", date(2024, 3, 1), date(2024, 3, 1))
        early = _template(ids, "z-lease", date(2024, 2, 1), date(2024, 2, 1))
        future = _template(ids, "a-future", date(2024, 9, 1), date(2024, 9, 1))
        done = replace(
            _template(ids, "c-done", date(2024, 1, 1), None), status=RecurringStatus.COMPLETED
        )

        async with store.begin_txn() as txn:
            for template in (late, early, future, done):
                await txn.insert_recurring(template)

        async with store.begin_txn(readonly=True) as txn:
            due = await txn.list_due_recurring(date(2024, 6, 15))
            listed = await txn.list_recurring()
            completed = await txn.list_recurring(RecurringStatus.COMPLETED)

        assert [t.name for t in due] == ["z-lease", "b-rent"]
        assert [t.name for t in listed] == ["a-future", "b-rent", "c-done", "z-lease"]
        assert completed == [done]

    @pytest.mark.asyncio
    async def test_duplicate_recurring_id(self) -> None:
        store = InMemoryJournalStore()
        template = _template((new_id(), new_id()), "rent", date(2024, 1, 1), date(2024, 1, 1))

        with pytest.raises(StorageError):
            async with store.begin_txn() as txn:
                await txn.insert_recurring(template)
                await txn.insert_recurring(template)

    @pytest.mark.asyncio
    async def test_budgets_and_plan_references(self) -> None:
        """예산 목록은 시작일 최근 순, 계정 참조 확인"""
        store = InMemoryJournalStore()
        rent_id, other_id = new_id(), new_id()
        budgets = [
            Budget(
                id=new_id(),
                name=name,
                start_date=start,
                end_date=date(start.year, 12, 31),
                currency="USD",
                lines=(BudgetLine(rent_id, Money(1000, "USD")),),
                created_at=FIXED_NOW,
                updated_at=FIXED_NOW,
            )
            for name, start in [
                ("2023", date(2023, 1, 1)),
                ("2024-b", date(2024, 1, 1)),
                ("2024-a", date(2024, 1, 1)),
            ]
        ]

        async with store.begin_txn() as txn:
            for budget in budgets:
                await txn.insert_budget(budget)

        async with store.begin_txn(readonly=True) as txn:
            assert [b.name for b in await txn.list_budgets()] == ["2024-a", "2024-b", "2023"]
            assert await txn.account_has_plans(rent_id) is True
            assert await txn.account_has_plans(other_id) is False

        async with store.begin_txn() as txn:
            for budget in budgets:
                assert await txn.delete_budget(budget.id) is True
            assert await txn.delete_budget(budgets[0].id) is False
            assert await txn.account_has_plans(rent_id) is False
