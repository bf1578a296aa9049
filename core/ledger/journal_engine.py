"""
분개 엔진 (JournalEngine)

복식부기 분개의 작성/전기/역분개 및 잔액 집계.

핵심 불변식:
- 차변 합계 = 대변 합계 (정수 일치)
- 전기된 분개는 역분개로만 상태 변경 (Posted → Reversed)
- 잔액/시산표는 전기 항목(Posted, Reversed)만 집계

동시성:
- 모든 변경은 저장소 쓰기 트랜잭션 안에서 수행
- 전기는 상태 CAS(Draft → Posted). 경합에서 진 쪽은 ConflictError
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Sequence
from uuid import UUID

from core.constants import Defaults, MoneyLimits
from core.ledger.account_book import AccountBook
from core.ledger.errors import (
    BusinessRuleError,
    ConflictError,
    CurrencyMismatchError,
    NotFoundError,
    ValidationError,
)
from core.ledger.fiscal_calendar import FiscalCalendar
from core.ledger.models import (
    Account,
    AccountBalance,
    EntryFilter,
    JournalEntry,
    JournalLine,
    JournalLineInput,
    Page,
    TrialBalance,
    TrialBalanceRow,
    new_id,
)
from core.ledger.money import Money, validate_currency
from core.ledger.types import EntryStatus
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.interfaces import IJournalStore, IStoreTxn

logger = logging.getLogger(__name__)

UNBALANCED_MESSAGE = "entry must balance"
CURRENCY_MIXING_MESSAGE = "currency mixing"
TOTALS_OUT_OF_RANGE_MESSAGE = "entry totals out of 64-bit range"
LEDGER_FULL_MESSAGE = "posted totals would exceed 64-bit range"


def validate_draft(
    description: str,
    lines: Sequence[JournalLineInput],
    currency: str | None = None,
) -> str:
    """분개 형식 검증 (계정/균형 확인 전 단계)

    순서: 적요 → 항목 수 → 항목 형태 → 통화 일치

    Args:
        description: 적요
        lines: 분개 항목 입력
        currency: 분개 통화 (None이면 항목에서 유도)

    Returns:
        분개 통화

    Raises:
        ValidationError: 적요 누락, 항목 2개 미만, 항목 형태 위반
        CurrencyMismatchError: 항목 간 또는 분개/항목 통화 불일치
    """
    if not description or not description.strip():
        raise ValidationError("description must not be empty")

    if len(lines) < 2:
        raise ValidationError("entry needs at least two lines")

    for index, line in enumerate(lines, 1):
        if line.debit.is_negative() or line.credit.is_negative():
            raise ValidationError(f"line {index}: amounts must not be negative")
        if line.debit.is_positive() == line.credit.is_positive():
            raise ValidationError(
                f"line {index}: exactly one of debit or credit must be positive"
            )

    entry_currency = currency if currency is not None else lines[0].debit.currency
    validate_currency(entry_currency)
    for line in lines:
        for amount in (line.debit, line.credit):
            if amount.currency != entry_currency:
                raise CurrencyMismatchError(entry_currency, amount.currency)

    return entry_currency


def check_balanced(lines: Sequence[JournalLineInput | JournalLine]) -> None:
    """차변 합계 = 대변 합계 확인

    Raises:
        ValidationError: 합계가 signed 64-bit 범위 초과
        BusinessRuleError: 불균형
    """
    total_debit = sum(line.debit.minor_units for line in lines)
    total_credit = sum(line.credit.minor_units for line in lines)
    if max(total_debit, total_credit) > MoneyLimits.MAX_MINOR_UNITS:
        raise ValidationError(TOTALS_OUT_OF_RANGE_MESSAGE)
    if total_debit != total_credit:
        raise BusinessRuleError(UNBALANCED_MESSAGE)


def signed_balance(account: Account, debit: int, credit: int) -> int:
    """유형별 부호 규칙 적용 (차변 정상: 차-대, 대변 정상: 대-차)"""
    if account.account_type.is_debit_normal:
        return debit - credit
    return credit - debit


class JournalEngine:
    """분개 엔진

    Args:
        store: JournalStore 포트
        book: 계정과목표
        calendar: 회계 달력
        entry_number_prefix: 분개 번호 접두어
        default_currency: 활동이 없는 계정 잔액의 통화
        clock: 현재 시각 함수 (테스트 주입용)

    사용 예시:
    ```python
    entry = await engine.create_entry(
        date(2024, 6, 15),
        "sale",
        [
            JournalLineInput(cash.id, Money(10000, "USD"), Money.zero("USD")),
            JournalLineInput(sales.id, Money.zero("USD"), Money(10000, "USD")),
        ],
    )
    await engine.post_entry(entry.id)
    ```
    """

    def __init__(
        self,
        store: IJournalStore,
        book: AccountBook,
        calendar: FiscalCalendar,
        entry_number_prefix: str = Defaults.ENTRY_NUMBER_PREFIX,
        default_currency: str = Defaults.CURRENCY,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.book = book
        self.calendar = calendar
        self.entry_number_prefix = entry_number_prefix
        self.default_currency = validate_currency(default_currency)
        self.clock = clock

    # -------------------------------------------------------------------------
    # 작성 / 수정 / 삭제 (Draft)
    # -------------------------------------------------------------------------

    async def create_entry(
        self,
        entry_date: date,
        description: str,
        lines: Sequence[JournalLineInput],
        reference: str | None = None,
        currency: str | None = None,
    ) -> JournalEntry:
        """Draft 분개 작성

        마감된 연도의 일자로도 작성 가능 (전기 시점에 판정).

        Raises:
            ValidationError: 형식 위반, 없는 계정
            BusinessRuleError: 통화 불일치, 비활성 계정, 불균형
        """
        async with self.store.begin_txn() as txn:
            entry = await self.create_in(
                txn, entry_date, description, lines, reference=reference, currency=currency
            )

        logger.info(
            "분개 작성",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "line_count": len(entry.lines),
            },
        )
        return entry

    async def create_in(
        self,
        txn: IStoreTxn,
        entry_date: date,
        description: str,
        lines: Sequence[JournalLineInput],
        reference: str | None = None,
        currency: str | None = None,
    ) -> JournalEntry:
        """트랜잭션 내 Draft 작성 (create_entry, 반복 분개 공용)"""
        entry_currency = validate_draft(description, lines, currency)
        await self.book.check_usable_in(
            txn, (line.account_id for line in lines), missing_is_validation=True
        )
        check_balanced(lines)

        now = self.clock()
        entry = JournalEntry(
            id=new_id(),
            entry_number=await txn.next_entry_number(now, self.entry_number_prefix),
            date=entry_date,
            description=description,
            reference=reference,
            currency=entry_currency,
            lines=self._build_lines(lines),
            status=EntryStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        await txn.insert_entry(entry)
        return entry

    async def update_draft(
        self,
        entry_id: UUID,
        entry_date: date,
        description: str,
        lines: Sequence[JournalLineInput],
        reference: str | None = None,
        currency: str | None = None,
    ) -> JournalEntry:
        """Draft 분개 전체 교체 (번호/작성 시각 유지)

        Raises:
            NotFoundError: 분개 없음
            ConflictError: Draft가 아님
            ValidationError / BusinessRuleError: create_entry와 동일한 검증
        """
        entry_currency = validate_draft(description, lines, currency)

        async with self.store.begin_txn() as txn:
            current = await self._require_entry(txn, entry_id)
            if current.status != EntryStatus.DRAFT:
                raise ConflictError("only Draft entries can be modified")

            await self.book.check_usable_in(
                txn, (line.account_id for line in lines), missing_is_validation=True
            )
            check_balanced(lines)

            updated = JournalEntry(
                id=current.id,
                entry_number=current.entry_number,
                date=entry_date,
                description=description,
                reference=reference,
                currency=entry_currency,
                lines=self._build_lines(lines),
                status=EntryStatus.DRAFT,
                created_at=current.created_at,
                updated_at=self.clock(),
            )
            if not await txn.replace_draft(updated):
                raise ConflictError("only Draft entries can be modified")

        logger.info("분개 수정", extra={"entry_id": str(entry_id)})
        return updated

    async def delete_entry(self, entry_id: UUID) -> None:
        """Draft 분개 삭제

        Raises:
            NotFoundError: 분개 없음
            ConflictError: Draft가 아님
        """
        async with self.store.begin_txn() as txn:
            entry = await self._require_entry(txn, entry_id)
            if entry.status != EntryStatus.DRAFT:
                raise ConflictError("only Draft entries can be deleted")
            if not await txn.delete_entry(entry_id, EntryStatus.DRAFT):
                raise ConflictError("only Draft entries can be deleted")

        logger.info(
            "분개 삭제",
            extra={"entry_id": str(entry_id), "entry_number": entry.entry_number},
        )

    # -------------------------------------------------------------------------
    # 전기 / 역분개
    # -------------------------------------------------------------------------

    async def post_entry(self, entry_id: UUID) -> JournalEntry:
        """전기 (Draft → Posted)

        같은 분개를 동시에 전기하면 정확히 하나만 성공.

        Raises:
            NotFoundError: 분개 없음
            ConflictError: Draft가 아님 (이미 전기됨 포함)
            BusinessRuleError: 없는/비활성 계정, 마감 기간, 불균형, 통화별 전기 누계 한도 초과
        """
        async with self.store.begin_txn() as txn:
            entry = await self._require_entry(txn, entry_id)
            posted = await self.post_in(txn, entry)

        logger.info(
            "분개 전기",
            extra={"entry_id": str(entry_id), "entry_number": posted.entry_number},
        )
        return posted

    async def reverse_entry(
        self,
        entry_id: UUID,
        reversal_date: date,
        description: str,
    ) -> JournalEntry:
        """역분개

        원분개 항목의 차변/대변을 바꾼 새 분개를 작성하고 전기.
        원분개는 Reversed가 되며 역분개 ID를 가리킴. 전 과정이 한 트랜잭션.
        원분개 일자와 역분개 일자 모두 열린 기간이어야 함.

        Returns:
            전기된 역분개

        Raises:
            NotFoundError: 원분개 없음
            ConflictError: Posted가 아님 (Draft, 이미 Reversed)
            ValidationError: 적요 누락
            BusinessRuleError: 원분개 일자 또는 reversal_date가 닫힌 기간, 비활성 계정
        """
        if not description or not description.strip():
            raise ValidationError("description must not be empty")

        async with self.store.begin_txn() as txn:
            original = await self._require_entry(txn, entry_id)
            if original.status == EntryStatus.REVERSED:
                raise ConflictError("entry already reversed")
            if original.status != EntryStatus.POSTED:
                raise ConflictError("only Posted entries can be reversed")

            # 마감된 연도/기간의 원분개 상태는 바뀌지 않음
            await self.calendar.assert_open_in(txn, original.date)

            now = self.clock()
            reversal = JournalEntry(
                id=new_id(),
                entry_number=await txn.next_entry_number(now, self.entry_number_prefix),
                date=reversal_date,
                description=description,
                reference=original.entry_number,
                currency=original.currency,
                lines=tuple(line.swapped(new_id()) for line in original.lines),
                status=EntryStatus.DRAFT,
                created_at=now,
                updated_at=now,
                reversal_of_id=original.id,
            )
            await txn.insert_entry(reversal)
            posted_reversal = await self.post_in(txn, reversal)

            flipped = await txn.update_entry_status(
                original.id,
                EntryStatus.POSTED,
                EntryStatus.REVERSED,
                updated_at=now,
                reversed_by_id=reversal.id,
            )
            if not flipped:
                raise ConflictError("entry already reversed")

        logger.info(
            "역분개 전기",
            extra={
                "entry_id": str(entry_id),
                "reversal_id": str(reversal.id),
                "reversal_number": reversal.entry_number,
            },
        )
        return posted_reversal

    async def post_in(self, txn: IStoreTxn, entry: JournalEntry) -> JournalEntry:
        """트랜잭션 내 전기 (상태 → 계정 → 기간 → 균형 → 누적 한도 → CAS)

        통화별 전기 차변 누계가 64-bit 범위 안에 있으면 모든 잔액/보고서 합계도 범위 안.

        Raises:
            ConflictError / BusinessRuleError: post_entry와 동일
        """
        if entry.status != EntryStatus.DRAFT:
            raise ConflictError("entry is not in Draft")

        await self.book.check_usable_in(txn, entry.account_ids, missing_is_validation=False)
        await self.calendar.assert_open_in(txn, entry.date)
        check_balanced(entry.lines)

        posted_total = await txn.posted_total(entry.currency)
        if posted_total + entry.total_debit > MoneyLimits.MAX_MINOR_UNITS:
            raise BusinessRuleError(LEDGER_FULL_MESSAGE)

        now = self.clock()
        swapped = await txn.update_entry_status(
            entry.id,
            EntryStatus.DRAFT,
            EntryStatus.POSTED,
            updated_at=now,
            posted_at=now,
        )
        if not swapped:
            raise ConflictError("entry is not in Draft")

        return await self._require_entry(txn, entry.id)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_entry(self, entry_id: UUID) -> JournalEntry:
        """분개 조회 (항목 포함)

        Raises:
            NotFoundError: 분개 없음
        """
        async with self.store.begin_txn(readonly=True) as txn:
            return await self._require_entry(txn, entry_id)

    async def list_entries(
        self,
        entry_filter: EntryFilter | None = None,
        page: int = Defaults.PAGE,
        per_page: int = Defaults.PER_PAGE,
    ) -> Page[JournalEntry]:
        """분개 목록 (date DESC, entry_number DESC)

        Raises:
            ValidationError: 잘못된 페이지 값 또는 날짜 구간
        """
        if page < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= per_page <= Defaults.MAX_PER_PAGE:
            raise ValidationError(f"per_page must be between 1 and {Defaults.MAX_PER_PAGE}")

        entry_filter = entry_filter or EntryFilter()
        if (
            entry_filter.date_from is not None
            and entry_filter.date_to is not None
            and entry_filter.date_from > entry_filter.date_to
        ):
            raise ValidationError("date_from must not be after date_to")

        async with self.store.begin_txn(readonly=True) as txn:
            items, total = await txn.list_entries(entry_filter, page, per_page)

        return Page(items=items, total=total, page=page, per_page=per_page)

    # -------------------------------------------------------------------------
    # 잔액 / 시산표
    # -------------------------------------------------------------------------

    async def account_balance(
        self,
        account_id: UUID,
        as_of: date,
        include_descendants: bool = False,
    ) -> Money:
        """계정 잔액 (as_of 이하 전기 항목, 유형별 부호 규칙)

        활동이 없으면 기본 통화의 0.

        Raises:
            NotFoundError: 계정 없음
            BusinessRuleError: 여러 통화가 섞인 경우 ("currency mixing")
        """
        balances = await self.account_balance_by_currency(account_id, as_of, include_descendants)
        if not balances:
            return Money.zero(self.default_currency)
        if len(balances) > 1:
            raise BusinessRuleError(CURRENCY_MIXING_MESSAGE)
        return balances[0]

    async def account_balance_by_currency(
        self,
        account_id: UUID,
        as_of: date,
        include_descendants: bool = False,
    ) -> list[Money]:
        """통화별 계정 잔액 (통화 코드 순, 활동이 없으면 빈 목록)

        Raises:
            NotFoundError: 계정 없음
        """
        async with self.store.begin_txn(readonly=True) as txn:
            account = await self.book.require_in(txn, account_id)
            account_ids = [account.id]
            if include_descendants:
                account_ids.extend(a.id for a in await self.book.descendants_in(txn, account.id))
            lines = await txn.list_posted_lines(account_ids, as_of)

        totals: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for line in lines:
            totals[line.currency][0] += line.debit
            totals[line.currency][1] += line.credit

        return [
            Money(signed_balance(account, debit, credit), currency)
            for currency, (debit, credit) in sorted(totals.items())
        ]

    async def activity(self, date_to: date, date_from: date | None = None) -> list[TrialBalanceRow]:
        """계정 × 통화별 전기 합계 (code, 통화 순)

        Args:
            date_to: 분개 일자 상한 (포함)
            date_from: 분개 일자 하한 (포함, None이면 처음부터)
        """
        async with self.store.begin_txn(readonly=True) as txn:
            lines = await txn.list_posted_lines(None, date_to, date_from)
            accounts = {a.id: a for a in await txn.list_accounts()}

        totals: dict[tuple[UUID, str], list[int]] = defaultdict(lambda: [0, 0])
        for line in lines:
            totals[(line.account_id, line.currency)][0] += line.debit
            totals[(line.account_id, line.currency)][1] += line.credit

        rows = [
            TrialBalanceRow(
                account=accounts[account_id],
                debit_total=Money(debit, currency),
                credit_total=Money(credit, currency),
            )
            for (account_id, currency), (debit, credit) in totals.items()
        ]
        rows.sort(key=lambda row: (row.account.code, row.currency))
        return rows

    async def trial_balance(self, as_of: date) -> TrialBalance:
        """시산표 (as_of 이하 전기 항목이 있는 계정만)"""
        return TrialBalance(as_of=as_of, rows=await self.activity(as_of))

    async def account_balances(self, as_of: date) -> list[AccountBalance]:
        """활동이 있는 모든 계정의 잔액 (계정 × 통화)"""
        return [
            AccountBalance(account=row.account, balance=row.balance)
            for row in await self.activity(as_of)
        ]

    # -------------------------------------------------------------------------
    # 내부 헬퍼
    # -------------------------------------------------------------------------

    async def _require_entry(self, txn: IStoreTxn, entry_id: UUID) -> JournalEntry:
        entry = await txn.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"journal entry not found: {entry_id}")
        return entry

    @staticmethod
    def _build_lines(lines: Sequence[JournalLineInput]) -> tuple[JournalLine, ...]:
        return tuple(
            JournalLine(
                line_id=new_id(),
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                description=line.description,
            )
            for line in lines
        )
