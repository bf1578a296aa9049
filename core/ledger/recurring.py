"""
반복 분개 (Recurring Journals)

템플릿(주기, 항목)을 저장해 두고 도래한 회차마다 Draft 분개를 작성.
auto_post 템플릿은 같은 트랜잭션에서 전기까지 수행.

회차 일자는 항상 start_date 기준으로 계산 (월말 보정이 누적되지 않음):
- Monthly 1/31 시작 → 2/29(윤년), 3/31, 4/30 ...
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Callable, Sequence
from uuid import UUID

from core.ledger.errors import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from core.ledger.journal_engine import JournalEngine, check_balanced, validate_draft
from core.ledger.models import JournalEntry, JournalLineInput, RecurringJournal, new_id
from core.ledger.types import RecurringFrequency, RecurringStatus
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.interfaces import IJournalStore, IStoreTxn
    from core.ledger.account_book import AccountBook

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "recurring:"


def add_months(start: date, months: int) -> date:
    """월 단위 이동 (말일 보정)"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def occurrence_date(
    start: date,
    frequency: RecurringFrequency,
    interval: int,
    index: int,
) -> date | None:
    """index번째 회차 일자 (0부터, 날짜 범위를 벗어나면 None)"""
    try:
        if frequency.months:
            return add_months(start, frequency.months * interval * index)
        return start + timedelta(days=frequency.days * interval * index)
    except (OverflowError, ValueError):
        return None


def coerce_frequency(value: RecurringFrequency | str) -> RecurringFrequency:
    try:
        return RecurringFrequency(value)
    except ValueError as e:
        raise ValidationError(f"unknown frequency: {value!r}") from e


def coerce_recurring_status(value: RecurringStatus | str) -> RecurringStatus:
    try:
        return RecurringStatus(value)
    except ValueError as e:
        raise ValidationError(f"unknown recurring status: {value!r}") from e


class RecurringJournals:
    """반복 분개 템플릿 관리 및 실행

    Args:
        store: JournalStore 포트
        book: 계정과목표
        engine: 분개 엔진 (작성/전기는 엔진 규칙을 그대로 따름)
        clock: 현재 시각 함수 (테스트 주입용)

    사용 예시:
    ```python
    template = await recurring.create_template(
        "office rent",
        RecurringFrequency.MONTHLY,
        date(2024, 1, 31),
        lines,
        auto_post=True,
    )
    entries = await recurring.process_due(date(2024, 3, 31))
    ```
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

    # -------------------------------------------------------------------------
    # 템플릿
    # -------------------------------------------------------------------------

    async def create_template(
        self,
        name: str,
        frequency: RecurringFrequency | str,
        start_date: date,
        lines: Sequence[JournalLineInput],
        interval: int = 1,
        end_date: date | None = None,
        description: str | None = None,
        currency: str | None = None,
        auto_post: bool = False,
    ) -> RecurringJournal:
        """반복 분개 템플릿 생성

        항목 규칙은 분개 작성과 동일 (2개 이상, 한쪽만 양수, 단일 통화, 차대 균형).

        Raises:
            ValidationError: 이름 누락, interval < 1, 종료일 < 시작일, 항목 형태 위반, 없는 계정
            BusinessRuleError: 통화 불일치, 비활성 계정, 불균형
        """
        if not name or not name.strip():
            raise ValidationError("name must not be empty")
        frequency = coerce_frequency(frequency)
        if interval < 1:
            raise ValidationError("interval must be at least 1")
        if end_date is not None and end_date < start_date:
            raise ValidationError("end date must not be before start date")

        template_currency = validate_draft(description or name, lines, currency)

        async with self.store.begin_txn() as txn:
            await self.book.check_usable_in(
                txn, (line.account_id for line in lines), missing_is_validation=True
            )
            check_balanced(lines)

            now = self.clock()
            template = RecurringJournal(
                id=new_id(),
                name=name,
                frequency=frequency,
                interval=interval,
                start_date=start_date,
                currency=template_currency,
                lines=tuple(lines),
                created_at=now,
                updated_at=now,
                description=description,
                end_date=end_date,
                auto_post=auto_post,
                next_run_date=start_date,
            )
            await txn.insert_recurring(template)

        logger.info(
            "반복 분개 생성",
            extra={
                "recurring_id": str(template.id),
                "frequency": frequency.value,
                "start_date": start_date.isoformat(),
            },
        )
        return template

    async def get_template(self, template_id: UUID) -> RecurringJournal:
        """템플릿 조회

        Raises:
            NotFoundError: 템플릿 없음
        """
        async with self.store.begin_txn(readonly=True) as txn:
            return await self._require_in(txn, template_id)

    async def list_templates(
        self,
        status: RecurringStatus | str | None = None,
    ) -> list[RecurringJournal]:
        """템플릿 목록 (name 순)"""
        if status is not None:
            status = coerce_recurring_status(status)
        async with self.store.begin_txn(readonly=True) as txn:
            return await txn.list_recurring(status)

    async def deactivate(self, template_id: UUID) -> RecurringJournal:
        """템플릿 비활성화 (이후 회차 생성 중단, 이미 만든 분개는 유지)

        Raises:
            NotFoundError: 템플릿 없음
            ConflictError: Active가 아님
        """
        async with self.store.begin_txn() as txn:
            template = await self._require_in(txn, template_id)
            if template.status != RecurringStatus.ACTIVE:
                raise ConflictError("recurring journal is not active")

            updated = replace(
                template,
                status=RecurringStatus.INACTIVE,
                next_run_date=None,
                updated_at=self.clock(),
            )
            await txn.update_recurring(updated)

        logger.info("반복 분개 비활성화", extra={"recurring_id": str(template_id)})
        return updated

    # -------------------------------------------------------------------------
    # 실행
    # -------------------------------------------------------------------------

    async def process_due(self, today: date | None = None) -> list[JournalEntry]:
        """도래한 회차를 모두 분개로 작성

        밀린 회차도 today까지 차례로 작성. 회차마다 별도 쓰기 트랜잭션.
        작성에 실패한 템플릿은 그 회차에서 멈추고 다음 실행 때 다시 시도.

        Args:
            today: 기준일 (None이면 clock 기준 UTC 날짜)

        Returns:
            작성된 분개 (auto_post면 전기된 상태)
        """
        run_date = today if today is not None else self.clock().date()

        async with self.store.begin_txn(readonly=True) as txn:
            due = await txn.list_due_recurring(run_date)

        created: list[JournalEntry] = []
        for template in due:
            created.extend(await self._run_template(template.id, run_date))

        logger.info(
            "반복 분개 실행",
            extra={"run_date": run_date.isoformat(), "templates": len(due), "count": len(created)},
        )
        return created

    def next_occurrence(self, template: RecurringJournal, index: int) -> date | None:
        """index번째 회차 일자 (종료일을 넘으면 None)"""
        run_date = occurrence_date(
            template.start_date, template.frequency, template.interval, index
        )
        if run_date is None:
            return None
        if template.end_date is not None and run_date > template.end_date:
            return None
        return run_date

    async def _run_template(self, template_id: UUID, today: date) -> list[JournalEntry]:
        entries: list[JournalEntry] = []
        while True:
            try:
                async with self.store.begin_txn() as txn:
                    template = await txn.get_recurring(template_id)
                    if template is None or not template.is_due(today):
                        return entries
                    entry = await self._run_once(txn, template)
            except (ValidationError, BusinessRuleError) as e:
                logger.warning(
                    "반복 분개 작성 실패",
                    extra={"recurring_id": str(template_id), "reason": str(e)},
                )
                return entries
            entries.append(entry)

    async def _run_once(self, txn: IStoreTxn, template: RecurringJournal) -> JournalEntry:
        run_date = template.next_run_date
        entry = await self.engine.create_in(
            txn,
            run_date,
            template.entry_description,
            template.lines,
            reference=f"{REFERENCE_PREFIX}{template.name}",
            currency=template.currency,
        )

        if template.auto_post:
            try:
                entry = await self.engine.post_in(txn, entry)
            except BusinessRuleError as e:
                # 전기 실패 시 Draft로 남김 (회차는 진행)
                logger.warning(
                    "반복 분개 자동 전기 실패",
                    extra={
                        "recurring_id": str(template.id),
                        "entry_id": str(entry.id),
                        "reason": str(e),
                    },
                )

        run_count = template.run_count + 1
        next_run_date = self.next_occurrence(template, run_count)
        await txn.update_recurring(
            replace(
                template,
                run_count=run_count,
                last_run_date=run_date,
                last_entry_id=entry.id,
                next_run_date=next_run_date,
                status=RecurringStatus.COMPLETED if next_run_date is None else template.status,
                updated_at=self.clock(),
            )
        )
        return entry

    async def _require_in(self, txn: IStoreTxn, template_id: UUID) -> RecurringJournal:
        template = await txn.get_recurring(template_id)
        if template is None:
            raise NotFoundError(f"recurring journal not found: {template_id}")
        return template
