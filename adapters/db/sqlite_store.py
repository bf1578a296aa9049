"""
SQLite JournalStore

IJournalStore, IStoreTxn Protocol의 SQLite 구현.

연결 구성:
- writer: 쓰기 트랜잭션 전용 (BEGIN IMMEDIATE, 연결 잠금으로 직렬화)
- reader: 읽기 전용 트랜잭션 (query_only, 커밋된 스냅샷 관찰)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, AsyncIterator, Collection
from uuid import UUID

import aiosqlite

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.ledger.errors import StorageError
from core.ledger.models import (
    Account,
    AccountFilter,
    Budget,
    BudgetLine,
    EntryFilter,
    FiscalPeriod,
    FiscalYear,
    JournalEntry,
    JournalLine,
    JournalLineInput,
    PostedLine,
    RecurringJournal,
)
from core.ledger.money import Money
from core.ledger.numbering import advance_counter, format_entry_number
from core.ledger.schema import init_ledger_schema
from core.ledger.types import (
    AccountStatus,
    AccountType,
    EntryStatus,
    PeriodStatus,
    RecurringFrequency,
    RecurringStatus,
    YearStatus,
)
from core.utils.timezone import parse_rfc3339, to_rfc3339

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = (
    "account_id, code, name, account_type, parent_id, description, "
    "status, created_at, updated_at"
)
_ENTRY_COLUMNS = (
    "entry_id, entry_number, entry_date, description, reference, currency, "
    "status, posted_at, reversed_by_id, reversal_of_id, created_at, updated_at"
)
_YEAR_COLUMNS = "fiscal_year_id, name, start_date, end_date, status, created_at, updated_at"
_PERIOD_COLUMNS = (
    "fiscal_period_id, fiscal_year_id, period_number, name, start_date, end_date, "
    "status, created_at, updated_at"
)
_RECURRING_COLUMNS = (
    "recurring_id, name, description, frequency, interval_value, start_date, end_date, "
    "currency, auto_post, status, run_count, next_run_date, last_run_date, last_entry_id, "
    "created_at, updated_at"
)
_BUDGET_COLUMNS = "budget_id, name, start_date, end_date, currency, created_at, updated_at"


# -------------------------------------------------------------------------
# 행 변환
# -------------------------------------------------------------------------

def _opt_uuid(value: str | None) -> UUID | None:
    return UUID(value) if value else None


def _opt_str(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


def _opt_ts(value: str | None) -> datetime | None:
    return parse_rfc3339(value) if value else None


def _row_to_account(row: tuple[Any, ...]) -> Account:
    return Account(
        id=UUID(row[0]),
        code=row[1],
        name=row[2],
        account_type=AccountType(row[3]),
        parent_id=_opt_uuid(row[4]),
        description=row[5],
        status=AccountStatus(row[6]),
        created_at=parse_rfc3339(row[7]),
        updated_at=parse_rfc3339(row[8]),
    )


def _row_to_year(row: tuple[Any, ...]) -> FiscalYear:
    return FiscalYear(
        id=UUID(row[0]),
        name=row[1],
        start_date=date.fromisoformat(row[2]),
        end_date=date.fromisoformat(row[3]),
        status=YearStatus(row[4]),
        created_at=parse_rfc3339(row[5]),
        updated_at=parse_rfc3339(row[6]),
    )


def _row_to_period(row: tuple[Any, ...]) -> FiscalPeriod:
    return FiscalPeriod(
        id=UUID(row[0]),
        fiscal_year_id=UUID(row[1]),
        period_number=row[2],
        name=row[3],
        start_date=date.fromisoformat(row[4]),
        end_date=date.fromisoformat(row[5]),
        status=PeriodStatus(row[6]),
        created_at=parse_rfc3339(row[7]),
        updated_at=parse_rfc3339(row[8]),
    )


def _opt_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _opt_iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _row_to_recurring(row: tuple[Any, ...], lines: list[JournalLineInput]) -> RecurringJournal:
    return RecurringJournal(
        id=UUID(row[0]),
        name=row[1],
        description=row[2],
        frequency=RecurringFrequency(row[3]),
        interval=row[4],
        start_date=date.fromisoformat(row[5]),
        end_date=_opt_date(row[6]),
        currency=row[7],
        auto_post=bool(row[8]),
        status=RecurringStatus(row[9]),
        run_count=row[10],
        next_run_date=_opt_date(row[11]),
        last_run_date=_opt_date(row[12]),
        last_entry_id=_opt_uuid(row[13]),
        created_at=parse_rfc3339(row[14]),
        updated_at=parse_rfc3339(row[15]),
        lines=tuple(lines),
    )


def _row_to_budget(row: tuple[Any, ...], lines: list[BudgetLine]) -> Budget:
    return Budget(
        id=UUID(row[0]),
        name=row[1],
        start_date=date.fromisoformat(row[2]),
        end_date=date.fromisoformat(row[3]),
        currency=row[4],
        created_at=parse_rfc3339(row[5]),
        updated_at=parse_rfc3339(row[6]),
        lines=tuple(lines),
    )


def _row_to_line(row: tuple[Any, ...]) -> JournalLine:
    # line_id, entry_id, account_id, debit, credit, currency, description
    currency = row[5]
    return JournalLine(
        line_id=UUID(row[0]),
        account_id=UUID(row[2]),
        debit=Money(row[3], currency),
        credit=Money(row[4], currency),
        description=row[6],
    )


def _row_to_entry(row: tuple[Any, ...], lines: list[JournalLine]) -> JournalEntry:
    return JournalEntry(
        id=UUID(row[0]),
        entry_number=row[1],
        date=date.fromisoformat(row[2]),
        description=row[3],
        reference=row[4],
        currency=row[5],
        status=EntryStatus(row[6]),
        posted_at=_opt_ts(row[7]),
        reversed_by_id=_opt_uuid(row[8]),
        reversal_of_id=_opt_uuid(row[9]),
        created_at=parse_rfc3339(row[10]),
        updated_at=parse_rfc3339(row[11]),
        lines=tuple(lines),
    )


class SQLiteTxn:
    """SQLite 트랜잭션 핸들

    IStoreTxn Protocol 구현.
    """

    def __init__(self, conn: aiosqlite.Connection, readonly: bool = False):
        self._conn = conn
        self._readonly = readonly

    def _check_writable(self) -> None:
        if self._readonly:
            raise StorageError("write attempted in read-only transaction")

    async def _fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> tuple[Any, ...] | None:
        cursor = await self._conn.execute(sql, params)
        return await cursor.fetchone()

    async def _fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[tuple[Any, ...]]:
        cursor = await self._conn.execute(sql, params)
        return list(await cursor.fetchall())

    # -------------------------------------------------------------------------
    # 계정
    # -------------------------------------------------------------------------

    async def insert_account(self, account: Account) -> None:
        self._check_writable()
        await self._conn.execute(
            f"INSERT INTO account ({_ACCOUNT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(account.id),
                account.code,
                account.name,
                account.account_type.value,
                _opt_str(account.parent_id),
                account.description,
                account.status.value,
                to_rfc3339(account.created_at),
                to_rfc3339(account.updated_at),
            ),
        )

    async def update_account(self, account: Account) -> None:
        self._check_writable()
        await self._conn.execute(
            """
            UPDATE account
            SET code = ?, name = ?, account_type = ?, parent_id = ?,
                description = ?, status = ?, updated_at = ?
            WHERE account_id = ?
            """,
            (
                account.code,
                account.name,
                account.account_type.value,
                _opt_str(account.parent_id),
                account.description,
                account.status.value,
                to_rfc3339(account.updated_at),
                str(account.id),
            ),
        )

    async def delete_account(self, account_id: UUID) -> None:
        self._check_writable()
        await self._conn.execute(
            "DELETE FROM account WHERE account_id = ?",
            (str(account_id),),
        )

    async def get_account(self, account_id: UUID) -> Account | None:
        row = await self._fetchone(
            f"SELECT {_ACCOUNT_COLUMNS} FROM account WHERE account_id = ?",
            (str(account_id),),
        )
        return _row_to_account(row) if row else None

    async def get_account_by_code(self, code: str) -> Account | None:
        row = await self._fetchone(
            f"SELECT {_ACCOUNT_COLUMNS} FROM account WHERE code = ?",
            (code,),
        )
        return _row_to_account(row) if row else None

    async def list_accounts(self, account_filter: AccountFilter | None = None) -> list[Account]:
        account_filter = account_filter or AccountFilter()
        conditions: list[str] = []
        params: list[Any] = []

        if account_filter.account_type is not None:
            conditions.append("account_type = ?")
            params.append(account_filter.account_type.value)
        if account_filter.status is not None:
            conditions.append("status = ?")
            params.append(account_filter.status.value)
        if account_filter.parent_id is not None:
            conditions.append("parent_id = ?")
            params.append(str(account_filter.parent_id))

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self._fetchall(
            f"SELECT {_ACCOUNT_COLUMNS} FROM account {where} ORDER BY code",
            tuple(params),
        )
        return [_row_to_account(row) for row in rows]

    async def account_has_entries(self, account_id: UUID, posted_only: bool = False) -> bool:
        sql = """
            SELECT 1 FROM journal_line jl
            JOIN journal_entry je ON je.entry_id = jl.entry_id
            WHERE jl.account_id = ?
        """
        params: list[Any] = [str(account_id)]
        if posted_only:
            sql += " AND je.status IN (?, ?)"
            params.extend([EntryStatus.POSTED.value, EntryStatus.REVERSED.value])
        row = await self._fetchone(sql + " LIMIT 1", tuple(params))
        return row is not None

    # -------------------------------------------------------------------------
    # 분개
    # -------------------------------------------------------------------------

    async def _insert_lines(self, entry: JournalEntry) -> None:
        await self._conn.executemany(
            """
            INSERT INTO journal_line (
                line_id, entry_id, line_order, account_id,
                debit, credit, currency, description
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    str(line.line_id),
                    str(entry.id),
                    order,
                    str(line.account_id),
                    line.debit.minor_units,
                    line.credit.minor_units,
                    line.currency,
                    line.description,
                )
                for order, line in enumerate(entry.lines)
            ],
        )

    async def _load_lines(self, entry_ids: list[str]) -> dict[str, list[JournalLine]]:
        if not entry_ids:
            return {}
        placeholders = ", ".join("?" for _ in entry_ids)
        rows = await self._fetchall(
            f"""
            SELECT line_id, entry_id, account_id, debit, credit, currency, description
            FROM journal_line
            WHERE entry_id IN ({placeholders})
            ORDER BY entry_id, line_order
            """,
            tuple(entry_ids),
        )
        lines: dict[str, list[JournalLine]] = {entry_id: [] for entry_id in entry_ids}
        for row in rows:
            lines[row[1]].append(_row_to_line(row))
        return lines

    async def insert_entry(self, entry: JournalEntry) -> None:
        self._check_writable()
        await self._conn.execute(
            f"INSERT INTO journal_entry ({_ENTRY_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(entry.id),
                entry.entry_number,
                entry.date.isoformat(),
                entry.description,
                entry.reference,
                entry.currency,
                entry.status.value,
                to_rfc3339(entry.posted_at) if entry.posted_at else None,
                _opt_str(entry.reversed_by_id),
                _opt_str(entry.reversal_of_id),
                to_rfc3339(entry.created_at),
                to_rfc3339(entry.updated_at),
            ),
        )
        await self._insert_lines(entry)

    async def replace_draft(self, entry: JournalEntry) -> bool:
        self._check_writable()
        cursor = await self._conn.execute(
            """
            UPDATE journal_entry
            SET entry_date = ?, description = ?, reference = ?, currency = ?, updated_at = ?
            WHERE entry_id = ? AND status = ?
            """,
            (
                entry.date.isoformat(),
                entry.description,
                entry.reference,
                entry.currency,
                to_rfc3339(entry.updated_at),
                str(entry.id),
                EntryStatus.DRAFT.value,
            ),
        )
        if cursor.rowcount != 1:
            return False

        await self._conn.execute(
            "DELETE FROM journal_line WHERE entry_id = ?",
            (str(entry.id),),
        )
        await self._insert_lines(entry)
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
        cursor = await self._conn.execute(
            """
            UPDATE journal_entry
            SET status = ?,
                updated_at = ?,
                posted_at = COALESCE(?, posted_at),
                reversed_by_id = COALESCE(?, reversed_by_id)
            WHERE entry_id = ? AND status = ?
            """,
            (
                new_status.value,
                to_rfc3339(updated_at),
                to_rfc3339(posted_at) if posted_at else None,
                _opt_str(reversed_by_id),
                str(entry_id),
                old_status.value,
            ),
        )
        return cursor.rowcount == 1

    async def delete_entry(self, entry_id: UUID, expected_status: EntryStatus) -> bool:
        self._check_writable()
        row = await self._fetchone(
            "SELECT status FROM journal_entry WHERE entry_id = ?",
            (str(entry_id),),
        )
        if row is None or row[0] != expected_status.value:
            return False

        await self._conn.execute(
            "DELETE FROM journal_line WHERE entry_id = ?",
            (str(entry_id),),
        )
        await self._conn.execute(
            "DELETE FROM journal_entry WHERE entry_id = ?",
            (str(entry_id),),
        )
        return True

    async def get_entry(self, entry_id: UUID) -> JournalEntry | None:
        row = await self._fetchone(
            f"SELECT {_ENTRY_COLUMNS} FROM journal_entry WHERE entry_id = ?",
            (str(entry_id),),
        )
        if row is None:
            return None
        lines = await self._load_lines([row[0]])
        return _row_to_entry(row, lines[row[0]])

    async def list_entries(
        self,
        entry_filter: EntryFilter,
        page: int,
        per_page: int,
    ) -> tuple[list[JournalEntry], int]:
        conditions: list[str] = []
        params: list[Any] = []

        if entry_filter.status is not None:
            conditions.append("status = ?")
            params.append(entry_filter.status.value)
        if entry_filter.date_from is not None:
            conditions.append("entry_date >= ?")
            params.append(entry_filter.date_from.isoformat())
        if entry_filter.date_to is not None:
            conditions.append("entry_date <= ?")
            params.append(entry_filter.date_to.isoformat())
        if entry_filter.account_id is not None:
            conditions.append(
                "EXISTS (SELECT 1 FROM journal_line jl "
                "WHERE jl.entry_id = journal_entry.entry_id AND jl.account_id = ?)"
            )
            params.append(str(entry_filter.account_id))

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        count_row = await self._fetchone(
            f"SELECT COUNT(*) FROM journal_entry {where}",
            tuple(params),
        )
        total = count_row[0] if count_row else 0

        rows = await self._fetchall(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM journal_entry {where}
            ORDER BY entry_date DESC, entry_number DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params) + (per_page, (page - 1) * per_page),
        )
        lines = await self._load_lines([row[0] for row in rows])
        return [_row_to_entry(row, lines[row[0]]) for row in rows], total

    async def list_posted_lines(
        self,
        account_ids: Collection[UUID] | None,
        date_to: date,
        date_from: date | None = None,
    ) -> list[PostedLine]:
        conditions = ["je.status IN (?, ?)", "je.entry_date <= ?"]
        params: list[Any] = [
            EntryStatus.POSTED.value,
            EntryStatus.REVERSED.value,
            date_to.isoformat(),
        ]
        if date_from is not None:
            conditions.append("je.entry_date >= ?")
            params.append(date_from.isoformat())
        if account_ids is not None:
            ids = [str(account_id) for account_id in account_ids]
            if not ids:
                return []
            conditions.append(f"jl.account_id IN ({', '.join('?' for _ in ids)})")
            params.extend(ids)

        rows = await self._fetchall(
            f"""
            SELECT je.entry_id, je.entry_date, jl.account_id, jl.debit, jl.credit, jl.currency
            FROM journal_line jl
            JOIN journal_entry je ON je.entry_id = jl.entry_id
            WHERE {' AND '.join(conditions)}
            """,
            tuple(params),
        )
        return [
            PostedLine(
                entry_id=UUID(row[0]),
                entry_date=date.fromisoformat(row[1]),
                account_id=UUID(row[2]),
                debit=row[3],
                credit=row[4],
                currency=row[5],
            )
            for row in rows
        ]

    async def posted_total(self, currency: str) -> int:
        row = await self._fetchone(
            """
            SELECT COALESCE(SUM(jl.debit), 0)
            FROM journal_line jl
            JOIN journal_entry je ON je.entry_id = jl.entry_id
            WHERE je.status IN (?, ?) AND je.currency = ?
            """,
            (EntryStatus.POSTED.value, EntryStatus.REVERSED.value, currency),
        )
        return row[0] if row else 0

    async def next_entry_number(self, now: datetime, prefix: str) -> str:
        self._check_writable()
        row = await self._fetchone("SELECT last_stamp, last_seq FROM entry_counter WHERE id = 1")
        last_stamp, last_seq = (row[0], row[1]) if row else ("", 0)

        stamp, seq = advance_counter(last_stamp, last_seq, now)
        await self._conn.execute(
            "UPDATE entry_counter SET last_stamp = ?, last_seq = ? WHERE id = 1",
            (stamp, seq),
        )
        return format_entry_number(prefix, stamp, seq)

    # -------------------------------------------------------------------------
    # 회계연도 / 기간
    # -------------------------------------------------------------------------

    async def insert_year(self, year: FiscalYear) -> None:
        self._check_writable()
        await self._conn.execute(
            f"INSERT INTO fiscal_year ({_YEAR_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                str(year.id),
                year.name,
                year.start_date.isoformat(),
                year.end_date.isoformat(),
                year.status.value,
                to_rfc3339(year.created_at),
                to_rfc3339(year.updated_at),
            ),
        )

    async def update_year(self, year: FiscalYear) -> None:
        self._check_writable()
        await self._conn.execute(
            """
            UPDATE fiscal_year
            SET name = ?, start_date = ?, end_date = ?, status = ?, updated_at = ?
            WHERE fiscal_year_id = ?
            """,
            (
                year.name,
                year.start_date.isoformat(),
                year.end_date.isoformat(),
                year.status.value,
                to_rfc3339(year.updated_at),
                str(year.id),
            ),
        )

    async def get_year(self, year_id: UUID) -> FiscalYear | None:
        row = await self._fetchone(
            f"SELECT {_YEAR_COLUMNS} FROM fiscal_year WHERE fiscal_year_id = ?",
            (str(year_id),),
        )
        return _row_to_year(row) if row else None

    async def list_years(self) -> list[FiscalYear]:
        rows = await self._fetchall(
            f"SELECT {_YEAR_COLUMNS} FROM fiscal_year ORDER BY start_date"
        )
        return [_row_to_year(row) for row in rows]

    async def find_year_for_date(self, on_date: date) -> FiscalYear | None:
        row = await self._fetchone(
            f"""
            SELECT {_YEAR_COLUMNS} FROM fiscal_year
            WHERE start_date <= ? AND end_date >= ?
            LIMIT 1
            """,
            (on_date.isoformat(), on_date.isoformat()),
        )
        return _row_to_year(row) if row else None

    async def find_overlapping_years(self, start_date: date, end_date: date) -> list[FiscalYear]:
        rows = await self._fetchall(
            f"""
            SELECT {_YEAR_COLUMNS} FROM fiscal_year
            WHERE start_date <= ? AND end_date >= ?
            ORDER BY start_date
            """,
            (end_date.isoformat(), start_date.isoformat()),
        )
        return [_row_to_year(row) for row in rows]

    async def insert_period(self, period: FiscalPeriod) -> None:
        self._check_writable()
        await self._conn.execute(
            f"INSERT INTO fiscal_period ({_PERIOD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(period.id),
                str(period.fiscal_year_id),
                period.period_number,
                period.name,
                period.start_date.isoformat(),
                period.end_date.isoformat(),
                period.status.value,
                to_rfc3339(period.created_at),
                to_rfc3339(period.updated_at),
            ),
        )

    async def update_period(self, period: FiscalPeriod) -> None:
        self._check_writable()
        await self._conn.execute(
            """
            UPDATE fiscal_period
            SET name = ?, start_date = ?, end_date = ?, status = ?, updated_at = ?
            WHERE fiscal_period_id = ?
            """,
            (
                period.name,
                period.start_date.isoformat(),
                period.end_date.isoformat(),
                period.status.value,
                to_rfc3339(period.updated_at),
                str(period.id),
            ),
        )

    async def get_period(self, period_id: UUID) -> FiscalPeriod | None:
        row = await self._fetchone(
            f"SELECT {_PERIOD_COLUMNS} FROM fiscal_period WHERE fiscal_period_id = ?",
            (str(period_id),),
        )
        return _row_to_period(row) if row else None

    async def list_periods(self, year_id: UUID) -> list[FiscalPeriod]:
        rows = await self._fetchall(
            f"""
            SELECT {_PERIOD_COLUMNS} FROM fiscal_period
            WHERE fiscal_year_id = ?
            ORDER BY start_date
            """,
            (str(year_id),),
        )
        return [_row_to_period(row) for row in rows]

    async def find_period_for_date(self, on_date: date) -> FiscalPeriod | None:
        row = await self._fetchone(
            f"""
            SELECT {_PERIOD_COLUMNS} FROM fiscal_period
            WHERE start_date <= ? AND end_date >= ?
            LIMIT 1
            """,
            (on_date.isoformat(), on_date.isoformat()),
        )
        return _row_to_period(row) if row else None

    # -------------------------------------------------------------------------
    # 반복 분개
    # -------------------------------------------------------------------------

    async def _load_recurring(self, rows: list[tuple[Any, ...]]) -> list[RecurringJournal]:
        if not rows:
            return []
        ids = [row[0] for row in rows]
        currencies = {row[0]: row[7] for row in rows}
        line_rows = await self._fetchall(
            f"""
            SELECT recurring_id, account_id, debit, credit, description
            FROM recurring_line
            WHERE recurring_id IN ({', '.join('?' for _ in ids)})
            ORDER BY recurring_id, line_order
            """,
            tuple(ids),
        )
        lines: dict[str, list[JournalLineInput]] = {template_id: [] for template_id in ids}
        for template_id, account_id, debit, credit, description in line_rows:
            currency = currencies[template_id]
            lines[template_id].append(
                JournalLineInput(
                    account_id=UUID(account_id),
                    debit=Money(debit, currency),
                    credit=Money(credit, currency),
                    description=description,
                )
            )
        return [_row_to_recurring(row, lines[row[0]]) for row in rows]

    async def insert_recurring(self, template: RecurringJournal) -> None:
        self._check_writable()
        await self._conn.execute(
            f"INSERT INTO recurring_journal ({_RECURRING_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(template.id),
                template.name,
                template.description,
                template.frequency.value,
                template.interval,
                template.start_date.isoformat(),
                _opt_iso(template.end_date),
                template.currency,
                int(template.auto_post),
                template.status.value,
                template.run_count,
                _opt_iso(template.next_run_date),
                _opt_iso(template.last_run_date),
                _opt_str(template.last_entry_id),
                to_rfc3339(template.created_at),
                to_rfc3339(template.updated_at),
            ),
        )
        await self._conn.executemany(
            """
            INSERT INTO recurring_line (
                recurring_id, line_order, account_id, debit, credit, description
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    str(template.id),
                    order,
                    str(line.account_id),
                    line.debit.minor_units,
                    line.credit.minor_units,
                    line.description,
                )
                for order, line in enumerate(template.lines)
            ],
        )

    async def update_recurring(self, template: RecurringJournal) -> None:
        """스케줄/상태 갱신 (항목은 변경하지 않음)"""
        self._check_writable()
        await self._conn.execute(
            """
            UPDATE recurring_journal
            SET status = ?, run_count = ?, next_run_date = ?, last_run_date = ?,
                last_entry_id = ?, updated_at = ?
            WHERE recurring_id = ?
            """,
            (
                template.status.value,
                template.run_count,
                _opt_iso(template.next_run_date),
                _opt_iso(template.last_run_date),
                _opt_str(template.last_entry_id),
                to_rfc3339(template.updated_at),
                str(template.id),
            ),
        )

    async def get_recurring(self, template_id: UUID) -> RecurringJournal | None:
        rows = await self._fetchall(
            f"SELECT {_RECURRING_COLUMNS} FROM recurring_journal WHERE recurring_id = ?",
            (str(template_id),),
        )
        templates = await self._load_recurring(rows)
        return templates[0] if templates else None

    async def list_recurring(self, status: RecurringStatus | None = None) -> list[RecurringJournal]:
        sql = f"SELECT {_RECURRING_COLUMNS} FROM recurring_journal"
        params: tuple[Any, ...] = ()
        if status is not None:
            sql += " WHERE status = ?"
            params = (status.value,)
        rows = await self._fetchall(sql + " ORDER BY name, recurring_id", params)
        return await self._load_recurring(rows)

    async def list_due_recurring(self, on_date: date) -> list[RecurringJournal]:
        rows = await self._fetchall(
            f"""
            SELECT {_RECURRING_COLUMNS} FROM recurring_journal
            WHERE status = ? AND next_run_date IS NOT NULL AND next_run_date <= ?
            ORDER BY next_run_date, name
            """,
            (RecurringStatus.ACTIVE.value, on_date.isoformat()),
        )
        return await self._load_recurring(rows)

    # -------------------------------------------------------------------------
    # 예산
    # -------------------------------------------------------------------------

    async def _load_budgets(self, rows: list[tuple[Any, ...]]) -> list[Budget]:
        if not rows:
            return []
        ids = [row[0] for row in rows]
        currencies = {row[0]: row[4] for row in rows}
        line_rows = await self._fetchall(
            f"""
            SELECT budget_id, account_id, amount
            FROM budget_line
            WHERE budget_id IN ({', '.join('?' for _ in ids)})
            ORDER BY budget_id, line_order
            """,
            tuple(ids),
        )
        lines: dict[str, list[BudgetLine]] = {budget_id: [] for budget_id in ids}
        for budget_id, account_id, amount in line_rows:
            lines[budget_id].append(
                BudgetLine(account_id=UUID(account_id), amount=Money(amount, currencies[budget_id]))
            )
        return [_row_to_budget(row, lines[row[0]]) for row in rows]

    async def insert_budget(self, budget: Budget) -> None:
        self._check_writable()
        await self._conn.execute(
            f"INSERT INTO budget ({_BUDGET_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                str(budget.id),
                budget.name,
                budget.start_date.isoformat(),
                budget.end_date.isoformat(),
                budget.currency,
                to_rfc3339(budget.created_at),
                to_rfc3339(budget.updated_at),
            ),
        )
        await self._conn.executemany(
            "INSERT INTO budget_line (budget_id, line_order, account_id, amount) "
            "VALUES (?, ?, ?, ?)",
            [
                (str(budget.id), order, str(line.account_id), line.amount.minor_units)
                for order, line in enumerate(budget.lines)
            ],
        )

    async def get_budget(self, budget_id: UUID) -> Budget | None:
        rows = await self._fetchall(
            f"SELECT {_BUDGET_COLUMNS} FROM budget WHERE budget_id = ?",
            (str(budget_id),),
        )
        budgets = await self._load_budgets(rows)
        return budgets[0] if budgets else None

    async def list_budgets(self) -> list[Budget]:
        rows = await self._fetchall(
            f"SELECT {_BUDGET_COLUMNS} FROM budget ORDER BY start_date DESC, name"
        )
        return await self._load_budgets(rows)

    async def delete_budget(self, budget_id: UUID) -> bool:
        self._check_writable()
        await self._conn.execute(
            "DELETE FROM budget_line WHERE budget_id = ?",
            (str(budget_id),),
        )
        cursor = await self._conn.execute(
            "DELETE FROM budget WHERE budget_id = ?",
            (str(budget_id),),
        )
        return cursor.rowcount == 1

    async def account_has_plans(self, account_id: UUID) -> bool:
        row = await self._fetchone(
            """
            SELECT 1 FROM recurring_line WHERE account_id = ?
            UNION ALL
            SELECT 1 FROM budget_line WHERE account_id = ?
            LIMIT 1
            """,
            (str(account_id), str(account_id)),
        )
        return row is not None


class SQLiteJournalStore:
    """SQLite JournalStore

    IJournalStore Protocol 구현.

    Args:
        db_path: DB 파일 경로
        max_retries: 잠금 오류 시 재시도 횟수
        busy_timeout_ms: 잠금 대기 시간

    사용 예시:
    ```python
    store = SQLiteJournalStore(get_db_path())
    await store.open()

    async with store.begin_txn() as txn:
        await txn.insert_account(account)

    await store.close()
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        max_retries: int = Defaults.STORAGE_MAX_RETRIES,
        busy_timeout_ms: int = 30000,
    ):
        self.db_path = Path(db_path)
        self._writer = SQLiteAdapter(
            db_path, max_retries=max_retries, busy_timeout_ms=busy_timeout_ms
        )
        self._reader = SQLiteAdapter(
            db_path, readonly=True, max_retries=max_retries, busy_timeout_ms=busy_timeout_ms
        )

    @property
    def is_open(self) -> bool:
        return self._writer.is_connected and self._reader.is_connected

    async def open(self) -> None:
        """연결 생성 및 스키마 초기화"""
        await self._writer.connect()
        await init_ledger_schema(self._writer)
        await self._reader.connect()
        logger.info("JournalStore 준비 완료", extra={"db_path": str(self.db_path)})

    async def close(self) -> None:
        """연결 종료"""
        await self._reader.close()
        await self._writer.close()

    @asynccontextmanager
    async def begin_txn(self, readonly: bool = False) -> AsyncIterator[SQLiteTxn]:
        """스코프 트랜잭션

        정상 종료 시 커밋, 예외/취소 시 롤백.
        """
        adapter = self._reader if readonly else self._writer
        async with adapter.transaction(immediate=not readonly) as conn:
            yield SQLiteTxn(conn, readonly=readonly)

    async def __aenter__(self) -> "SQLiteJournalStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
