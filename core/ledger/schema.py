"""
복식부기 스키마 초기화

Web/CLI 시작 시 자동으로 Ledger 테이블과 인덱스 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.

저장 규칙:
- ID: UUID 문자열
- 날짜: ISO-8601 (YYYY-MM-DD), 시각: RFC3339 UTC
- 금액: 정수 최소 단위 (INTEGER)
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 인덱스)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: 연결된 SQLiteAdapter (쓰기 가능)
    """
    async with db.transaction() as conn:
        await _create_ledger_tables(conn)
        await _create_ledger_indexes(conn)
    logger.info("Ledger 스키마 초기화 완료")


async def _create_ledger_tables(conn) -> None:
    """Ledger 테이블 생성"""

    # account 테이블
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS account (
            account_id       TEXT PRIMARY KEY,
            code             TEXT NOT NULL UNIQUE,
            name             TEXT NOT NULL,
            account_type     TEXT NOT NULL,
            parent_id        TEXT,
            description      TEXT,
            status           TEXT NOT NULL DEFAULT 'Active',
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            FOREIGN KEY (parent_id) REFERENCES account(account_id)
        )
    """)

    # journal_entry 테이블
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS journal_entry (
            entry_id         TEXT PRIMARY KEY,
            entry_number     TEXT NOT NULL UNIQUE,
            entry_date       TEXT NOT NULL,
            description      TEXT NOT NULL,
            reference        TEXT,
            currency         TEXT NOT NULL,
            status           TEXT NOT NULL DEFAULT 'Draft',
            posted_at        TEXT,
            reversed_by_id   TEXT,
            reversal_of_id   TEXT,
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)

    # journal_line 테이블
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS journal_line (
            line_id          TEXT PRIMARY KEY,
            entry_id         TEXT NOT NULL,
            line_order       INTEGER NOT NULL,
            account_id       TEXT NOT NULL,
            debit            INTEGER NOT NULL DEFAULT 0,
            credit           INTEGER NOT NULL DEFAULT 0,
            currency         TEXT NOT NULL,
            description      TEXT,
            FOREIGN KEY (entry_id) REFERENCES journal_entry(entry_id) ON DELETE CASCADE,
            FOREIGN KEY (account_id) REFERENCES account(account_id)
        )
    """)

    # fiscal_year 테이블
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS fiscal_year (
            fiscal_year_id   TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            start_date       TEXT NOT NULL,
            end_date         TEXT NOT NULL,
            status           TEXT NOT NULL DEFAULT 'Open',
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)

    # fiscal_period 테이블
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS fiscal_period (
            fiscal_period_id TEXT PRIMARY KEY,
            fiscal_year_id   TEXT NOT NULL,
            period_number    INTEGER NOT NULL,
            name             TEXT NOT NULL,
            start_date       TEXT NOT NULL,
            end_date         TEXT NOT NULL,
            status           TEXT NOT NULL DEFAULT 'Open',
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            UNIQUE(fiscal_year_id, period_number),
            FOREIGN KEY (fiscal_year_id) REFERENCES fiscal_year(fiscal_year_id)
        )
    """)

    # recurring_journal 테이블 (반복 분개 템플릿)
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS recurring_journal (
            recurring_id     TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            description      TEXT,
            frequency        TEXT NOT NULL,
            interval_value   INTEGER NOT NULL DEFAULT 1,
            start_date       TEXT NOT NULL,
            end_date         TEXT,
            currency         TEXT NOT NULL,
            auto_post        INTEGER NOT NULL DEFAULT 0,
            status           TEXT NOT NULL DEFAULT 'Active',
            run_count        INTEGER NOT NULL DEFAULT 0,
            next_run_date    TEXT,
            last_run_date    TEXT,
            last_entry_id    TEXT,
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)

    # recurring_line 테이블
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS recurring_line (
            recurring_id     TEXT NOT NULL,
            line_order       INTEGER NOT NULL,
            account_id       TEXT NOT NULL,
            debit            INTEGER NOT NULL DEFAULT 0,
            credit           INTEGER NOT NULL DEFAULT 0,
            description      TEXT,
            PRIMARY KEY (recurring_id, line_order),
            FOREIGN KEY (recurring_id) REFERENCES recurring_journal(recurring_id) ON DELETE CASCADE,
            FOREIGN KEY (account_id) REFERENCES account(account_id)
        )
    """)

    # budget 테이블
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS budget (
            budget_id        TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            start_date       TEXT NOT NULL,
            end_date         TEXT NOT NULL,
            currency         TEXT NOT NULL,
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)

    # budget_line 테이블
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS budget_line (
            budget_id        TEXT NOT NULL,
            line_order       INTEGER NOT NULL,
            account_id       TEXT NOT NULL,
            amount           INTEGER NOT NULL,
            PRIMARY KEY (budget_id, line_order),
            FOREIGN KEY (budget_id) REFERENCES budget(budget_id) ON DELETE CASCADE,
            FOREIGN KEY (account_id) REFERENCES account(account_id)
        )
    """)

    # entry_counter 테이블 (분개 번호 카운터, 단일 행)
    await conn.execute("""
        CREATE TABLE IF NOT EXISTS entry_counter (
            id               INTEGER PRIMARY KEY CHECK (id = 1),
            last_stamp       TEXT NOT NULL DEFAULT '',
            last_seq         INTEGER NOT NULL DEFAULT 0
        )
    """)
    await conn.execute("""
        INSERT OR IGNORE INTO entry_counter (id, last_stamp, last_seq)
        VALUES (1, '', 0)
    """)


async def _create_ledger_indexes(conn) -> None:
    """Ledger 인덱스 생성"""
    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_account_parent
        ON account(parent_id)
    """)

    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_journal_entry_date
        ON journal_entry(entry_date DESC, entry_number DESC)
    """)

    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_journal_entry_status
        ON journal_entry(status)
    """)

    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_journal_line_entry
        ON journal_line(entry_id, line_order)
    """)

    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_journal_line_account
        ON journal_line(account_id)
    """)

    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_fiscal_period_year
        ON fiscal_period(fiscal_year_id, start_date)
    """)

    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_recurring_journal_due
        ON recurring_journal(status, next_run_date)
    """)

    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_recurring_line_account
        ON recurring_line(account_id)
    """)

    await conn.execute("""
        CREATE INDEX IF NOT EXISTS ix_budget_line_account
        ON budget_line(account_id)
    """)
