"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web과 CLI가 동시에 접근 가능하도록 설정.

트랜잭션은 명시적 BEGIN/COMMIT으로 제어 (isolation_level=None).
같은 연결 위의 트랜잭션은 asyncio.Lock으로 직렬화.
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import PROJECT_ROOT, Defaults, Paths
from core.ledger.errors import StorageError

logger = logging.getLogger(__name__)

# 잠금 재시도 간격 (초), 시도마다 배수 증가
RETRY_BACKOFF_SEC: float = 0.05


def get_db_path(path: Path | str | None = None) -> Path:
    """DB 경로 반환

    Args:
        path: 설정된 경로 (None이면 기본 경로, 상대 경로는 프로젝트 루트 기준)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if path is None:
        return Paths.LEDGER_DB

    db_path = Path(path)
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path
    return db_path


def _is_locked_error(exc: BaseException) -> bool:
    """일시적 잠금 오류 여부 (재시도 대상)"""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return "locked" in message or "busy" in message


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
    busy_timeout_ms: int = 30000,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (query_only)
        busy_timeout_ms: 잠금 대기 시간

    Returns:
        aiosqlite 연결 객체
    """
    # pathlib.Path를 문자열로 변환
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    # 자동 커밋 모드 (트랜잭션은 명시적으로 시작)
    conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    if readonly:
        await conn.execute("PRAGMA query_only=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (조회용)
        max_retries: 잠금 오류 시 트랜잭션 시작 재시도 횟수
        busy_timeout_ms: 잠금 대기 시간

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction(immediate=True) as conn:
        await conn.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        readonly: bool = False,
        max_retries: int = Defaults.STORAGE_MAX_RETRIES,
        busy_timeout_ms: int = 30000,
    ):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self.max_retries = max(1, max_retries)
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        try:
            self._conn = await create_connection(
                self.db_path, self.readonly, self.busy_timeout_ms
            )
        except sqlite3.Error as e:
            raise StorageError("database unavailable") from e

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StorageError("not connected to database")
        return self._conn

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        conn = self._require_conn()
        if parameters:
            return await conn.execute(sql, parameters)
        return await conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        return await self._require_conn().executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def _begin(self, conn: aiosqlite.Connection, immediate: bool) -> None:
        """트랜잭션 시작 (잠금 오류는 제한 횟수만큼 재시도)"""
        statement = "BEGIN IMMEDIATE" if immediate else "BEGIN"

        for attempt in range(self.max_retries):
            try:
                await conn.execute(statement)
                return
            except sqlite3.Error as e:
                if not _is_locked_error(e):
                    raise StorageError("failed to begin transaction") from e

                if attempt == self.max_retries - 1:
                    logger.error(
                        "DB 잠금 재시도 초과",
                        extra={"db_path": str(self.db_path), "attempts": self.max_retries},
                    )
                    raise StorageError("database is busy") from e

                wait_time = RETRY_BACKOFF_SEC * (2 ** attempt)
                logger.warning(
                    f"DB 잠금, {wait_time:.2f}초 후 재시도",
                    extra={"attempt": attempt + 1, "max_retries": self.max_retries},
                )
                await asyncio.sleep(wait_time)

    async def _rollback_quietly(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.rollback()
        except sqlite3.Error:
            logger.exception("롤백 실패")

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외(취소 포함) 시 자동 롤백.
        드라이버 오류는 StorageError로 변환 (원인은 __cause__로 보존).

        Args:
            immediate: True면 BEGIN IMMEDIATE (쓰기 잠금 선점)

        사용 예시:
        ```python
        async with adapter.transaction(immediate=True) as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        conn = self._require_conn()

        async with self._lock:
            await self._begin(conn, immediate)

            try:
                yield conn
            except sqlite3.Error as e:
                await self._rollback_quietly(conn)
                logger.error("DB 오류로 트랜잭션 롤백", extra={"error": str(e)})
                raise StorageError("storage operation failed") from e
            except BaseException:
                await self._rollback_quietly(conn)
                raise

            try:
                await conn.commit()
            except sqlite3.Error as e:
                await self._rollback_quietly(conn)
                logger.error("DB 커밋 실패", extra={"error": str(e)})
                raise StorageError("storage commit failed") from e

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
