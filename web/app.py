"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
Ledger 구성 요소는 lifespan에서 생성되어 app.state.ledger에 보관.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.db.sqlite_store import SQLiteJournalStore
from adapters.interfaces import IJournalStore
from core.config.loader import LedgerSettings, get_settings
from core.ledger.service import build_ledger
from web.errors import install_error_handlers
from web.routes import (
    accounts,
    budgets,
    fiscal_years,
    health,
    journal_entries,
    recurring_journals,
    reports,
)
from web.routes.health import API_VERSION

logger = logging.getLogger(__name__)


def create_app(
    settings: LedgerSettings | None = None,
    store: IJournalStore | None = None,
) -> FastAPI:
    """앱 생성

    Args:
        settings: Ledger 설정 (None이면 ledger.yaml에서 로드)
        store: 주입할 JournalStore (None이면 lifespan에서 SQLite 저장소를 열고 닫음)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """앱 생명주기 관리"""
        if store is not None:
            # 주입된 저장소는 호출자가 소유
            yield
            return

        resolved = settings or get_settings().ledger
        sqlite_store = SQLiteJournalStore(
            resolved.db_path, max_retries=resolved.storage_max_retries
        )
        await sqlite_store.open()
        app.state.ledger = build_ledger(sqlite_store, resolved)
        logger.info("Web: Ledger 초기화 완료", extra={"db_path": str(resolved.db_path)})

        try:
            yield
        finally:
            app.state.ledger = None
            await sqlite_store.close()
            logger.info("Web: DB 연결 종료 완료")

    app = FastAPI(
        title="Ledger Engine API",
        description="복식부기 회계 원장 API",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    if store is not None:
        app.state.ledger = build_ledger(store, settings or get_settings().ledger)

    # CORS 설정 (개발용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    # =========================================================================
    # API 라우터 등록
    # =========================================================================

    app.include_router(health.router)
    app.include_router(accounts.router)
    app.include_router(fiscal_years.router)
    app.include_router(fiscal_years.periods_router)
    app.include_router(journal_entries.router)
    app.include_router(reports.router)
    app.include_router(recurring_journals.router)
    app.include_router(budgets.router)

    return app


app = create_app()
