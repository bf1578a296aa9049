"""
Ledger 초기화 스크립트

스키마 생성 + 기본 계정과목표 + (선택) 회계연도 생성.
이미 존재하는 계정 코드는 건너뜀.

사용법:
    python -m scripts.seed_chart
    python -m scripts.seed_chart --db data/ledger.db --year-name FY2024 \\
        --start 2024-01-01 --end 2024-12-31 --monthly
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import get_db_path
from adapters.db.sqlite_store import SQLiteJournalStore
from core.config.loader import get_settings
from core.ledger.errors import LedgerError
from core.ledger.service import build_ledger, seed_default_chart
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main(args: argparse.Namespace) -> int:
    """초기화 실행

    Returns:
        종료 코드 (0: 성공, 1: 실패)
    """
    settings = get_settings(args.config).ledger
    db_path = get_db_path(args.db) if args.db else settings.db_path

    logger.info(f"Ledger 초기화 시작: {db_path}")

    async with SQLiteJournalStore(db_path, max_retries=settings.storage_max_retries) as store:
        ledger = build_ledger(store, settings)

        try:
            created = await seed_default_chart(ledger.book)
            logger.info(f"계정 생성: {len(created)}개")

            if args.year_name:
                if args.start is None or args.end is None:
                    logger.error("--year-name에는 --start, --end가 필요합니다")
                    return 1

                year = await ledger.calendar.create_year(args.year_name, args.start, args.end)
                logger.info(f"회계연도 생성: {year.name} ({year.start_date} ~ {year.end_date})")

                if args.monthly:
                    periods = await ledger.calendar.create_monthly_periods(year.id)
                    logger.info(f"월별 회계기간 생성: {len(periods)}개")
        except LedgerError as e:
            logger.error(f"초기화 실패: {e.kind.value} {e.message}")
            return 1

    logger.info("Ledger 초기화 완료")
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ledger 스키마 및 기본 계정과목표 초기화")
    parser.add_argument("--config", type=Path, default=None, help="ledger.yaml 경로")
    parser.add_argument("--db", type=str, default=None, help="DB 파일 경로 (기본: 설정값)")
    parser.add_argument("--year-name", type=str, default=None, help="생성할 회계연도 이름")
    parser.add_argument("--start", type=date.fromisoformat, default=None, help="회계연도 시작일")
    parser.add_argument("--end", type=date.fromisoformat, default=None, help="회계연도 종료일")
    parser.add_argument("--monthly", action="store_true", help="월별 회계기간 생성")
    return parser.parse_args(argv)


if __name__ == "__main__":
    setup_logging("cli")
    sys.exit(asyncio.run(main(parse_args())))
