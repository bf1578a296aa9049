"""
core/logging.py 테스트

프로세스별 로그 경로 및 핸들러 구성 확인
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.constants import Paths
from core.logging import (
    NOISY_LOGGERS,
    ContextFormatter,
    get_log_dir,
    get_log_file_path,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """루트 로거 상태 복원"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestLogPaths:
    def test_web(self) -> None:
        assert get_log_dir("web") == Paths.WEB_LOGS_DIR
        assert get_log_file_path("web") == Paths.WEB_LOGS_DIR / "web.log"

    def test_cli(self) -> None:
        assert get_log_dir("cli") == Paths.CLI_LOGS_DIR

    def test_other(self) -> None:
        """알 수 없는 프로세스는 공통 로그 디렉토리"""
        assert get_log_dir("worker") == Paths.LOGS_DIR


class TestSetupLogging:
    def test_handlers(self, tmp_path: Path, restore_root_logger) -> None:
        """콘솔 + 일별 파일 핸들러"""
        root = setup_logging("cli", log_dir=tmp_path)

        kinds = [type(h) for h in root.handlers]
        assert kinds == [logging.StreamHandler, TimedRotatingFileHandler]
        assert (tmp_path / "cli.log").exists()

    def test_repeated_setup_does_not_duplicate(self, tmp_path: Path, restore_root_logger) -> None:
        setup_logging("cli", log_dir=tmp_path)
        root = setup_logging("cli", log_dir=tmp_path)

        assert len(root.handlers) == 2

    def test_noisy_loggers_quieted(self, tmp_path: Path, restore_root_logger) -> None:
        setup_logging("web", log_dir=tmp_path)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING


class TestContextFormatter:
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            name="core.ledger.journal_engine",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="분개 전기",
            args=(),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_plain_message(self) -> None:
        formatter = ContextFormatter("%(message)s")

        assert formatter.format(self._record()) == "분개 전기"

    def test_extra_context_appended_sorted(self) -> None:
        formatter = ContextFormatter("%(message)s")
        record = self._record(entry_id="e-1", account_id="a-1")

        assert formatter.format(record) == "분개 전기 | account_id=a-1 entry_id=e-1"

    def test_context_stays_on_first_line_with_traceback(self) -> None:
        formatter = ContextFormatter("%(message)s")
        try:
            raise ValueError("boom")
        except ValueError:
            record = self._record(entry_id="e-1")
            record.exc_info = sys.exc_info()

        lines = formatter.format(record).splitlines()
        assert lines[0] == "분개 전기 | entry_id=e-1"
        assert lines[-1] == "ValueError: boom"
