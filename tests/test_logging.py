"""Tests for restgen.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from restgen.logging import BuildMessageFormatter, configure_logging, get_logger, log_run_summary
from restgen.models import RunState, RunSummary


def _record(level: int, message: str) -> logging.LogRecord:
    return logging.LogRecord("restgen.task", level, __file__, 1, message, (), None)


def test_build_message_formatter_prefixes_level_for_problems() -> None:
    formatter = BuildMessageFormatter()

    assert formatter.format(_record(logging.INFO, "Found 2 entities")) == "restgen: Found 2 entities"
    assert formatter.format(_record(logging.WARNING, "Skipping a.py")) == "restgen: warning: Skipping a.py"
    assert formatter.format(_record(logging.ERROR, "disk full")) == "restgen: error: disk full"


def test_get_logger_nests_under_restgen() -> None:
    assert get_logger().name == "restgen"
    assert get_logger("task").name == "restgen.task"


def test_run_summary_goes_to_log_file_only(tmp_path: Path, capsys) -> None:
    log_file = tmp_path / "logs" / "restgen.log"
    configure_logging(log_file=log_file)
    summary = RunSummary(
        state=RunState.DONE,
        entities_found=2,
        artifacts_written=1,
        artifacts_failed=1,
        warnings=["disk full while writing Employee"],
    )

    get_logger("task").warning("disk full while writing Employee")
    log_run_summary(summary)

    content = log_file.read_text(encoding="utf-8")
    assert "run finished state=done entities=2 written=1 unchanged=0 failed=1" in content
    assert "warnings=1" in content
    assert "run warning: disk full while writing Employee" in content
    err = capsys.readouterr().err
    assert "restgen: warning: disk full while writing Employee" in err
    assert "run finished" not in err


def test_debug_records_reach_log_file_without_verbose(tmp_path: Path, capsys) -> None:
    log_file = tmp_path / "restgen.log"
    configure_logging(verbose=False, log_file=log_file)

    get_logger("task").debug("Repository interface unchanged: app.repository.EmployeeRepository")

    assert "Repository interface unchanged" in log_file.read_text(encoding="utf-8")
    assert "Repository interface unchanged" not in capsys.readouterr().err


def test_reconfiguring_replaces_handlers() -> None:
    configure_logging()
    configure_logging(verbose=True)

    logger = logging.getLogger("restgen")
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
