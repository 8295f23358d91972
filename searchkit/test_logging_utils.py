"""
Tests for logging setup.
"""

import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from . import logging_utils


@pytest.fixture
def restoreLoggers():
    names = ["", "searchkit", "searchkit.test", *logging_utils.TRANSPORT_LOGGERS, *logging_utils.TRACE_LOGGERS]
    saved = {
        name: (logging.getLogger(name).level, logging.getLogger(name).propagate, list(logging.getLogger(name).handlers))
        for name in names
    }
    yield
    for name, (level, propagate, handlers) in saved.items():
        localLogger = logging.getLogger(name)
        for handler in localLogger.handlers:
            if handler not in handlers:
                handler.close()
        localLogger.setLevel(level)
        localLogger.propagate = propagate
        localLogger.handlers[:] = handlers


def test_log_level_by_str():
    assert logging_utils.getLogLevelByStr("debug") == logging.DEBUG
    assert logging_utils.getLogLevelByStr("nope", logging.INFO) == logging.INFO
    assert logging_utils.getLogLevelByStr("nope") is None


def test_init_logging(restoreLoggers, tmp_path):
    logFile = tmp_path / "logs" / "searchkit.log"

    libraryLogger = logging_utils.initLogging(
        {
            "level": "DEBUG",
            "file": str(logFile),
            "logger": {"searchkit.test": {"level": "ERROR"}},
        }
    )

    assert libraryLogger is logging.getLogger("searchkit")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("searchkit.test").level == logging.ERROR
    assert logFile.parent.is_dir()
    fileHandlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
    assert len(fileHandlers) == 1
    assert not isinstance(fileHandlers[0], TimedRotatingFileHandler)


def test_transport_loggers_quiet_by_default(restoreLoggers):
    logging_utils.initLogging({"level": "DEBUG"})

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_quiet_transport_can_be_disabled(restoreLoggers):
    logging.getLogger("httpx").setLevel(logging.NOTSET)

    logging_utils.initLogging({"level": "DEBUG", "quiet-transport": False})

    assert logging.getLogger("httpx").level == logging.NOTSET


@pytest.mark.parametrize(
    "traceAttempts, expected",
    [(True, logging.DEBUG), (False, logging.INFO)],
)
def test_trace_attempts(restoreLoggers, traceAttempts, expected):
    logging_utils.initLogging({"trace-attempts": traceAttempts})

    assert logging.getLogger("searchkit.dispatch").level == expected
    assert logging.getLogger("searchkit.cache").level == expected


def test_logger_table_overrides_trace_attempts(restoreLoggers):
    logging_utils.initLogging(
        {
            "trace-attempts": True,
            "logger": {"searchkit.dispatch": {"level": "WARNING", "propagate": False}},
        }
    )

    dispatchLogger = logging.getLogger("searchkit.dispatch")
    assert dispatchLogger.level == logging.WARNING
    assert dispatchLogger.propagate is False
    assert logging.getLogger("searchkit.cache").level == logging.DEBUG


def test_rotating_file_handler(restoreLoggers, tmp_path):
    logFile = tmp_path / "searchkit.log"

    logging_utils.initLogging(
        {
            "file": str(logFile),
            "file-level": "WARNING",
            "rotate": True,
            "rotate-when": "H",
            "backup-count": 3,
        }
    )

    handlers = [h for h in logging.getLogger().handlers if isinstance(h, TimedRotatingFileHandler)]
    assert len(handlers) == 1
    assert handlers[0].backupCount == 3
    assert handlers[0].when == "H"
    assert handlers[0].level == logging.WARNING


def test_configure_logger_replaces_handlers(restoreLoggers):
    testLogger = logging.getLogger("searchkit.test")
    stale = logging.NullHandler()
    testLogger.addHandler(stale)

    logging_utils.configureLogger(testLogger, {"console": True, "console-level": "ERROR"})

    assert stale not in testLogger.handlers
    assert len(testLogger.handlers) == 1
    assert testLogger.handlers[0].level == logging.ERROR
