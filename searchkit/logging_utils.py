"""
Logging setup for searchkit applications.

Driven by the ``[logging]`` section of the TOML config::

    [logging]
    level = "INFO"              # root level
    console = true
    file = "logs/searchkit.log"
    rotate = true               # daily rotation, see rotate-when / backup-count
    quiet-transport = true      # keep httpx/httpcore at WARNING (default)
    trace-attempts = false      # per-host attempt and cache traces at DEBUG

    [logging.logger."searchkit.index"]
    level = "DEBUG"

The library itself only ever calls ``logging.getLogger(__name__)``; nothing
here is needed to use searchkit as a library.
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

LIBRARY_LOGGER = "searchkit"
# Loggers emitting one line per attempt / cache lookup
TRACE_LOGGERS = ("searchkit.dispatch", "searchkit.cache")
# httpx logs every request at INFO, which duplicates the dispatcher's own attempt logging
TRANSPORT_LOGGERS = ("httpx", "httpcore")

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_ROTATE_WHEN = "midnight"
DEFAULT_BACKUP_COUNT = 7


def getLogLevelByStr(levelStr: str, default: Optional[int] = None) -> Optional[int]:
    """Map "debug" / "INFO" / ... to a logging level, ``default`` if unknown."""
    level = logging.getLevelName(levelStr.upper())
    if not isinstance(level, int):
        logger.error(f"Invalid log level '{levelStr}'")
        return default
    return level


def _levelFrom(config: Dict[str, Any], key: str, fallback: int) -> int:
    if key not in config:
        return fallback
    level = getLogLevelByStr(str(config[key]))
    return level if level is not None else fallback


def _buildHandlers(config: Dict[str, Any], level: int, loggerName: str) -> List[logging.Handler]:
    formatter = logging.Formatter(config.get("format", DEFAULT_LOG_FORMAT))
    handlers: List[logging.Handler] = []

    if config.get("console", False):
        consoleHandler = logging.StreamHandler()
        consoleHandler.setLevel(_levelFrom(config, "console-level", level))
        handlers.append(consoleHandler)

    logFile = config.get("file")
    if logFile:
        try:
            Path(logFile).parent.mkdir(parents=True, exist_ok=True)
            fileHandler: logging.Handler
            if config.get("rotate", False):
                fileHandler = TimedRotatingFileHandler(
                    filename=logFile,
                    when=config.get("rotate-when", DEFAULT_ROTATE_WHEN),
                    backupCount=int(config.get("backup-count", DEFAULT_BACKUP_COUNT)),
                    encoding="utf-8",
                )
            else:
                fileHandler = logging.FileHandler(logFile, encoding="utf-8")
        except OSError as e:
            logger.error(f"Can not log {loggerName or 'root'} to {logFile}: {e}")
        else:
            fileHandler.setLevel(_levelFrom(config, "file-level", level))
            handlers.append(fileHandler)

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configureLogger(localLogger: logging.Logger, config: Dict[str, Any]) -> None:
    """Apply one logger table: level, propagate and its own console/file handlers.

    Existing handlers of the logger are replaced.
    """
    if "propagate" in config:
        localLogger.propagate = bool(config["propagate"])
    if "level" in config:
        localLogger.setLevel(_levelFrom(config, "level", localLogger.level))

    for handler in localLogger.handlers[:]:
        localLogger.removeHandler(handler)
    for handler in _buildHandlers(config, localLogger.getEffectiveLevel(), localLogger.name):
        localLogger.addHandler(handler)


def initLogging(config: Dict[str, Any]) -> logging.Logger:
    """Configure logging from the ``[logging]`` section.

    Returns:
        The ``searchkit`` library logger
    """
    rootLogger = logging.getLogger()
    rootLogger.setLevel(logging.INFO)
    configureLogger(rootLogger, config)

    if config.get("quiet-transport", True):
        for name in TRANSPORT_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # Attempt traces are only interesting when chasing failover issues
    traceLevel = logging.DEBUG if config.get("trace-attempts", False) else logging.INFO
    for name in TRACE_LOGGERS:
        logging.getLogger(name).setLevel(traceLevel)

    for loggerName, loggerConfig in config.get("logger", {}).items():
        configureLogger(logging.getLogger(loggerName), loggerConfig)

    libraryLogger = logging.getLogger(LIBRARY_LOGGER)
    logger.debug(
        f"Logging configured: root={logging.getLevelName(rootLogger.level)}, "
        f"attempt traces {'on' if traceLevel == logging.DEBUG else 'off'}"
    )
    return libraryLogger
