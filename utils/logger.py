import sys
from pathlib import Path
from typing import Optional

from loguru import logger

COMPLETION_MODULES = ("core.completion",)


def _is_completion_record(record) -> bool:
    return record["name"].startswith(COMPLETION_MODULES)


def setup_logger(
    log_file: str = "logs/sqdesk.log",
    level: str = "INFO",
    completion_log: Optional[str] = "logs/completion.log",
):
    """
    File logging for the app plus an optional DEBUG sink for the
    completion engine, where per-source failures and timeouts are
    reported without raising the main log level.
    """
    logger.remove()

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        rotation="10 MB",
        retention="7 days",
        compression="zip",
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {module}:{function}:{line} | {message}",
        backtrace=True,
        diagnose=True,
        enqueue=True,
    )

    if completion_log:
        Path(completion_log).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            completion_log,
            rotation="5 MB",
            retention=3,
            level="DEBUG",
            filter=_is_completion_record,
            format="{time:HH:mm:ss.SSS} | {thread.name:<16} | {module} | {message}",
            enqueue=True,
        )

    # The TUI owns the terminal; only fatal problems reach stderr.
    logger.add(
        sys.stderr,
        level="CRITICAL",
        format="{time:HH:mm:ss} | {level} | {message}",
    )

    logger.info("SQDesk logger initialized")
    return logger
