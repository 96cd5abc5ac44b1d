import json
import logging
import sys
from pathlib import Path
from typing import Any, cast

from loguru import logger
from loguru._defaults import LOGURU_FORMAT

from ringdeque.config import Settings

PACKAGE_NAME = "ringdeque"


class InterceptHandler(logging.Handler):
    """A custom logging handler to intercept standard logging messages.

    This handler redirects standard logging messages to Loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Emits a log record to the Loguru logger.

        Args:
            record: The log record to emit.
        """
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = str(record.levelno)

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = cast(Any, frame.f_back)
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _serialize(record: dict[str, Any]) -> str:
    """Structures a log record as a single JSON line."""
    log_object = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "source": {
            "name": record["name"],
            "file": f"{record['file'].name}:{record['line']}",
            "function": record["function"],
        },
        "extra": {k: v for k, v in record["extra"].items() if k != "serialized"},
    }
    return json.dumps(log_object, default=str)


def _json_formatter(record: dict[str, Any]) -> str:
    # Loguru formats the returned template again, so the JSON travels in
    # `extra` instead of being returned directly.
    record["extra"]["serialized"] = _serialize(record)
    return "{extra[serialized]}\n"


def setup_logging(
    console_level: str | None = None,
    file_level: str | None = None,
    log_dir: Path | None = None,
    *,
    intercept_stdlib: bool = False,
) -> None:
    """Configures Loguru and enables the package's log output.

    The package disables its own logger on import so that applications
    embedding it stay quiet unless they opt in. This function opts in: it
    removes any existing handlers and installs a readable console sink, plus
    an optional rotating file sink with structured JSON output.

    Arguments left as None are read from the `[general]` table of the
    config file. File logging stays off when neither names a directory.

    Args:
        console_level: The minimum log level for console output.
        file_level: The minimum log level for file output.
        log_dir: Directory to store log files.
        intercept_stdlib: Also route standard library logging through Loguru.
    """
    general = Settings.get_instance().general
    console_level = console_level or general.log_level_console
    file_level = file_level or general.log_level_file
    if log_dir is None and general.log_directory:
        log_dir = Path(general.log_directory).expanduser()

    logger.remove()
    logger.enable(PACKAGE_NAME)
    logger.add(
        sys.stderr,
        level=console_level.upper(),
        format=LOGURU_FORMAT,
        colorize=True,
    )

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / f"{PACKAGE_NAME}_{{time:YYYY-MM-DD}}.log",
            level=file_level.upper(),
            format=_json_formatter,
            rotation="00:00",  # New file at midnight
            retention="7 days",
            compression="zip",
            enqueue=True,  # Make logging calls non-blocking
            backtrace=False,  # Keep log files clean
            diagnose=False,
        )

    if intercept_stdlib:
        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    logger.info("Logging configured successfully.")
