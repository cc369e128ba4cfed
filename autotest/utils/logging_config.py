import logging
import sys
import os
from datetime import datetime
from typing import Optional

from autotest.core.config import LOG_DIR

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"


class ColoredFormatter(logging.Formatter):
    """
    Console formatter that wraps each line in the ANSI color of its level.

    With ``use_color=False`` (piped output, NO_COLOR) lines are left plain.
    Levels without a color (custom levels) are never wrapped.
    """

    cyan = "\x1b[36m"
    blue = "\x1b[38;5;39m"
    yellow = "\x1b[33m"
    red = "\x1b[31m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: cyan,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def __init__(self, fmt: str = CONSOLE_FORMAT, use_color: bool = True):
        super().__init__(fmt, datefmt=DATE_FORMAT)
        self.use_color = use_color
        self._by_level = {
            level: logging.Formatter(f"{color}{fmt}{self.reset}", datefmt=DATE_FORMAT)
            for level, color in self.LEVEL_COLORS.items()
        } if use_color else {}

    def format(self, record: logging.LogRecord) -> str:
        formatter = self._by_level.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


def _console_supports_color(stream) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(level=logging.INFO, log_dir: Optional[str] = None):
    """Setup centralized logging: stderr console, plus a dated file when log_dir is set."""
    root_logger = logging.getLogger()

    # Replace, never stack, handlers on repeated calls
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(use_color=_console_supports_color(sys.stderr)))
    root_logger.addHandler(console_handler)

    log_dir = LOG_DIR if log_dir is None else log_dir
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"autotest_{datetime.now():%Y%m%d}.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    for logger_name in ("autotest", "uvicorn", "uvicorn.error", "uvicorn.access", "main"):
        named = logging.getLogger(logger_name)
        named.setLevel(level)
        named.propagate = True

    root_logger.debug("Logging initialized (console%s).", " + file" if log_dir else "")
