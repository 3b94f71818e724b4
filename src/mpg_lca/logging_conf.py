import logging
import os
import sys
from typing import Optional

import colorama
from colorama import Fore, Style

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that are chatty at DEBUG level; --verbose is about layer values, not SQL.
QUIET_LOGGERS = ("sqlalchemy", "openpyxl")


class ColoredFormatter(logging.Formatter):
    """
    Console output for calculation runs.

    INFO lines are printed bare so progress messages read like the report itself;
    other levels get a 'LEVEL: ' prefix. With use_color the whole line takes the
    level color.
    """
    LEVEL_COLORS = {
        logging.DEBUG: Fore.BLUE,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def __init__(self, use_color: bool = True):
        super().__init__("%(message)s")
        self.use_color = use_color
        self._with_level = logging.Formatter("%(levelname)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            line = super().format(record)
        else:
            line = self._with_level.format(record)
        if not self.use_color:
            return line
        return f"{self.LEVEL_COLORS.get(record.levelno, '')}{line}{Style.RESET_ALL}"


def _console_supports_color(no_color: bool) -> bool:
    if no_color or os.environ.get("NO_COLOR"):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def setup_logging(
    console_level: int = logging.INFO,
    file_path: Optional[str] = None,
    file_level: int = logging.DEBUG,
    no_color: bool = False
) -> logging.Logger:
    """
    Configure the root logger for a command-line run: a console handler at
    console_level and, with file_path, a plain-text log file at file_level.
    Calling it again replaces the handlers of the previous call.
    """
    colorama.init()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(ColoredFormatter(use_color=_console_supports_color(no_color)))
    root.addHandler(console)

    if file_path:
        log_file = logging.FileHandler(file_path, mode="w", encoding="utf-8")
        log_file.setLevel(file_level)
        log_file.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(log_file)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
