# barrage/logging_config.py
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

# Third-party loggers that are too chatty below WARNING during a load run
NOISY_LOGGERS = ("aiohttp", "asyncio")

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console: Console | None = None,
) -> Console:
    """
    Route all logging through a rich console and return it.

    Pass the returned console to RequestBarrage so its progress bar shares
    it: log lines are then printed above the live bar instead of through it.
    A plain-text copy goes to log_file when one is given.
    """
    console = console or Console()
    level = level.upper()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = RichHandler(
        console=console,
        show_path=level == "DEBUG",
        rich_tracebacks=True,
        log_time_format="%H:%M:%S",
    )
    console_handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)
        root.info(f"Logging to file: {log_file}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if level == "DEBUG" else logging.WARNING)

    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        root.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception

    return console
