import logging
import os

from rich.logging import RichHandler

from utils.config import settings


class CenteredFormatter(logging.Formatter):
    """Pads logger names to the longest seen so far, keeping columns aligned."""

    longest_name_length = 12

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=12):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        record.name = record.name.center(CenteredFormatter.longest_name_length)
        return super().format(record)


def _resolve_level() -> int:
    if os.getenv("DEBUG"):
        return logging.DEBUG
    return logging.getLevelNamesMapping().get(settings.LOG_LEVEL.upper(), logging.INFO)


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger writing through a RichHandler.

    Handlers are attached once per name, so calling this at import time of
    every module is fine.
    """
    if name is None:
        name = "orderstation"
    logger = logging.getLogger(name)
    log_level = _resolve_level()
    logger.setLevel(log_level)

    if not logger.handlers:
        formatter = CenteredFormatter("[%(name)s]  %(message)s")

        console_handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized.")

    return logger
