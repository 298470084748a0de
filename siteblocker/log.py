import logging
import sys

import click

LEVELS = [logging.INFO, logging.DEBUG]

LEVEL_COLORS = {
    logging.DEBUG: "blue",
    logging.INFO: "green",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class LevelFormatter(logging.Formatter):
    """Prefixes messages with their (optionally colored) level name."""

    def __init__(self, color: bool = True):
        super().__init__("%(message)s")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname.lower()
        if self.color:
            level = click.style(level, fg=LEVEL_COLORS.get(record.levelno), bold=True)
        return f"{level}: {super().format(record)}"


def setup_logging(verbosity: int = 0, quiet: bool = False, color: bool = True) -> logging.Logger:
    logger = logging.getLogger("siteblocker")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(LevelFormatter(color=color))
    logger.addHandler(handler)

    if quiet:
        logger.setLevel(logging.CRITICAL + 1)
    else:
        logger.setLevel(LEVELS[min(verbosity, len(LEVELS) - 1)])
    return logger
