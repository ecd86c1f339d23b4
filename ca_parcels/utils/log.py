""" Pretty logger to be imported anywhere."""
import logging
import os
from dataclasses import dataclass

from rich.logging import RichHandler


logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(show_path=False)],
)


def set_log_level(log: logging.Logger, level: str):
    """Set the logger level from the logging module presets
    Parameters:
        log: The logging object
        level: The desired logging level from {DEBUG, INFO, WARN, ERROR, CRITICAL}
    """
    log.setLevel(getattr(logging, level.upper()))


def get_logger() -> logging.Logger:
    """Initialise a basic logger to stdout
    Returns:
        The logger object
    """
    log = logging.getLogger("ca_parcels")
    level = os.environ.get("LOG_LEVEL", "INFO")
    set_log_level(log, level)
    return log


LOG = get_logger()


@dataclass
class DataError(Exception):
    """Error raised when data is not what is expected"""
    msg: str = ""

    def __post_init__(self):
        LOG.error(self.msg)

    def __str__(self):
        return self.msg


logging.getLogger("pyogrio").setLevel(logging.WARNING)  # per-layer open messages are noisy
