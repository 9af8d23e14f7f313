"""Logging setup shared by the API and scripts."""
import logging
import sys

from app.config import settings


def setup_logging(level: str | None = None) -> None:
    """Route all loggers to stdout with a single formatter."""
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        "%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        handlers=[handler],
        force=True,
    )
    logging.getLogger("pymongo").setLevel(logging.WARNING)
