"""
Logging setup
"""
import logging

from .config import settings

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Console handler always, UTF-8 file handler when a log file is configured."""
    level = (level or settings.LOG_LEVEL).upper()
    log_file = settings.LOG_FILE if log_file is None else log_file

    root = logging.getLogger()
    root.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not any(getattr(h, "_onnibox", False) for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console._onnibox = True
        root.addHandler(console)

        if log_file:
            handler = logging.FileHandler(log_file, encoding='utf-8')
            handler.setFormatter(formatter)
            handler._onnibox = True
            root.addHandler(handler)
