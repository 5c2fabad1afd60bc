"""
utils/logger.py
===============
Sets up a consistent, human-readable logger for the whole application.
Uses Python's standard `logging` module, plus one extra SUCCESS level that
sits between INFO and WARNING for "this step finished" lines (session file
written, bot connected, and so on).
"""
import logging
import sys

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")


def get_logger(name: str) -> logging.Logger:
    """Return a named logger configured with a stream handler.

    Safe to call at module level: repeated calls with the same name return
    the same logger without stacking handlers.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)

    # Imported lazily so this module has no import-time dependency on config
    try:
        from config.settings import settings  # noqa: PLC0415
        logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    except Exception:  # pragma: no cover; if settings fail, default to INFO
        logger.setLevel(logging.INFO)

    return logger


def log_success(logger: logging.Logger, msg: str, *args) -> None:
    """Log *msg* at the SUCCESS level."""
    if logger.isEnabledFor(SUCCESS):
        logger.log(SUCCESS, msg, *args)
