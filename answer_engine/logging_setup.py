from __future__ import annotations
import logging

from answer_engine.config import LOG_LEVEL

# Third-party loggers that are noisy below INFO (requests' connection pool)
_QUIET_LOGGERS = ("urllib3",)


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_console_logging(level: int | str | None = None) -> None:
    """
    Call once at app or CLI start. Prints engine logs to console.

    ``level`` defaults to the ``LOG_LEVEL`` environment setting.
    """
    level = _resolve_level(level)
    root = logging.getLogger()
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    if root.handlers:
        # already configured (avoid duplicates)
        root.setLevel(level)
        return

    root.setLevel(level)
    h = logging.StreamHandler()
    fmt = logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    h.setFormatter(fmt)
    root.addHandler(h)
