"""
StockWatch – Logging configuration
====================================
Un único handler a stdout para todo el proceso (API + scheduler).
Todos los loggers del proyecto cuelgan del namespace `stockwatch.`,
así `stockwatch.alert_scheduler` o `stockwatch.infrastructure.*` se
pueden subir a DEBUG por separado.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-36s | %(message)s"

_QUIET_LOGGERS = ("sqlalchemy.engine", "aiomysql", "aiosqlite", "uvicorn.access")


def setup_logging(level: Optional[int] = None) -> None:
    """Configura el root logger. Sin `level`, DEBUG si settings.debug."""
    if level is None:
        from stockwatch.shared.config.settings import settings
        level = logging.DEBUG if settings.debug else logging.INFO

    root = logging.getLogger()
    if not any(getattr(h, "_stockwatch", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler._stockwatch = True
        root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"stockwatch.{name}")
