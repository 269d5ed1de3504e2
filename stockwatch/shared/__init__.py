"""
StockWatch – Shared Module
============================
Utilidades transversales usadas por todas las capas.

- config/: Settings y configuración
- logging/: Setup de logging

NOTA: Este módulo no contiene lógica de negocio.
"""

from stockwatch.shared.config.settings import settings
from stockwatch.shared.logging.logger import setup_logging, get_logger

__all__ = [
    "settings",
    "setup_logging",
    "get_logger",
]
