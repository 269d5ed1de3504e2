"""
Infrastructure Models Package.

Modelos ORM de SQLAlchemy. Representan la estructura de la base de
datos, NO las entidades de dominio.
"""

from stockwatch.infrastructure.persistence.models.alert import AlertModel
from stockwatch.infrastructure.persistence.models.alert_log import AlertLogModel
from stockwatch.infrastructure.persistence.models.candle import CandleModel
from stockwatch.infrastructure.persistence.models.symbol import SymbolModel
from stockwatch.infrastructure.persistence.models.user_symbol import UserSymbolModel

__all__ = [
    "AlertModel",
    "AlertLogModel",
    "CandleModel",
    "SymbolModel",
    "UserSymbolModel",
]
