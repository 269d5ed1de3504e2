"""Persistencia SQLAlchemy async (MySQL en producción, SQLite en tests)."""
from stockwatch.infrastructure.persistence.database import Base, DatabaseManager

__all__ = ["Base", "DatabaseManager"]
