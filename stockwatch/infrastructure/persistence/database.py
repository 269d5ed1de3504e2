"""
StockWatch – SQLAlchemy ORM Base Configuration
================================================
Configuración base para todos los modelos ORM y el manager de conexión.

Clean Architecture: Esta es la implementación concreta de la infraestructura
de base de datos. Los repositorios dependen de interfaces, no de esta clase.

Producción usa MySQL vía aiomysql. Si `db_url` está definido se usa tal
cual (p.ej. `sqlite+aiosqlite://` en tests).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from stockwatch.shared.config.settings import Settings
from stockwatch.shared.logging.logger import get_logger

logger = get_logger("database")

# ─── Naming Convention (para migraciones consistentes) ─────────────────────
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base declarativa para todos los modelos ORM."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class DatabaseManager:
    """
    Manager de conexión async.

    USO:
        db = DatabaseManager(settings)
        await db.initialize()  # En startup de FastAPI

        async with db.session() as session:
            result = await session.execute(...)

        await db.close()  # En shutdown de FastAPI
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or Settings()
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def database_url(self) -> str:
        """Construye URL de conexión desde settings."""
        s = self._settings
        if s.db_url:
            return s.db_url
        return (
            f"mysql+aiomysql://{s.db_user}:{s.db_password}"
            f"@{s.db_host}:{s.db_port}/{s.db_name}"
            f"?charset=utf8mb4"
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("DatabaseManager no inicializado. Llama a initialize() primero.")
        return self._engine

    async def initialize(self) -> None:
        """Inicializa el engine async y session factory."""
        if self._engine is not None:
            return

        s = self._settings
        url = self.database_url
        if url.startswith("sqlite"):
            # SQLite en memoria: una sola conexión compartida
            self._engine = create_async_engine(
                url,
                echo=s.db_echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            self._engine = create_async_engine(
                url,
                echo=s.db_echo,
                pool_size=s.db_pool_size,
                max_overflow=s.db_max_overflow,
                pool_recycle=3600,
                pool_pre_ping=True,
            )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("Base de datos inicializada (%s)", self._engine.url.get_backend_name())

    async def create_all(self) -> None:
        """Crea las tablas que falten. Para producción usar migraciones."""
        # Registro de modelos en Base.metadata
        from stockwatch.infrastructure.persistence import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Cierra el engine y todas las conexiones del pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Conexiones de base de datos cerradas")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Context manager async para sesiones. Rollback ante cualquier error."""
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager no inicializado. Llama a initialize() primero.")

        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
