"""
StockWatch – Main Application Entry Point
===========================================
Orquesta el pipeline de alertas: Candle Store → Indicator Engine →
Condition Evaluator → Alert State Machine → Notification Sink.

ARQUITECTURA DE ARRANQUE:
  1. Configurar logging
  2. Crear el contenedor (repositorios SQL o en memoria según db_enabled)
  3. FastAPI startup:
     a. Inicializar base de datos (si db_enabled)
     b. Iniciar AlertListener (consumidor de alert_fired)
     c. Inyectar dependencias en las rutas
     d. Iniciar AlertScheduler (si scheduler_enabled)
  4. FastAPI shutdown:
     a. Detener todo en orden inverso

FLUJO DE DATOS (un ciclo):
  AlertScheduler ─▸ EvaluateSymbolUseCase (por símbolo/timeframe)
       → IndicatorEngine → IndicatorSnapshot
       → ConditionEvaluator → EvaluationResult
       → AlertStateMachine.fire → AlertLog + AlertFired
       → EventBus(alert_fired) → AlertListener / workers de entrega

  uvicorn stockwatch.main:app --host 0.0.0.0 --port 8888
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockwatch.container import Container, init_container
from stockwatch.infrastructure.external.alert_listener import AlertListener
from stockwatch.presentation.api.routes import init_routes, router
from stockwatch.shared.logging.logger import get_logger, setup_logging

logger = get_logger("main")


def create_app(container: Optional[Container] = None) -> FastAPI:
    """Construye la app FastAPI sobre un contenedor (global por defecto)."""
    container = container or init_container()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle de la aplicación."""
        s = container.settings
        logger.info("=" * 60)
        logger.info("  StockWatch - Alert Pipeline")
        logger.info("  Timeframes: %s  (defecto: %s)",
                    ", ".join(s.available_timeframes), s.default_timeframe)
        logger.info("  Ventana: %d velas (mínimo %d)", s.candle_window_size, s.min_candles)
        logger.info("  Scheduler: cada %.0fs, %d workers, %s",
                    s.scheduler_interval_seconds, s.scheduler_max_workers,
                    "habilitado" if s.scheduler_enabled else "deshabilitado")
        logger.info("  Retención de historial: %d días", s.alert_log_retention_days)
        logger.info("=" * 60)

        # Inicializar base de datos (opcional)
        if s.db_enabled:
            db_manager = container.db_manager
            await db_manager.initialize()
            await db_manager.create_all()
            logger.info("  Database: conectada (%s)", db_manager.database_url.split("@")[-1])
        else:
            logger.info("  Database: Deshabilitada (db_enabled=False), repositorios en memoria")

        listener = AlertListener(container.event_publisher)
        await listener.start()
        app.state.alert_listener = listener

        init_routes(
            container.scheduler,
            container.alert_repository,
            container.alert_log_repository,
            snapshot_store=container.snapshot_store,
        )

        if s.scheduler_enabled:
            await container.scheduler.start()

        logger.info("✓ Todos los componentes iniciados correctamente")

        yield  # ← La app está corriendo aquí

        # ── SHUTDOWN ──
        logger.info("Iniciando shutdown...")
        await container.scheduler.stop()
        await listener.stop()

        if s.db_enabled:
            await container.db_manager.close()
            logger.info("  Database: Conexión cerrada")

        await container.event_publisher.unsubscribe_all()
        logger.info("✓ Shutdown completo")

    app = FastAPI(
        title="StockWatch - Alert Pipeline",
        description="Indicadores técnicos y evaluación periódica de alertas de usuario",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    # CORS para frontend local
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # En producción: restringir a dominios específicos
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


# ─── Logging ────────────────────────────────────────────────────────────
setup_logging()

app = create_app()
