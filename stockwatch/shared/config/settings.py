"""
StockWatch – Settings (Pydantic BaseSettings)
=============================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional


class Settings(BaseSettings):
    # ─── Scheduler ──────────────────────────────────────────────────────
    scheduler_enabled: bool = Field(
        default=True, description="Arrancar el ciclo periódico de evaluación al startup"
    )
    scheduler_interval_seconds: float = Field(
        default=60.0, description="Intervalo (seg) entre ciclos de evaluación"
    )
    scheduler_max_workers: int = Field(
        default=8, description="Símbolos evaluados en paralelo dentro de un ciclo"
    )

    # ─── Indicadores ────────────────────────────────────────────────────
    available_timeframes: List[str] = Field(
        default=["1m", "5m", "15m", "30m", "1h", "4h", "1d", "1w"],
        description="Marcos temporales soportados por el Candle Store",
    )
    default_timeframe: str = Field(
        default="5m",
        description="Timeframe por defecto de alertas y símbolos vigilados",
    )
    candle_window_size: int = Field(
        default=200, description="Velas finales usadas para calcular un snapshot"
    )
    min_candles: int = Field(
        default=20, description="Mínimo de velas para producir un snapshot"
    )
    candle_lookback_factor: float = Field(
        default=3.0,
        description="Multiplicador del rango temporal pedido al Candle Store (huecos de mercado)",
    )
    candle_fetch_timeout_seconds: float = Field(
        default=10.0, description="Timeout (seg) de lectura de velas por símbolo"
    )

    # ─── Alertas ────────────────────────────────────────────────────────
    default_cooldown_minutes: int = Field(
        default=60, description="Cooldown por defecto entre disparos de una alerta"
    )
    default_notification_channels: List[str] = Field(
        default=["sms"], description="Canales de notificación por defecto"
    )
    notification_timeout_seconds: float = Field(
        default=5.0, description="Timeout (seg) para emitir la notificación"
    )
    alert_log_retention_days: int = Field(
        default=90, description="Días de historial de disparos a conservar (0 = sin límite)"
    )
    retention_check_interval_hours: float = Field(
        default=24.0, description="Cada cuántas horas se purga el historial"
    )

    # ─── Event Bus ──────────────────────────────────────────────────────
    event_bus_max_queue_size: int = Field(
        default=10_000,
        description="Tamaño máximo de cola del Event Bus para contrapresión",
    )

    # ─── Server ─────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8888)
    debug: bool = Field(default=False)

    # ─── Database ───────────────────────────────────────────────────────
    db_host: str = Field(default="localhost", description="MySQL host")
    db_port: int = Field(default=3306, description="MySQL port")
    db_user: str = Field(default="stockwatch", description="MySQL username")
    db_password: str = Field(default="stockwatch_secret", description="MySQL password")
    db_name: str = Field(default="stockwatch", description="MySQL database name")
    db_url: Optional[str] = Field(
        default=None, description="URL completa (sobrescribe MySQL, p.ej. sqlite+aiosqlite://)"
    )
    db_echo: bool = Field(default=False, description="Loguear queries SQL (debug)")
    db_pool_size: int = Field(default=5, description="Conexiones en el pool")
    db_max_overflow: int = Field(default=10, description="Conexiones extra en picos")
    db_enabled: bool = Field(default=False, description="Habilitar persistencia SQL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton global – se importa donde se necesite
settings = Settings()
