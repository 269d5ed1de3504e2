"""
StockWatch – API Schemas (Pydantic)
=====================================
Schemas de respuesta de la API REST de solo lectura.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    service: str
    scheduler_running: bool


class AlertsResponse(BaseModel):
    user_id: int
    count: int
    alerts: List[Dict[str, Any]]


class AlertLogsResponse(BaseModel):
    count: int
    logs: List[Dict[str, Any]]
    alert_id: Optional[int] = None
    user_id: Optional[int] = None
