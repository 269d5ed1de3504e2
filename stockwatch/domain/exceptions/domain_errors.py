"""
StockWatch – Domain Exceptions
================================
Excepciones específicas del dominio de alertas.

Ninguna de estas excepciones debe tumbar el proceso: el Scheduler las
captura en el límite de cada símbolo o de cada alerta.

JERARQUÍA:
    DomainError (base)
    ├── InsufficientDataError      → se salta el símbolo, se reintenta el próximo ciclo
    ├── CandleFetchTimeoutError    → fallo por símbolo
    ├── MalformedConditionError    → se salta y marca la alerta, nunca se borra
    ├── DeliveryFailureError       → se registra en AlertLog, no revierte estado
    ├── InvalidTransitionError     → disparo rechazado por la máquina de estados
    ├── AlertNotFoundError
    └── RegistryUnavailableError   → aborta solo el ciclo actual
"""

from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
        }


class InsufficientDataError(DomainError):
    """Error cuando no hay suficientes velas para un snapshot."""

    def __init__(self, message: str, required: int = None, available: int = None):
        super().__init__(message, code="INSUFFICIENT_DATA")
        self.required = required
        self.available = available

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"required": self.required, "available": self.available})
        return data


class CandleFetchTimeoutError(DomainError):
    """La lectura de velas superó el timeout configurado."""

    def __init__(self, message: str, symbol_id: int = None, timeout: float = None):
        super().__init__(message, code="CANDLE_FETCH_TIMEOUT")
        self.symbol_id = symbol_id
        self.timeout = timeout


class MalformedConditionError(DomainError):
    """La condición almacenada de una alerta no es válida."""

    def __init__(self, message: str, alert_id: Optional[int] = None, details: Any = None):
        super().__init__(message, code="MALFORMED_CONDITION")
        self.alert_id = alert_id
        self.details = details


class DeliveryFailureError(DomainError):
    """El Notification Sink no pudo aceptar el evento."""

    def __init__(self, message: str, channel: Optional[str] = None):
        super().__init__(message, code="DELIVERY_FAILURE")
        self.channel = channel


class InvalidTransitionError(DomainError):
    """Transición ilegal de la máquina de estados de una alerta."""

    def __init__(self, message: str, alert_id: Optional[int] = None, state: Optional[str] = None):
        super().__init__(message, code="INVALID_TRANSITION")
        self.alert_id = alert_id
        self.state = state


class AlertNotFoundError(DomainError):
    """No existe una alerta con ese id."""

    def __init__(self, alert_id: int):
        super().__init__(f"Alerta {alert_id} no encontrada", code="ALERT_NOT_FOUND")
        self.alert_id = alert_id


class RegistryUnavailableError(DomainError):
    """No se pudieron enumerar las alertas o símbolos vigilados."""

    def __init__(self, message: str):
        super().__init__(message, code="REGISTRY_UNAVAILABLE")
