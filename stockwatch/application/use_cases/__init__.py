"""Application use cases."""
from stockwatch.application.use_cases.evaluate_symbol_usecase import EvaluateSymbolUseCase
from stockwatch.application.use_cases.purge_alert_logs_usecase import PurgeAlertLogsUseCase

__all__ = [
    "EvaluateSymbolUseCase",
    "PurgeAlertLogsUseCase",
]
