"""
Application services: Indicator Engine, Alert State Machine, Alert Scheduler.

Importar desde cada módulo (evita ciclos de import con use_cases/).
"""
