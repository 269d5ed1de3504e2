"""
StockWatch – Application Layer
================================
Orquesta el dominio: puertos (ports/), casos de uso (use_cases/),
servicios con estado (services/, state/) y DTOs (dto/).
"""
