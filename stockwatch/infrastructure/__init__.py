"""Capa de infraestructura: persistencia, memoria y adaptadores externos."""
