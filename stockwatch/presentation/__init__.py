"""Capa de presentación (HTTP)."""
