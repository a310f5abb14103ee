"""Skoolar API - multi-tenant school management backend."""

__version__ = "1.0.0"
