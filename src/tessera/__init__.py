"""Tessera: tenant resolution and per-tenant runtime configuration."""

__version__ = "0.1.0"
