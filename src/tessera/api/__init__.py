"""Backend HTTP API (FastAPI).

The application factory lives in ``tessera.api.app``.
"""
