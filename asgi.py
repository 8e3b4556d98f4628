"""
asgi.py -- ASGI entry point for AssetVault.

The application object is assembled in api/main.py; this module only gives
servers a stable import path.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
