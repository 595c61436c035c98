"""
API Interface - FastAPI REST API.

Endpoints: /health, /api, /api/stats, POST /api/search, POST /api/intent,
POST /api/chat.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
