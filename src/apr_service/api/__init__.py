"""HTTP API layer -- FastAPI app factory and APR routes."""

from apr_service.api.app import create_app

__all__ = ["create_app"]
