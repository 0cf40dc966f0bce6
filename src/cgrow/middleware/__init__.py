"""Middleware registration."""

from fastapi import FastAPI

from cgrow.config import Settings
from cgrow.middleware.cors import setup_cors
from cgrow.middleware.error_handler import setup_error_handlers
from cgrow.middleware.logging import setup_logging
from cgrow.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and middleware. CORS is added last so it is outermost."""
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
