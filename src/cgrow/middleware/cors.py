"""CORS middleware configuration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cgrow.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the CompanyGrow frontends; the leaderboard API is read-mostly."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-User-Id", "X-User-Role", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
    )
