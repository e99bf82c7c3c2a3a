"""CORS policy: any origin outside prod, the configured allow-list in prod."""

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from config.settings import Settings

ALLOW_HEADERS = ["Origin", "Content-Type", "Accept", "Authorization", "X-Request-ID"]
ALLOW_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def add_cors(app: FastAPI, settings: Settings) -> None:
    origins = settings.cors_origins if settings.is_prod else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=ALLOW_METHODS,
        allow_headers=ALLOW_HEADERS,
        expose_headers=["X-Request-ID"],
    )
