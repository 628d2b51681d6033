"""CORS for browser front ends calling the item API."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def configure_cors(app: FastAPI, allowed_origins: list[str]) -> None:
    """Let the item UI origins call the API from a browser.

    Credentials are never sent cross-origin; writes authenticate with the
    X-API-Key header, so it is the only non-standard request header
    allowed besides the request id.

    Args:
        app: FastAPI application instance.
        allowed_origins: Front-end origins, from ITEMSYNC_CORS_ORIGINS_RAW
            (defaults to the local dev server on port 3000).
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
