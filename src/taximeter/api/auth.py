"""X-API-Key check applied to every meter route except /health."""

import os
import secrets

from fastapi import Header, HTTPException, Request


def verify_api_key(request: Request, x_api_key: str = Header(...)) -> None:
    """Compare the header against the key the app was created with, or API_KEY."""
    expected = getattr(request.app.state, "api_key", None) or os.getenv("API_KEY")

    if not expected:
        raise HTTPException(status_code=500, detail="API_KEY not configured")

    if not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(status_code=401, detail="Invalid API key")
