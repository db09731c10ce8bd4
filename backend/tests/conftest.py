import os
import tempfile
from datetime import datetime, timedelta, timezone

# Settings are read once and cached, so the environment must be in place first
os.environ["JWT_SECRET"] = "test-secret-key-for-unit-tests-only"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["APP_DEBUG"] = "false"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="wildlife-park-logs-")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from app.rate_limit import limiter
from app.routers import access as access_router
from app.routers import bookings as bookings_router


def make_token(sub: str = "user-1", role: str | None = "tourist", expires_in: int = 3600, **claims) -> str:
    payload = {"sub": sub, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    if role is not None:
        payload["role"] = role
    payload.update(claims)
    return jwt.encode(payload, os.environ["JWT_SECRET"], algorithm="HS256")


def auth_header(**kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


@pytest.fixture
def api_client():
    """Routers that never touch the database, mounted on a bare app."""
    app = FastAPI()
    app.state.limiter = limiter
    app.include_router(access_router.router)
    app.include_router(bookings_router.router)
    return TestClient(app)
