"""Shared fixtures for web tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from lap_coach.web.app import app


@pytest.fixture
def client():
    """FastAPI test client."""
    with TestClient(app) as c:
        yield c


def make_comparison(
    distance: float = 100.0,
    time_delta: float = 0.1,
    segment_id: str | None = "s1",
    **kwargs,
) -> dict:
    """Build a comparison payload dict for POST /api/analyze."""
    payload = {"distance": distance, "time_delta": time_delta}
    if segment_id is not None:
        payload["segment"] = {"id": segment_id, "number": 1, "start": 0.0, "length": 500.0}
    payload.update(kwargs)
    return payload
