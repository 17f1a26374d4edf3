"""Tests for POST /api/analyze."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from tests.web.conftest import make_comparison


def test_analyze_empty_list_returns_zeroed_summary(client):
    resp = client.post("/api/analyze", json={"comparisons": []})
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_comparisons"] == 0
    assert data["recommendations"] == []
    assert data["throttle"]["problematic_sections"] == 0


def test_analyze_summary(client):
    payload = {
        "comparisons": [
            make_comparison(time_delta=0.5, speed_delta=-5.0),
            make_comparison(time_delta=-0.2, speed_delta=3.0),
            make_comparison(
                time_delta=0.8,
                speed_delta=-8.0,
                improvement_areas=[
                    {
                        "category": "braking_point",
                        "severity": 80.0,
                        "potential_gain": 0.3,
                        "distance_range": [100.0, 200.0],
                        "message": "Brake later",
                    }
                ],
            ),
        ]
    }
    resp = client.post("/api/analyze", json=payload)

    assert resp.status_code == 200
    data = resp.json()
    assert data["total_comparisons"] == 3
    assert data["total_time_lost"] == pytest.approx(1.3)
    assert data["max_speed_deficit"] == pytest.approx(-8.0)
    assert data["improvement_areas"][0]["category"] == "braking_point"
    assert data["segment_consistency"][0]["segment_id"] == "s1"
    assert "Priority improvement: Braking Point - potential gain 0.30s" in data["recommendations"]


def test_analyze_invalid_payload_returns_422(client):
    resp = client.post("/api/analyze", json={"comparisons": [{"distance": 1.0}]})
    assert resp.status_code == 422


def test_analyze_rejects_out_of_range_confidence(client):
    resp = client.post(
        "/api/analyze", json={"comparisons": [make_comparison(confidence=150.0)]}
    )
    assert resp.status_code == 422


def test_analyze_conflicting_segments_returns_422(client):
    second = make_comparison()
    second["segment"] = {"id": "s1", "number": 1, "start": 10.0, "length": 500.0}
    resp = client.post("/api/analyze", json={"comparisons": [make_comparison(), second]})
    assert resp.status_code == 422
    assert "conflicting" in resp.json()["detail"]


def test_analyze_unexpected_error_returns_500(client):
    mock_svc = MagicMock()
    mock_svc.summarise.side_effect = RuntimeError("boom")
    with patch("lap_coach.web.app.AnalysisService", return_value=mock_svc):
        resp = client.post("/api/analyze", json={"comparisons": []})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "boom"
