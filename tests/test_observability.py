"""Tests for health, metrics, request logging and error handling."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from prometheus_client import REGISTRY

from src.funnel.core.monitoring import init_sentry


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_readiness_hides_database_error_detail(client):
    engine = MagicMock()
    engine.connect.side_effect = OSError("connection refused: db.internal:5432")
    with patch("src.funnel.api.v1.health.get_engine", return_value=engine):
        response = await client.get("/health/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "degraded", "checks": {"database": "error"}}
    assert "db.internal" not in response.text


@pytest.mark.asyncio
async def test_root_banner(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == "funnel-crm"


@pytest.mark.asyncio
async def test_responses_carry_request_id(client):
    response = await client.get("/health")
    assert len(response.headers["X-Request-ID"]) == 36


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_http_counters(client):
    await client.get("/health")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text


@pytest.mark.asyncio
async def test_http_counter_uses_route_template(client):
    before = REGISTRY.get_sample_value(
        "http_requests_total",
        {"method": "GET", "endpoint": "/api/deals/{deal_id}", "status_code": "503"},
    ) or 0.0
    await client.get("/api/deals/41")
    after = REGISTRY.get_sample_value(
        "http_requests_total",
        {"method": "GET", "endpoint": "/api/deals/{deal_id}", "status_code": "503"},
    )
    assert after == before + 1


@pytest.mark.asyncio
async def test_missing_repository_is_service_unavailable(client):
    response = await client.get("/api/inventory")
    assert response.status_code == 503
    assert response.json() == {"message": "Inventory not initialized"}


@pytest.mark.asyncio
async def test_unknown_route_uses_message_body(client):
    response = await client.get("/api/nothing-here")
    assert response.status_code == 404
    assert "message" in response.json()


@pytest.mark.asyncio
async def test_path_parameter_type_error_is_bad_request(client):
    response = await client.get("/api/deals/not-a-number")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request data"


def test_sentry_strips_request_bodies():
    with patch("src.funnel.core.monitoring.sentry_sdk.init") as sentry_init:
        init_sentry(dsn="https://key@sentry.example.com/1", environment="production")

    kwargs = sentry_init.call_args.kwargs
    assert kwargs["traces_sample_rate"] == 0.1
    assert kwargs["send_default_pii"] is False
    event = {"request": {"url": "/api/auth/login", "data": {"password": "x"}}}
    assert "data" not in kwargs["before_send"](event, {})["request"]
