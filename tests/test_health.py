from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.api.routes import health as health_routes
from app.main import app


async def _ok_check() -> dict[str, str]:
    return {"status": "ok"}


def test_health_ok(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_llm_credentials", _ok_check)
    monkeypatch.setattr(health_routes, "_check_generation_strategies", _ok_check)

    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {
            "llm": {"status": "ok"},
            "strategies": {"status": "ok"},
        },
    }


def test_live_ok() -> None:
    client = TestClient(app)
    response = client.get("/live")
    assert response.status_code == 200
    assert response.json() == {"status": "live"}


def test_health_returns_503_when_llm_key_missing(monkeypatch) -> None:
    async def _missing_key() -> dict[str, str]:
        return {"status": "failed", "error": "llm_api_key_missing"}

    monkeypatch.setattr(health_routes, "_check_llm_credentials", _missing_key)
    monkeypatch.setattr(health_routes, "_check_generation_strategies", _ok_check)

    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["checks"]["llm"] == {"status": "failed", "error": "llm_api_key_missing"}


def test_ready_ok(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_llm_credentials", _ok_check)

    client = TestClient(app)
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"llm": {"status": "ok"}}}


def test_ready_ignores_strategy_check(monkeypatch) -> None:
    async def _failed_strategies() -> dict[str, str]:
        return {"status": "failed", "error": "strategies_unavailable"}

    monkeypatch.setattr(health_routes, "_check_llm_credentials", _ok_check)
    monkeypatch.setattr(health_routes, "_check_generation_strategies", _failed_strategies)

    client = TestClient(app)
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_llm_check_reports_missing_key(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "get_settings", lambda: SimpleNamespace(openai_api_key=""))

    result = await health_routes._check_llm_credentials()
    assert result == {"status": "failed", "error": "llm_api_key_missing"}


@pytest.mark.asyncio
async def test_llm_check_sanitizes_settings_errors(monkeypatch) -> None:
    def _broken_settings():
        raise RuntimeError("OPENAI_API_KEY=sk-secret")

    monkeypatch.setattr(health_routes, "get_settings", _broken_settings)

    result = await health_routes._check_llm_credentials()
    assert result == {"status": "failed", "error": "settings_unavailable"}


@pytest.mark.asyncio
async def test_strategy_check_lists_strategy_names(monkeypatch) -> None:
    monkeypatch.setattr(
        health_routes,
        "build_default_strategies",
        lambda settings: (SimpleNamespace(name="creative"), SimpleNamespace(name="fast")),
    )

    result = await health_routes._check_generation_strategies()
    assert result == {"status": "ok", "strategies": ["creative", "fast"]}
