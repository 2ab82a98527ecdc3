from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.generation.strategies import build_default_strategies

router = APIRouter(tags=["health"])


def _ok_check(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"status": "ok"}
    if extra:
        payload.update(extra)
    return payload


def _failed_check(error: str) -> dict[str, str]:
    return {"status": "failed", "error": error}


async def _check_llm_credentials() -> dict[str, Any]:
    try:
        if not get_settings().openai_api_key:
            return _failed_check("llm_api_key_missing")
        return _ok_check()
    except Exception:
        return _failed_check("settings_unavailable")


async def _check_generation_strategies() -> dict[str, Any]:
    try:
        strategies = build_default_strategies(get_settings())
        return _ok_check({"strategies": [strategy.name for strategy in strategies]})
    except Exception:
        return _failed_check("strategies_unavailable")


async def _collect_checks() -> dict[str, dict[str, Any]]:
    return {
        "llm": await _check_llm_credentials(),
        "strategies": await _check_generation_strategies(),
    }


def _all_checks_ok(checks: dict[str, dict[str, Any]]) -> bool:
    return all(check.get("status") == "ok" for check in checks.values())


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    checks = await _collect_checks()
    is_healthy = _all_checks_ok(checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if is_healthy else "degraded",
            "checks": checks,
        },
    )


@router.get("/ready")
async def ready() -> JSONResponse:
    checks = {"llm": await _check_llm_credentials()}
    is_ready = _all_checks_ok(checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if is_ready else "not_ready",
            "checks": checks,
        },
    )
