import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes.health import router as health_router
from app.api.routes.quiz import router as quiz_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.generation.errors import QuizGenerationError

logger = structlog.get_logger(__name__)


async def _quiz_generation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "quiz_generation_unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"detail": {"code": "E_QUIZ_INTERNAL"}})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)

    docs_enabled = settings.enable_openapi_docs
    app = FastAPI(
        title="Quiz Generation API",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.add_exception_handler(QuizGenerationError, _quiz_generation_error_handler)
    app.include_router(health_router)
    app.include_router(quiz_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
