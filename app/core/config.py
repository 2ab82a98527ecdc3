from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")
    enable_openapi_docs: bool = Field(default=True, alias="ENABLE_OPENAPI_DOCS")

    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(default=None, alias="OPENAI_BASE_URL")
    openai_max_retries: int = Field(default=2, ge=0, alias="OPENAI_MAX_RETRIES")

    openai_model_creative: str = Field(default="gpt-4o", alias="OPENAI_MODEL_CREATIVE")
    openai_creative_temperature: float = Field(default=0.1, ge=0.0, le=2.0, alias="OPENAI_CREATIVE_TEMPERATURE")
    openai_creative_max_tokens: int = Field(default=4000, gt=0, alias="OPENAI_CREATIVE_MAX_TOKENS")
    openai_creative_timeout_seconds: float = Field(default=60.0, gt=0, alias="OPENAI_CREATIVE_TIMEOUT_SECONDS")

    openai_model_deterministic: str = Field(default="gpt-4o", alias="OPENAI_MODEL_DETERMINISTIC")
    openai_deterministic_max_tokens: int = Field(default=4000, gt=0, alias="OPENAI_DETERMINISTIC_MAX_TOKENS")
    openai_deterministic_timeout_seconds: float = Field(
        default=45.0,
        gt=0,
        alias="OPENAI_DETERMINISTIC_TIMEOUT_SECONDS",
    )

    openai_model_fast: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL_FAST")
    openai_fast_max_tokens: int = Field(default=3000, gt=0, alias="OPENAI_FAST_MAX_TOKENS")
    openai_fast_timeout_seconds: float = Field(default=30.0, gt=0, alias="OPENAI_FAST_TIMEOUT_SECONDS")

    quiz_question_count: int = Field(default=10, ge=1, le=50, alias="QUIZ_QUESTION_COUNT")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
