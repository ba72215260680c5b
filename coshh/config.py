# coshh/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    database_url: str = Field(..., validation_alias="DATABASE_URL")

    openai_api_key: str | None = Field(None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(None, validation_alias="OPENAI_BASE_URL")
    llm_model: str = Field("gpt-4o-mini", validation_alias="LLM_MODEL")
    vision_model: str = Field("gpt-4o", validation_alias="VISION_MODEL")
    llm_timeout_seconds: float = Field(60.0, validation_alias="LLM_TIMEOUT_SECONDS")

    # "memory" keeps sessions in-process, "database" uses workflow_sessions
    workflow_state_backend: str = Field("memory", validation_alias="WORKFLOW_STATE_BACKEND")
    workflow_state_ttl_seconds: int = Field(86400, validation_alias="WORKFLOW_STATE_TTL_SECONDS")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
