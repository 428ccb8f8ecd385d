"""Application configuration from environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


class Settings(BaseSettings):
    svgunmask_env: str = "development"
    svgunmask_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Step cap for the CLI, the API and the orchestration layer
    default_max_steps: int = 20

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def log_level(self) -> int:
        return getattr(logging, self.svgunmask_log_level.upper(), logging.INFO)


settings = Settings()
