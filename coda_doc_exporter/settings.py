"""Runtime configuration loaded from ``CODA_EXPORTER_*`` environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ExporterSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CODA_EXPORTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_url: str = "https://coda.io/apis/v1"
    request_timeout: float = Field(default=30.0, gt=0)
    config_path: Path = Field(default_factory=lambda: Path.home() / ".coda_doc_exporter.json")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Table listing is retried this many times with a fixed delay; 0 disables.
    table_list_retries: int = Field(default=0, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)

    server_name: Optional[str] = None
    server_port: Optional[int] = None


@lru_cache
def get_settings() -> ExporterSettings:
    return ExporterSettings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # httpx logs every request URL at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
