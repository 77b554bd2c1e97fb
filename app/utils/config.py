"""
Configuration management for the file ingestion service.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API Configuration
    api_port: int = 8000
    log_level: str = "INFO"
    api_title: str = "File Ingest Trigger API"
    api_version: str = "1.0.0"

    # Inbound adapter
    step_name: str = "file-ingest-inbound"
    watch_dir: Optional[Path] = None
    only_read_new_files: bool = True
    file_regex: Optional[str] = None
    watch_recursive: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def adapter_options(self) -> Dict[str, Any]:
        """Options mapping for ``InboundFileAdapter.configure``."""
        return {
            "name": self.step_name,
            "watch_dir": self.watch_dir.expanduser() if self.watch_dir else None,
            "only_read_new_files": self.only_read_new_files,
            "regex": self.file_regex,
            "recursive": self.watch_recursive,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
