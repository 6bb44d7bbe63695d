"""Service configuration using Pydantic Settings."""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostgresStoreSettings(BaseModel):
    """Object store backed by a PostgreSQL table."""

    host: str = "localhost"
    port: int = 5432
    db_name: str
    username: str | None = None
    password: str | None = None
    pool_size: int = Field(default=10, ge=1)
    table: str = Field(default="image_files", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")


class SwiftSettings(BaseModel):
    """OpenStack Swift store using TempAuth (v1) credentials."""

    uri: str
    user: str
    key: str
    container: str = "images"
    timeout: float = 30.0


class Settings(BaseSettings):
    """Service settings loaded from environment variables or a JSON file."""

    model_config = SettingsConfigDict(
        env_prefix="RESIZER_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service
    app_name: str = "image-resizer"
    log_level: str = "INFO"
    address: str = "image.resizer"

    # Imaging
    default_quality: float = Field(default=0.8, gt=0, le=1)

    # Storage
    base_path: str = Field(default_factory=os.getcwd)
    # Optional backends stay raw here; the storage builder validates them
    # so a broken section only disables its own scheme.
    postgres: dict[str, Any] | None = None
    swift: dict[str, Any] | None = None

    # Redis
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 20
    redis_socket_timeout: float = 10.0

    # Queue
    consumer_group: str = "image_resizers"
    reply_ttl_seconds: int = 300
    block_ms: int = 5000

    @classmethod
    def from_file(cls, path: str | Path) -> "Settings":
        """Load settings from a JSON config file, environment filling the gaps."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        # Legacy module configs use dashed keys (base-path)
        return cls(**{key.replace("-", "_"): value for key, value in data.items()})


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
