"""
Pipeyard Backend - Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the entry point and the tests.
When:  Loaded once at module import time.

Every value has a development default that matches the usual local setup:
API on :3000, Vite dev server on :5173, `database.json` in the working
directory.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1, le=65535)

    # ── Upstream (front-end dev server) ───────────────────────────────────
    # What: Where every request that is not a pipes API call gets forwarded
    upstream_host: str = Field(default="localhost")
    upstream_port: int = Field(default=5173, ge=1, le=65535)

    # What: Upper bound for connecting to and reading from the upstream.
    # Applies per network operation, not to the whole streamed body.
    proxy_timeout: float = Field(default=30.0, gt=0, le=600)

    @property
    def upstream_url(self) -> str:
        """Base URL the forwarder sends requests to."""
        return f"http://{self.upstream_host}:{self.upstream_port}"

    # ── Durable storage ───────────────────────────────────────────────────
    # What: The JSON document holding the full pipe collection
    # Format: a pretty-printed JSON array, rewritten on every mutation
    database_path: str = Field(default="./database.json")

    # ── Logging ───────────────────────────────────────────────────────────
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # UPSTREAM_PORT and upstream_port both work
    }


# Singleton instance, imported by the entry point and the default app
settings = Settings()
