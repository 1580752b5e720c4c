"""Application configuration using pydantic-settings.

All runtime knobs live here with explicit types and defaults. Every field is
overridable via an environment variable of the same name (case-insensitive).

Notes:
- MANAGEMENT_KEY_MODE decides how requested dependencies are matched against
  the managed catalog. ``coordinate`` matches on groupId:artifactId only;
  ``maven`` uses Maven's own groupId:artifactId:type[:classifier] key.
- FAIL_ON_UNMANAGED only changes what the caller does after the whole batch
  has been resolved and logged; resolution itself never stops early.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Top-level application settings.

    Env var precedence follows pydantic-settings rules, e.g.
    `MANAGEMENT_KEY_MODE=maven` or `IMPORT_BOMS=true`.
    """

    # Repository used to fetch imported BOMs
    MAVEN_REPOSITORY_BASE_URL: str = "https://repo1.maven.org/maven2"

    # HTTP behavior
    HTTP_TIMEOUT_SECONDS: int = Field(default=10, ge=1)
    HTTP_MAX_RETRIES: int = Field(default=2, ge=0)
    HTTP_CONCURRENCY: int = Field(default=4, ge=1)
    MAX_POM_BYTES: int = Field(default=2_000_000, ge=1)  # 2 MB

    # Resolution
    MANAGEMENT_KEY_MODE: Literal["coordinate", "maven"] = "coordinate"
    PLUGIN_ARTIFACT_ID: str = Field(default="edm-maven-plugin", min_length=1)
    IMPORT_BOMS: bool = False
    FAIL_ON_UNMANAGED: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)


__all__ = ["Settings"]
