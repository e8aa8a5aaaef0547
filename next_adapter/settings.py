"""Process-level settings loaded from the environment via pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class AdapterSettings(BaseSettings):
    """Settings that do not belong to a single build (``NEXT_ADAPTER_*``)."""

    model_config = SettingsConfigDict(
        env_prefix="NEXT_ADAPTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    log_json: bool = True
    # Bundle directory created under the framework's dist dir
    output_dir_name: str = "output"
