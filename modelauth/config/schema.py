"""Configuration schema using Pydantic."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from modelauth.providers.models import ModelDescriptor


class LoggingConfig(BaseModel):
    """Logging configuration."""
    enabled: bool = True
    level: str = "INFO"
    file_enabled: bool = False
    file_path: str = "~/.modelauth/logs/modelauth.log"
    rotation: str = "10 MB"
    retention: str = "7 days"


class AuthSettings(BaseModel):
    """Credential profile storage and refresh policy."""
    profiles_path: str = "~/.modelauth/auth-profiles.json"
    refresh_buffer_ms: int = 5 * 60 * 1000  # refresh 5 minutes before expiry
    refresh_interval_seconds: int = 60
    refresh_timeout_seconds: float = 30.0
    login_timeout_seconds: float = 600.0

    @property
    def profiles_file(self) -> Path:
        return Path(self.profiles_path).expanduser()


class PluginsConfig(BaseModel):
    """Provider plugin discovery."""
    plugin_dir: str = "~/.modelauth/plugins"
    disabled: list[str] = Field(default_factory=list)

    @property
    def plugin_path(self) -> Path:
        return Path(self.plugin_dir).expanduser()


class ProviderModelsConfig(BaseModel):
    """Per-provider routing section, filled in by auth config patches.

    Secret-bearing fields hold symbolic references (``profile:<id>`` or an
    environment variable name), never the secret itself.
    """
    model_config = ConfigDict(extra="allow")

    base_url: str = ""
    api: str = "openai-completions"
    api_key: str | None = None
    auth: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    models: list[ModelDescriptor] = Field(default_factory=list)


class ModelsConfig(BaseModel):
    """Provider routing table."""
    providers: dict[str, ProviderModelsConfig] = Field(default_factory=dict)


class Config(BaseSettings):
    """Root configuration for modelauth."""
    model_config = SettingsConfigDict(env_prefix="MODELAUTH_", env_nested_delimiter="__")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)
    default_model: str | None = None

    def provider_section(self, provider_id: str) -> ProviderModelsConfig | None:
        return self.models.providers.get(provider_id)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
