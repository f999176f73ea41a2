import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from ccbridge.core.logging import get_logger


__all__ = [
    "ConfigurationError",
    "ProviderSettings",
    "ServerSettings",
    "Settings",
    "find_toml_config_file",
    "get_settings",
]


logger = get_logger(__name__)

AdapterName = Literal["openai", "openai_responses", "passthrough"]


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class ServerSettings(BaseModel):
    """Server-specific configuration settings."""

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8080, ge=1, le=65535, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(sorted(valid))}"
            )
        return upper


class ProviderSettings(BaseModel):
    """One backend: which adapter speaks to it, where it lives and its credential."""

    adapter: AdapterName = Field(
        default="openai", description="Adapter used to translate for this backend"
    )
    base_url: str = Field(description="Backend base URL, e.g. https://api.openai.com/v1")
    api_key: SecretStr = Field(
        default=SecretStr(""), description="Bearer credential sent to the backend"
    )
    timeout: float = Field(
        default=600.0, gt=0, description="Default backend timeout in seconds"
    )
    strict_tools: bool = Field(
        default=False,
        description="Ask chat completions backends to enforce tool schemas strictly",
    )

    def adapter_options(self) -> dict[str, Any]:
        """Constructor options for this provider's adapter."""
        if self.adapter == "openai":
            return {"strict_tools": self.strict_tools}
        return {}


def find_toml_config_file() -> Path | None:
    """Return the first existing config file from the standard locations."""
    candidates = [Path.cwd() / ".ccbridge.toml", Path.cwd() / "ccbridge.toml"]
    xdg = os.environ.get("XDG_CONFIG_HOME")
    config_home = Path(xdg) if xdg else Path.home() / ".config"
    candidates.append(config_home / "ccbridge" / "config.toml")
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    """
    Configuration settings for the ccbridge gateway.

    Values come from TOML configuration files, a .env file and environment
    variables. Environment variables take precedence over the TOML file.
    TOML configuration files are looked up in the following order:
    1. .ccbridge.toml in current directory
    2. ccbridge.toml in current directory
    3. config.toml in XDG_CONFIG_HOME/ccbridge/
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Server configuration settings",
    )

    providers: dict[str, ProviderSettings] = Field(
        default_factory=dict,
        description="Backends keyed by provider name",
    )

    default_provider: str | None = Field(
        default=None,
        description="Provider used when no model route matches",
    )

    model_routes: dict[str, str] = Field(
        default_factory=dict,
        description="Exact model name to provider name routing table",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values passed in from the TOML file
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def resolve_provider(self, model: str | None) -> tuple[str, ProviderSettings]:
        """Resolve the provider name and settings serving a model.

        Raises:
            KeyError: If neither a model route nor the default provider matches
        """
        name = self.model_routes.get(model or "") or self.default_provider
        if name is None and len(self.providers) == 1:
            name = next(iter(self.providers))
        if name is None or name not in self.providers:
            raise KeyError(name or model or "")
        return name, self.providers[name]

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **kwargs: Any,
    ) -> "Settings":
        """Create Settings instance from configuration file."""
        if config_path is None:
            config_path_env = os.environ.get("CONFIG_FILE")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            config_data = cls.load_toml_config(config_path)
            logger.info(
                "config_file_loaded",
                path=str(config_path),
                category="config",
            )

        config_data.update(kwargs)
        return cls(**config_data)


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings, loaded once."""
    return Settings.from_config()
