"""Atlas configuration management using pydantic-settings."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root so DATABASE_URL / ANTHROPIC_API_KEY are available
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

CONFIG_PATH = Path.home() / ".config/atlas/config.toml"


class GeneralSettings(BaseSettings):
    log_level: str = "INFO"


class DatabaseSettings(BaseSettings):
    """Backend selection. ``managed_url`` is only used in production."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")
    environment: str = Field(default="development", validation_alias=AliasChoices("environment", "ATLAS_ENV"))
    url: str = "sqlite+aiosqlite:///./atlas.db"
    managed_url: str = ""
    echo: bool = False


class AnthropicSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ANTHROPIC_")
    api_key: str = ""
    model: str = "claude-haiku-4-5-20251001"
    max_tokens: int = 2000
    max_tool_rounds: int = 8


class ApiSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ATLAS_API_")
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )


class Settings(BaseSettings):
    """Top-level settings assembled from subsections."""

    general: GeneralSettings = Field(default_factory=GeneralSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    anthropic: AnthropicSettings = Field(default_factory=AnthropicSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from TOML config file, falling back to defaults."""
        if config_path is None:
            config_path = CONFIG_PATH

        if config_path.exists():
            import toml

            data = toml.load(config_path)
            return cls(
                general=GeneralSettings(**data.get("general", {})),
                database=DatabaseSettings(**data.get("database", {})),
                anthropic=AnthropicSettings(**data.get("anthropic", {})),
                api=ApiSettings(**data.get("api", {})),
            )

        return cls()


# Module-level singleton
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
