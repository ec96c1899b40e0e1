"""
Configuration management for the meta store
"""

from pathlib import Path
from typing import Optional, Literal
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .repositories.sqlite.database import MEMORY_PATH
from .repositories.sqlite.schemas import validate_table_name


class Settings(BaseSettings):
    """Meta store settings loaded from environment variables"""

    # Addressing
    default_realm: str = "metastore"
    table_name: str = "meta"

    # Storage
    database_path: str = "./data/metastore.db"
    meta_repository: Literal["sqlite", "memory"] = "sqlite"

    # Development Settings
    log_level: str = "info"
    sqlite_echo: bool = False

    model_config = SettingsConfigDict(
        env_prefix="METASTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("default_realm")
    @classmethod
    def check_realm(cls, value: str) -> str:
        if len(value) > 128:
            raise ValueError("default_realm must be at most 128 characters")
        return value

    @field_validator("table_name")
    @classmethod
    def check_table_name(cls, value: str) -> str:
        return validate_table_name(value)

    @property
    def database_path_resolved(self) -> str:
        """Get resolved database path"""
        if self.database_path == MEMORY_PATH:
            return self.database_path
        return str(Path(self.database_path).resolve())


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton"""
    global _settings
    if _settings is None:
        # Ensure .env is loaded before creating settings
        load_dotenv_if_exists()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next get_settings() re-reads the environment"""
    global _settings
    _settings = None


def load_dotenv_if_exists() -> None:
    """Load .env file if it exists"""
    from dotenv import load_dotenv

    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)
    else:
        # Try to load from parent directories
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            env_path = parent / ".env"
            if env_path.exists():
                load_dotenv(env_path)
                break
