"""
Configuration Management for Household Budget

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Storage keys, the remote backup integration and the local server
all read their values from one place.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding one JSON file per storage key"
    )

    # Fixed keys of the persisted documents
    budget_key: str = Field(
        default="yaifinanzas_budget",
        description="Key of the budget document"
    )
    users_key: str = Field(
        default="yaifinanzas_users",
        description="Key of the user directory"
    )
    session_key: str = Field(
        default="yaifinanzas_session",
        description="Key of the signed-in user snapshots, by browser token"
    )
    theme_key: str = Field(
        default="yaifinanzas_theme",
        description="Key of the dark mode flag"
    )


class GoogleDriveSettings(BaseSettings):
    """Google Drive backup mirror configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_DRIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to an authorized-user token or service account JSON"
    )
    credentials_kind: str = Field(
        default="authorized_user",
        pattern="^(authorized_user|service_account)$",
        description="How to read the credentials file"
    )
    filename: str = Field(
        default="yaifinanzas_db.json",
        description="Name of the backup file inside the app data folder"
    )
    scopes: str = Field(
        default=(
            "https://www.googleapis.com/auth/drive.appdata,"
            "https://www.googleapis.com/auth/drive.file"
        ),
        description="Comma-separated OAuth scopes"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google Drive credentials file not found at {v}. "
                "Make sure it exists before syncing."
            )
        return v

    @property
    def scopes_list(self) -> list[str]:
        """Get scopes as a list."""
        return [scope.strip() for scope in self.scopes.split(",") if scope.strip()]


class ServerSettings(BaseSettings):
    """Local hosting configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    host: str = Field(
        default="localhost",
        description="Address the app binds to"
    )
    port: int = Field(
        default=3006,
        ge=1,
        le=65535,
        description="Port the app listens on"
    )
    base_path: str = Field(
        default="YAiFinanzas",
        description="URL prefix the app is served under"
    )

    @field_validator('base_path')
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        return v.strip("/")


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Currencies
    default_exchange_rate: float = Field(
        default=64.50,
        gt=0,
        description="Secondary currency units per 1 primary unit for new budgets"
    )
    primary_currency: str = Field(
        default="EUR",
        description="ISO code of the primary region currency"
    )
    secondary_currency: str = Field(
        default="DOP",
        description="ISO code of the secondary region currency"
    )
    primary_region_label: str = Field(
        default="Spain",
        description="Display name of the primary region"
    )
    secondary_region_label: str = Field(
        default="Dominican Republic",
        description="Display name of the secondary region"
    )

    # Seed account created when the user directory is empty
    seed_admin_username: str = Field(
        default="root",
        description="Username of the first-run administrator"
    )
    seed_admin_password: str = Field(
        default="28cddf6e77",
        description="Password of the first-run administrator"
    )
    password_hash_rounds: int = Field(
        default=12,
        ge=4,
        le=16,
        description="bcrypt cost factor"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_drive(self) -> GoogleDriveSettings:
        return GoogleDriveSettings()

    @property
    def server(self) -> ServerSettings:
        return ServerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings(settings: Optional[Settings] = None) -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Failed entries also get a "<name>_error" message.
    """
    results = {}

    settings = settings or get_settings()

    for name in ("storage", "google_drive", "server", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
