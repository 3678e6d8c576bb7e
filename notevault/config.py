"""Configuration management using pydantic-settings."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database settings
    db_server: str = "localhost"
    db_name: str = "notevault"
    db_user: str = "notevault"
    db_password: str = ""
    db_port: int = 5432
    db_pool_size: int = 20
    db_max_overflow: int = 40
    sql_echo: bool = False

    # Full async URL, bypasses the db_* fields (e.g. "sqlite+aiosqlite:///./dev.db")
    database_url_override: Optional[str] = None

    # JWT settings
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 1440

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Role policy: "permissive" logs denied checks and lets them through (local development only)
    policy_mode: Literal["enforced", "permissive"] = "enforced"

    # Schema capabilities. None = detect once at startup by inspecting the database.
    schema_notes_trash: Optional[bool] = None
    schema_folders_trash: Optional[bool] = None
    schema_versions: Optional[bool] = None

    # Name shown for the placeholder version when no community version exists yet
    default_version_name: str = "v1.0"

    # Email notifications (registration workflow)
    email_enabled: bool = False
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_from_name: str = "Notevault"
    admin_email: str = ""

    @property
    def database_url(self) -> str:
        """Build PostgreSQL async connection string."""
        if self.database_url_override:
            return self.database_url_override
        from urllib.parse import quote_plus
        return (
            f"postgresql+asyncpg://{self.db_user}:{quote_plus(self.db_password)}"
            f"@{self.db_server}:{self.db_port}/{self.db_name}"
        )

    @property
    def sync_database_url(self) -> str:
        """Build PostgreSQL sync connection string for Alembic."""
        from urllib.parse import quote_plus
        return (
            f"postgresql+psycopg2://{self.db_user}:{quote_plus(self.db_password)}"
            f"@{self.db_server}:{self.db_port}/{self.db_name}"
        )


# Global settings instance
settings = Settings()
