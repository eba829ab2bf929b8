from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = Field("sqlite:///academia.db", description="SQLAlchemy database URL")
    database_ssl: bool | None = Field(None, description="Force SSL on PostgreSQL connections")
    session_secret: str = Field("academia-secret-2024", description="Key used to sign session cookies")
    session_cookie_name: str = Field("academia.sid")
    session_max_age_seconds: int = Field(24 * 60 * 60)
    host: str = Field("0.0.0.0")
    port: int = Field(3000)
    production: bool = Field(False)
    bcrypt_rounds: int = Field(10, ge=4, le=31)
    default_admin_username: str = Field("admin")
    default_admin_password: str = Field("admin123")
    api_title: str = Field("Academia API")


settings = Settings()
