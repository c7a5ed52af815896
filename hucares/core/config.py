"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "hucares"
    debug: bool = False
    database_url: str = "sqlite:///./hucares.db"

    # JWT
    jwt_secret: str = "change-me-in-production-use-openssl-rand-hex-32"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days
    jwt_issuer: str = "hucares-api"
    jwt_audience: str = "hucares-app"

    bcrypt_rounds: int = 12

    # Week buckets are computed in this timezone, not the server locale
    week_timezone: str = "UTC"

    # Groups
    default_max_members: int = 20
    access_code_length: int = 8


settings = Settings()
