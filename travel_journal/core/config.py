# travel_journal/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./travel_journal.db"

    # JWT signing
    access_token_secret: str
    access_token_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Where clients reach us; image URLs are built from this
    public_base_url: str = "http://localhost:8000"

    upload_dir: str = "uploads"
    assets_dir: str = "assets"
    placeholder_image: str = "TravelAgency.png"

    # "local" keeps uploads in upload_dir, "s3" pushes them to the bucket below
    storage_backend: str = "local"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"
    aws_s3_bucket_name: str = ""

    cors_origins: str = "*"
    log_level: str = "INFO"

    # Tell pydantic-settings to load from .env at project root
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore any extra stuff in .env
    )

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def placeholder_image_url(self) -> str:
        return f"{self.public_base_url.rstrip('/')}/assets/{self.placeholder_image}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
