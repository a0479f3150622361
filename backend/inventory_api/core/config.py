from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "dev"
    secret_key: str = "change_me_super_secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    database_url: str = "postgresql+psycopg2://inventory:inventory@db:5432/inventory"
    database_timeout_seconds: int = 30
    backend_cors_origins: str = "*"

    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    bcrypt_rounds: int = 12
    stock_update_max_attempts: int = 5
    log_level: str = "INFO"

    force_seed: bool = False
    default_admin_email: str = "admin@shop.com"
    default_admin_password: str = "admin123"

    port: int = 8000

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from a comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def should_seed(self) -> bool:
        return self.env == "dev" or self.force_seed

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
