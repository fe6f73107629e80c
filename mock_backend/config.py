"""Mock Backend Configuration"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Mock backend settings loaded from environment"""

    host: str = "0.0.0.0"
    port: int = 8001
    debug: bool = True

    # Bearer tokens must carry this audience
    token_audience: str = "lens-backend"

    # Phone verification
    code_length: int = 4
    code_lifetime_seconds: int = 300
    code_max_attempts: int = 5

    # Principals granted the admin role at startup
    admin_principals: list[str] = []

    # Load the sample catalog at startup instead of waiting for initializeShop
    seed_catalog: bool = True

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        env_prefix = "LENS_BACKEND_"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
