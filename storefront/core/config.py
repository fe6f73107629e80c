"""Storefront Configuration"""

import os
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "The Lens"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    # Backend Configuration
    backend_url: str = "http://localhost:8001"
    backend_timeout: float = 30.0

    # Durable storage for carts (in-memory when unset)
    storage_dir: Optional[str] = None

    # Public assets; base path is detected from the location when unset
    public_dir: Optional[str] = None
    base_path: Optional[str] = None

    # Identity
    identity_private_key_path: Optional[str] = None
    identity_private_key: Optional[str] = None  # Can also be inline
    token_audience: str = "lens-backend"
    token_lifetime_seconds: int = 300

    # Phone verification
    resend_cooldown_seconds: int = 30
    resend_notice_seconds: float = 3.0
    verification_code_length: int = 4
    default_phone_prefix: str = "+91 "

    # Sessions
    session_max_age_hours: int = 24

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        env_prefix = "LENS_"
        case_sensitive = False
        extra = "ignore"

    def get_identity_private_key(self) -> Optional[str]:
        """Get identity private key from file or inline"""
        if self.identity_private_key:
            return self.identity_private_key

        if self.identity_private_key_path and os.path.exists(self.identity_private_key_path):
            with open(self.identity_private_key_path, "r") as f:
                return f.read()

        return None

    @property
    def durable_storage_configured(self) -> bool:
        return bool(self.storage_dir)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
