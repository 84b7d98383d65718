from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration with environment variable support"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Administrator access
    admin_password: str = ""
    token_secret: Optional[str] = None
    token_ttl_days: int = 7

    # Storage
    storage_type: str = "mongodb"  # mongodb | inmemory
    mongodb_uri: Optional[str] = None
    mongodb_database: str = "lumen_sigma"
    mongodb_collection: str = "daily_content"

    # Public addresses
    api_base_url: str = "http://localhost:8000"
    public_base_url: str = ""

    # Content sources
    sources_config_file: str = "config/sources.yaml"

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/lumen_sigma.log"

    # Photo compression policy
    photo_max_width: int = 800
    photo_max_height: int = 600
    photo_max_bytes: int = 500 * 1024

    @property
    def signing_secret(self) -> str:
        """Token signing key, the admin password unless TOKEN_SECRET is set"""
        return self.token_secret or self.admin_password

    def validate_storage(self) -> None:
        """Raise ValueError when the storage settings cannot work; checked at startup"""
        if self.storage_type not in ("mongodb", "inmemory"):
            raise ValueError(f"Unknown STORAGE_TYPE: {self.storage_type}")
        if self.storage_type == "mongodb" and not self.mongodb_uri:
            raise ValueError("MONGODB_URI is required when STORAGE_TYPE=mongodb")


# Global settings instance
settings = Settings()
