"""
Store Workspace Configuration
Core settings for the materials store client
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    """Application settings"""

    # Application Info
    APP_NAME: str = "Materials Store Workspace"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Backend API
    API_BASE_URL: str = "http://localhost:8080/api"
    AUTH_TOKEN_HEADER: str = "X-Auth-Token"
    REQUEST_TIMEOUT: float = 30.0

    # Session persistence
    TOKEN_STORE_PATH: Path = Path.home() / ".storeapp" / "token"

    # Access control
    ADMIN_PORTAL_ROLES: List[str] = ["ADMIN", "CEO", "COO"]
    ELEVATED_ROLES: List[str] = ["ADMIN", "CEO", "COO", "PROCUREMENT_MANAGER", "PROJECT_HEAD"]
    PROJECT_SCOPED_ROLES: List[str] = ["PROJECT_MANAGER", "USER"]
    USER_ROLES: List[str] = [
        "ADMIN", "CEO", "COO", "PROCUREMENT_MANAGER", "PROJECT_HEAD", "PROJECT_MANAGER", "USER"
    ]

    # Paging
    LOOKUP_PAGE_SIZE: int = 50
    DEFAULT_PAGE_SIZE: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "storeapp.log"
    ERROR_LOG_FILE: str = "error.log"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    @field_validator("API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are appended to the base URL as-is"""
        return v.rstrip("/")

    @field_validator("TOKEN_STORE_PATH", mode="before")
    @classmethod
    def expand_token_path(cls, v):
        return Path(v).expanduser() if isinstance(v, str) else v


# Global settings instance
settings = Settings()
