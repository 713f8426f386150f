"""
Environment configuration for the service desk.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application configuration
    APP_NAME: str = "Service Desk"
    API_VERSION: str = "v1"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = Field(default=["*"])

    # Database configuration
    DATABASE_URL: str = "sqlite:///./servicedesk.db"
    DATABASE_ECHO: bool = False

    # Reporting
    DEFAULT_TIMEZONE: str = "UTC"

    # Complaint rules
    MAX_COMPLAINT_PHOTOS: int = 5
    COMPLAINT_REQUIRE_MATERIALS_USED: bool = True
    DEFAULT_TECHNICIAN_PHONE: Optional[str] = None
    STORE_CODE_MAP: Dict[str, str] = Field(default_factory=dict)

    # File storage
    UPLOAD_DIR: str = "uploads"

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from a comma separated string"""
        if isinstance(v, str) and not v.startswith('['):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator('DEFAULT_TECHNICIAN_PHONE', mode='before')
    @classmethod
    def blank_phone_is_none(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('MAX_COMPLAINT_PHOTOS')
    @classmethod
    def validate_photo_ceiling(cls, v: int) -> int:
        if v < 0:
            raise ValueError("MAX_COMPLAINT_PHOTOS cannot be negative")
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
