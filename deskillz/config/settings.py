# deskillz/config/settings.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Dict, Optional


class SdkSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DESKILLZ_",
        case_sensitive=True,
        extra="ignore",
    )
    
    # API Configuration
    API_BASE_URL: str = "https://api.deskillz.games"
    API_PREFIX: str = "/api/v1"
    REQUEST_TIMEOUT_MS: int = Field(default=120_000, gt=0)
    REFRESH_TIMEOUT_MS: int = Field(default=30_000, gt=0)
    CUSTOM_HEADERS: Dict[str, str] = {}
    
    # Logging verbosity only, never alters control flow
    DEBUG: bool = False
    
    # Game / Score Signing Configuration
    GAME_ID: Optional[str] = None
    API_SECRET: Optional[str] = None  # Load from secure storage, never hardcode
    
    # Token Storage Configuration
    TOKEN_KEY_PREFIX: str = "deskillz_"
    
    # Redis Configuration (optional token persistence)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    
    @field_validator("API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slashes so paths never produce '//'"""
        return v.rstrip("/")
    
    @property
    def api_url(self) -> str:
        """Base URL all relative request paths are joined to"""
        return f"{self.API_BASE_URL}{self.API_PREFIX}"
    
    @property
    def refresh_url(self) -> str:
        return f"{self.api_url}/auth/refresh"
    
    @property
    def timeout_seconds(self) -> float:
        return self.REQUEST_TIMEOUT_MS / 1000
    
    @property
    def refresh_timeout_seconds(self) -> float:
        return self.REFRESH_TIMEOUT_MS / 1000
