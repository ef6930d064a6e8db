"""Configuration management for the delay tracker API."""
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # Store Configuration
    delay_store: str = "supabase"  # "supabase" or "memory"
    supabase_url: str = "http://127.0.0.1:54321"
    supabase_key: str = ""
    delays_table: str = "delays"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = Field(5000, validation_alias=AliasChoices("api_port", "port"))
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: str = "*"

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Dashboard
    api_url: str = "http://localhost:5000/api"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated origins into list"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
