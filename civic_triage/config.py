"""
Civic Triage - Configuration Management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: str = ""

    # Tables
    tickets_table: str = "tickets"
    profiles_table: str = "profiles"

    # Workflow
    enforce_engineer_roster: bool = True
    reporting_timezone: str = "UTC"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )

    @property
    def supabase_configured(self) -> bool:
        """True when Supabase credentials are present"""
        return bool(self.supabase_url and (self.supabase_service_role_key or self.supabase_key))

    @property
    def supabase_api_key(self) -> str:
        """Service role key when available, otherwise the anon key"""
        return self.supabase_service_role_key or self.supabase_key


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
