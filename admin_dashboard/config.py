"""Environment configuration management."""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    data_source: str = "sqlite"
    database_url: str = "sqlite:///./dashboard.db"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    request_timeout_seconds: float = 10.0
    dashboard_timezone: Optional[str] = None
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    def validate_data_source(self) -> bool:
        """Check that the selected data source has what it needs to connect."""
        source = self.data_source.lower()
        if source == "supabase":
            return bool(self.supabase_url) and bool(self.supabase_key)
        if source == "sqlite":
            return bool(self.database_url)
        return False


# Global settings instance
settings = Settings()
