"""Configuration management using pydantic-settings"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database mode: 'supabase' or 'sqlite'
    db_mode: str = Field(default="sqlite", description="Database backend: 'supabase' or 'sqlite'")
    database_path: str = Field(default="./data/shokulab.db", description="Path to SQLite database")

    # Supabase settings
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_key: Optional[str] = Field(default=None, description="Supabase anon key")
    supabase_service_key: Optional[str] = Field(default=None, description="Supabase service role key")

    log_level: str = Field(default="INFO", description="Logging level")

    # Contract date / timestamps are rendered in this zone
    timezone: str = Field(default="Asia/Tokyo", description="IANA timezone for contract timestamps")

    contracts_dir: str = Field(default="./data/contracts", description="Directory for exported PDFs")

    # API server
    api_host: str = Field(default="127.0.0.1", description="API bind host")
    api_port: int = Field(default=8000, description="API bind port")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    """Get application settings"""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Set the root log level from settings (CLI and API entry points)."""
    import logging

    name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
