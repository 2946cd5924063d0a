"""
Settings for the garage data core
Supabase credentials, cache location and outreach defaults
"""

import logging
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Supabase project
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""

    # Local fallback cache (one JSON file per collection)
    GARAGE_CACHE_DIR: str = "./garage_cache"

    # WhatsApp outreach
    DEFAULT_COUNTRY_CODE: str = "91"
    SHOP_NAME: str = "KM Automobiles"

    # Other
    LOG_LEVEL: str = "INFO"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings with lazy initialization"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_logging(level: Optional[str] = None):
    """Set up root logging for scripts"""
    logging.basicConfig(
        level=(level or get_settings().LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
