"""
Momentum Insight Engine - Configuration
Database, narrative generator and insight lifecycle settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ==========================================
    # CORE SETTINGS
    # ==========================================
    env: str = "dev"  # dev | prod
    db_url: str = "sqlite+aiosqlite:///./momentum.db"
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # ==========================================
    # NARRATIVE GENERATOR (OpenAI)
    # ==========================================
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    narrative_timeout_seconds: float = 20.0

    # ==========================================
    # INSIGHT LIFECYCLE
    # ==========================================
    insight_ttl_days: int = 7

    class Config:
        env_file = ".env"


settings = Settings()
