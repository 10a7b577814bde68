"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./ewa_admin.db"

    # Application
    APP_ENV: str = "development"
    API_V1_PREFIX: str = "/api"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # OpenAI (optional fallback for queries the rules can't classify)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_MAX_TOKENS: int = 1024

    # Penny data source: "snapshot" (JSON/CSV files) or "database"
    PENNY_DATA_SOURCE: str = "snapshot"
    PENNY_SNAPSHOT_PATH: str = "data/snapshot.json"
    PENNY_SNAPSHOT_TTL_SECONDS: int = 300

    # Penny answer shaping
    PENNY_TOP_N: int = 25
    PENNY_NAME_SCAN_CAP: int = 400
    PENNY_SUGGESTION_LIMIT: int = 5
    PENNY_FUZZY_MIN_SCORE: float = 75.0
    PENNY_FUZZY_CACHE_SIZE: int = 2048

    # Penny conversations (in-memory only)
    PENNY_CONTEXT_TTL_SECONDS: int = 1800
    PENNY_MAX_CONVERSATIONS: int = 10000

    # "patterns" keeps Penny fully deterministic; "openai" enables the LLM fallback
    PENNY_AI_MODE: str = "patterns"

    # CORS
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        if self.APP_ENV == "development":
            return ["*"]  # Allow all origins in development
        return [self.FRONTEND_URL, "http://localhost:3000"]

    @property
    def AI_FALLBACK_ENABLED(self) -> bool:
        return self.PENNY_AI_MODE == "openai" and bool(self.OPENAI_API_KEY)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True
    )


settings = Settings()
