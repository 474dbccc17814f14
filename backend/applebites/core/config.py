"""
config.py — Centralized Application Configuration Loader

Purpose:
- Define a single source of truth for application settings.
- Load and validate environment variables from `.env` or OS environment.

Settings groups:
- Database (assessment persistence)
- Logging
- LLM report writing (optional; template summaries are used without a key)
- GoHighLevel CRM export (REST API + tier webhooks)
- NAICS industry multiple table override

This module does NOT:
- Execute any DB connections.
- Make external API calls.
- Modify runtime settings.
"""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/applebites/core/config.py
# .env should be at: backend/.env
_CONFIG_DIR = Path(__file__).parent  # backend/applebites/core
_BACKEND_DIR = _CONFIG_DIR.parent.parent  # backend
_ENV_FILE = _BACKEND_DIR / ".env"

if _ENV_FILE.exists():
    _ENV_FILE_PATH = str(_ENV_FILE.resolve())
else:
    # Fallback: pydantic will look in CWD
    _ENV_FILE_PATH = ".env"


class Settings(BaseSettings):
    """
    Settings container for the valuation backend.

    Every field can be overridden through the environment, e.g.
    `DATABASE_URL=postgresql://... uvicorn applebites.main:app`.
    """

    # Database
    DATABASE_URL: str = Field(
        "sqlite:///./applebites.db",
        description="SQLAlchemy URL for assessment storage (postgresql:// is normalized to psycopg v3)",
    )

    # Logging
    LOG_LEVEL: str = Field(
        "INFO",
        description="Root log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    # LLM API - For narrative / executive summaries
    LLM_ENABLED: bool = Field(
        True,
        description="Use OpenAI for report summaries when a key is configured",
    )
    OPENAI_API_KEY_PATH: str = Field(
        "",
        description="Path to file containing OpenAI API key (alternative to OPENAI_API_KEY)",
    )
    OPENAI_API_KEY: str = Field(
        "",
        description="OpenAI API key for report writing (optional)",
    )
    OPENAI_MODEL: str = Field(
        "gpt-4o-mini",
        description="OpenAI model used for report summaries",
    )
    LLM_TIMEOUT_SECONDS: int = Field(
        30,
        description="Timeout for LLM API calls (seconds)",
    )

    @field_validator("OPENAI_API_KEY", "GHL_API_KEY", mode="before")
    @classmethod
    def strip_api_key(cls, v: Any) -> str:
        """Strip whitespace from API keys."""
        if isinstance(v, str):
            return v.strip()
        return v or ""

    @model_validator(mode="after")
    def load_api_key_from_file(self) -> "Settings":
        """Load API key from file if OPENAI_API_KEY_PATH is provided."""
        if self.OPENAI_API_KEY_PATH and not self.OPENAI_API_KEY:
            key_path = Path(self.OPENAI_API_KEY_PATH).expanduser()
            if key_path.exists():
                try:
                    with key_path.open("r", encoding="utf-8") as f:
                        self.OPENAI_API_KEY = f.read().strip()
                except OSError as e:
                    raise ValueError(f"Failed to read API key from {key_path}: {e}")
            else:
                raise ValueError(f"API key file not found: {key_path}")
        return self

    # GoHighLevel CRM
    GHL_API_KEY: str = Field(
        "",
        description="GoHighLevel private integration token (bearer auth)",
    )
    GHL_LOCATION_ID: str = Field(
        "",
        description="GoHighLevel location (sub-account) id",
    )
    GHL_BASE_URL: str = Field(
        "https://services.leadconnectorhq.com",
        description="GoHighLevel REST API base URL",
    )
    GHL_API_VERSION: str = Field(
        "2021-07-28",
        description="Value of the GoHighLevel `Version` header",
    )
    GHL_WEBHOOK_FREE_RESULTS: str = Field(
        "",
        description="Webhook trigger URL for free-tier results",
    )
    GHL_WEBHOOK_GROWTH_RESULTS: str = Field(
        "",
        description="Webhook trigger URL for growth-tier results",
    )
    GHL_WEBHOOK_CAPITAL_PURCHASE: str = Field(
        "",
        description="Webhook trigger URL for capital-tier purchases",
    )

    # CRM export behaviour
    CRM_EXPORT_ON_SUBMIT: bool = Field(
        False,
        description="Push each new assessment to the CRM after the response is sent",
    )
    CRM_TRANSPORT: str = Field(
        "webhook",
        description="Export transport: 'rest' or 'webhook'",
    )
    CRM_REQUEST_TIMEOUT_SECONDS: int = Field(
        30,
        description="HTTP timeout for CRM requests (seconds)",
    )
    CRM_MAX_RETRIES: int = Field(
        4,
        description="Maximum attempts per CRM request",
    )
    CRM_BACKOFF_BASE: float = Field(
        0.6,
        description="Exponential backoff base for CRM retry delays",
    )
    HOT_CAPITAL_MIN_VALUATION: float = Field(
        2_000_000,
        description="Mid estimate at or above which an A/B lead wanting follow-up is tagged hot-capital",
    )

    # NAICS
    NAICS_MULTIPLES_PATH: str = Field(
        "",
        description="Optional CSV replacing the bundled NAICS multiple table",
    )

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Singleton: every import shares this object.
settings = Settings()
