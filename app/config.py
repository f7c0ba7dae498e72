from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from typing import Optional
from pydantic_settings import BaseSettings

# Project root (parent of app/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "support-intel-api"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    port: int = Field(default=8000, json_schema_extra={"env": "PORT"})

    # Remote row-per-customer store; unset means local-only persistence
    database_url: Optional[str] = Field(
        default=None, json_schema_extra={"env": "DATABASE_URL"}
    )

    # Local store (always written as a safety cache)
    local_store_path: str = Field(
        default=str(_PROJECT_ROOT / "data" / "support_ai_tickets_v2.json"),
        json_schema_extra={"env": "LOCAL_STORE_PATH"},
    )
    legacy_issues_path: str = Field(
        default=str(_PROJECT_ROOT / "data" / "support_ai_issues_v1.json"),
        json_schema_extra={"env": "LEGACY_ISSUES_PATH"},
    )

    # Inbox dedup bookkeeping
    inbox_cursor_path: str = Field(
        default=str(_PROJECT_ROOT / "data" / "inbox_cursor.json"),
        json_schema_extra={"env": "INBOX_CURSOR_PATH"},
    )
    inbox_seen_limit: int = Field(
        default=2500, json_schema_extra={"env": "INBOX_SEEN_LIMIT"}
    )
    inbox_hidden_limit: int = Field(
        default=5000, json_schema_extra={"env": "INBOX_HIDDEN_LIMIT"}
    )

    # LLM / LiteLLM
    llm_model: str = Field(
        default="gpt-4o-mini", json_schema_extra={"env": "LLM_MODEL"}
    )
    litellm_api_key: Optional[str] = Field(
        default=None, json_schema_extra={"env": "LITELLM_API_KEY"}
    )
    litellm_api_base: Optional[str] = Field(
        default=None, json_schema_extra={"env": "LITELLM_API_BASE"}
    )
    analysis_timeout_seconds: float = Field(
        default=60.0, gt=0, json_schema_extra={"env": "ANALYSIS_TIMEOUT_SECONDS"}
    )

    @property
    def remote_enabled(self) -> bool:
        """True when a remote ticket store is configured."""
        return bool(self.database_url)

    class ConfigDict:
        env_file = str(_PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra environment variables


def get_settings() -> Settings:
    """Get application settings from the environment."""
    return Settings()
