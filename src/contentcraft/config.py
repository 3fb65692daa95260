"""Configuration loading from environment variables with validation."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Anchor all paths to the project root (three levels up from this file)
_PROJECT_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CONTENTCRAFT_",
        case_sensitive=False,
    )

    # Provider secrets (loaded separately, no prefix)
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    tavily_api_key: str = ""
    appwrite_api_key: str = ""

    # Completion provider
    completion_provider: str = "openai"  # openai | anthropic
    completion_base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-3.5-turbo"
    anthropic_model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 2048
    temperature: float = 0.7
    request_timeout: float = 30.0

    # Web search
    search_base_url: str = "https://api.tavily.com"
    search_depth: str = "advanced"
    search_max_results: int = 2

    # Document store / auth backend
    appwrite_endpoint: str = "https://cloud.appwrite.io/v1"
    appwrite_project_id: str = ""
    appwrite_database_id: str = ""
    appwrite_content_collection_id: str = ""

    # Content history
    content_backend: str = "appwrite"  # appwrite | sqlite
    db_path: Path = _PROJECT_DIR / "data" / "contentcraft.db"
    history_page_size: int = 10

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"


def get_settings() -> Settings:
    """Load settings from environment and .env file."""
    # Load .env from the project root regardless of cwd
    load_dotenv(_PROJECT_DIR / ".env")
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        tavily_api_key=os.getenv("TAVILY_API_KEY", ""),
        appwrite_api_key=os.getenv("APPWRITE_API_KEY", ""),
    )
