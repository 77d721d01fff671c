"""
Environment-based settings for the SDK.

Settings are read from the process environment, after loading a `.env` file
from the working directory when one exists.
"""

import os
from pathlib import Path
from typing import Optional

import dotenv
from pydantic import BaseModel, Field

from gabber.config.constants import DEFAULT_API_TIMEOUT, DEFAULT_API_URL


class Settings(BaseModel):
    """Resolved SDK settings."""

    api_url: str = Field(DEFAULT_API_URL, description="Base URL of the Gabber API")
    api_token: Optional[str] = Field(None, description="Bearer token for the Gabber API")
    timeout: float = Field(DEFAULT_API_TIMEOUT, gt=0, description="REST timeout in seconds")
    log_level: str = Field("INFO", description="Logging level name")


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_file: Optional path to a dotenv file; defaults to ./.env

    Returns:
        Settings populated from GABBER_API_URL, GABBER_API_TOKEN,
        GABBER_TIMEOUT and LOG_LEVEL
    """
    env_path = env_file or Path(".") / ".env"
    if env_path.exists():
        dotenv.load_dotenv(env_path)

    return Settings(
        api_url=os.getenv("GABBER_API_URL", DEFAULT_API_URL),
        api_token=os.getenv("GABBER_API_TOKEN") or None,
        timeout=float(os.getenv("GABBER_TIMEOUT", str(DEFAULT_API_TIMEOUT))),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
