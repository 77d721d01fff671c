"""
Configuration module for the Gabber realtime session SDK.

This module provides centralized configuration management for the SDK,
including constants, logging setup, and environment-based settings.

Key components:
- constants: Defines SDK-wide constants such as the logger name, data channel
  topics, REST endpoint paths and microphone capture parameters.
- logging_config: Provides a consistent logging infrastructure with support for
  console and file-based logging with rotation capabilities.
- settings: Loads API URL, token, timeout and log level from the environment
  (optionally seeded from a `.env` file).

Usage examples:
```python
from gabber.config.constants import LOGGER_NAME, TOPIC_MESSAGE
from gabber.config.logging_config import configure_logging
from gabber.config.settings import load_settings

logger = configure_logging()
settings = load_settings()
logger.info(f"Using Gabber API at {settings.api_url}")
```
"""

# Config module initialization
