"""
Constants and configuration values used throughout the SDK.

This module defines constants that are used across different parts of the SDK,
providing a centralized location for topic names, endpoints and defaults and
making it easier to keep naming consistent throughout the codebase.
"""

# Logger name used throughout the SDK
LOGGER_NAME = "gabber"

# Default Gabber REST API endpoint
DEFAULT_API_URL = "https://api.gabber.dev"
DEFAULT_API_TIMEOUT = 30.0  # seconds

# REST API paths
API_PATH_SESSION_START = "/api/v1/session/start"
API_PATH_REALTIME_START = "/api/v1/realtime/start"
API_PATH_VOICE_LIST = "/api/v1/voice/list"
API_PATH_PERSONA_LIST = "/api/v1/persona/list"
API_PATH_SCENARIO_LIST = "/api/v1/scenario/list"
API_PATH_SESSION_MESSAGES = "/api/v1/session/{session_id}/messages"

# Data channel topics
TOPIC_MESSAGE = "message"
TOPIC_ERROR = "error"
TOPIC_CHAT_INPUT = "chat_input"

# Microphone capture parameters
MIC_SAMPLE_RATE = 48000
MIC_CHANNELS = 1
MIC_CHUNK = 480  # 10ms at 48kHz
MIC_TRACK_NAME = "microphone"

# Volume visualisation
VOLUME_BANDS = 5
