"""
Models module for data structures and state management in the Gabber SDK.

This module provides structured data models and state management classes,
defining the payloads exchanged with the voice agent and the Gabber REST API.

Key components:
- session_schemas: State enums published to the host (ConnectionState,
  AgentState) and Pydantic models for participant metadata, data channel
  payloads and connection options.
- api_schemas: Pydantic models for the REST list endpoints, including the
  generic PaginatedResponse.
- transcript: Ordered transcript store that upserts records by identity.

Usage examples:
```python
from gabber.models import AgentMetadata, SessionMessage, TranscriptManager

metadata = AgentMetadata.model_validate_json('{"agent_state": "thinking"}')

transcript = TranscriptManager()
transcript.upsert(SessionMessage.model_validate_json(raw_bytes))
print(transcript.messages())
```
"""

from gabber.models.api_schemas import (
    HistoryMessage,
    PaginatedResponse,
    Persona,
    Scenario,
    Voice,
)
from gabber.models.session_schemas import (
    AgentErrorMessage,
    AgentMetadata,
    AgentState,
    AgentStateError,
    ChatInputMessage,
    ConnectionDetails,
    ConnectionState,
    ConnectOptions,
    RealtimeSessionStartRequest,
    SessionMessage,
    SessionStartRequest,
    SessionStartResponse,
)
from gabber.models.transcript import TranscriptManager
