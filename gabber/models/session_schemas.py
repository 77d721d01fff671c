"""
Pydantic models and enums for the realtime session.

This module defines the state enums published to the host application and
the JSON payloads exchanged with the agent over participant metadata and the
LiveKit data channel, providing type validation for every decode.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Internet date-time with fractional seconds, e.g. 2024-10-22T10:15:30.123Z
ISO_TIMESTAMP_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d+(Z|[+-]\d{2}:\d{2})"
)


class ConnectionState(str, Enum):
    """Connection state of the session as seen by the host application."""
    NOT_CONNECTED = "not_connected"
    CONNECTING = "connecting"
    WAITING_FOR_AGENT = "waiting_for_agent"
    CONNECTED = "connected"


class AgentStateError(ValueError):
    """Raised when an agent state string is not recognised."""

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"unhandled agent state: {state!r}")


class AgentState(str, Enum):
    """Conversational phase of the remote agent."""
    WARMUP = "warmup"
    LISTENING = "listening"
    THINKING = "thinking"
    SPEAKING = "speaking"
    TIME_LIMIT_EXCEEDED = "time_limit_exceeded"

    @classmethod
    def from_string(cls, value: str) -> "AgentState":
        """
        Parse an agent state by exact string match.

        Raises:
            AgentStateError: If the value is not a known state
        """
        for state in cls:
            if state.value == value:
                return state
        raise AgentStateError(value)


# Participant metadata
class AgentMetadata(BaseModel):
    """Metadata JSON attached to the agent participant."""

    agent_state: AgentState = Field(..., description="Current conversational phase")
    remaining_seconds: Optional[float] = Field(
        None, description="Seconds left before the session time limit"
    )

    @field_validator("agent_state", mode="before")
    def validate_agent_state(cls, v):
        """Only accept exact state strings."""
        if isinstance(v, AgentState):
            return v
        if not isinstance(v, str):
            raise ValueError("agent_state must be a string")
        return AgentState.from_string(v)


# Data channel payloads
class SessionMessage(BaseModel):
    """Transcript record received on the "message" topic."""

    id: int = Field(..., description="Message identifier, unique per speaker")
    agent: bool = Field(..., description="True if spoken by the agent")
    final: bool = Field(..., description="True once the transcription is final")
    text: str = Field(..., description="Transcribed text")
    created_at: datetime = Field(..., description="When the utterance started")
    speaking_ended_at: Optional[datetime] = Field(
        None, description="When the utterance ended"
    )
    deleted_at: Optional[datetime] = Field(None, description="Deletion timestamp")
    session: Optional[str] = Field(None, description="Owning session identifier")

    @field_validator("created_at", "speaking_ended_at", "deleted_at", mode="before")
    def validate_iso_timestamp(cls, v):
        """Timestamps must be full date-times with fractional seconds and a zone."""
        if v is None or isinstance(v, datetime):
            return v
        if not isinstance(v, str) or not ISO_TIMESTAMP_PATTERN.fullmatch(v):
            raise ValueError("Expected date string to be ISO8601-formatted")
        return v

    @property
    def identity(self):
        """Upsert identity of the record."""
        return (self.id, self.agent)


class AgentErrorMessage(BaseModel):
    """Error payload received on the "error" topic."""

    message: str


class ChatInputMessage(BaseModel):
    """Chat payload published on the "chat_input" topic."""

    text: str


# Connection options
class ConnectionDetails(BaseModel):
    """LiveKit room URL and join token."""

    url: str
    token: str


class SessionStartRequest(BaseModel):
    """Body of the session start request."""

    model_config = ConfigDict(extra="allow")

    persona: Optional[str] = None
    scenario: Optional[str] = None
    voice_override: Optional[str] = None
    llm: Optional[str] = None
    time_limit_s: Optional[int] = None
    save_messages: Optional[bool] = None


class RealtimeSessionStartRequest(BaseModel):
    """Body of the realtime session start request."""

    config: Dict[str, Any] = Field(default_factory=dict)


class SessionStartResponse(BaseModel):
    """Response of either session start endpoint."""

    model_config = ConfigDict(extra="ignore")

    connection_details: ConnectionDetails


ConnectOptions = Union[ConnectionDetails, SessionStartRequest, RealtimeSessionStartRequest]
