"""
Listener interface through which a Session reports state to the host.

Subclass SessionListener and override the callbacks you need; every callback
has a no-op default. The session holds its listener by weak reference, so the
host must keep the listener alive for as long as it wants notifications.
"""

import logging
from typing import List

from gabber.config.constants import LOGGER_NAME
from gabber.models.session_schemas import AgentState, ConnectionState, SessionMessage

logger = logging.getLogger(LOGGER_NAME)


class SessionListener:
    """Receives normalized session events. Callbacks return nothing."""

    def connection_state_changed(self, state: ConnectionState) -> None:
        pass

    def messages_changed(self, messages: List[SessionMessage]) -> None:
        """Called with the full transcript, not a delta."""

    def microphone_state_changed(self, enabled: bool) -> None:
        pass

    def agent_state_changed(self, state: AgentState) -> None:
        pass

    def agent_volume_changed(self, bands: List[float], volume: float) -> None:
        pass

    def user_volume_changed(self, bands: List[float], volume: float) -> None:
        pass

    def remaining_seconds_changed(self, seconds: float) -> None:
        pass

    def agent_error(self, message: str) -> None:
        pass


class LoggingListener(SessionListener):
    """Listener that writes every event to the SDK logger."""

    def connection_state_changed(self, state: ConnectionState) -> None:
        logger.info(f"Connection state: {state.value}")

    def messages_changed(self, messages: List[SessionMessage]) -> None:
        if not messages:
            return
        latest = messages[-1]
        speaker = "agent" if latest.agent else "user"
        marker = "" if latest.final else " ..."
        logger.info(f"[{speaker}] {latest.text}{marker}")

    def microphone_state_changed(self, enabled: bool) -> None:
        logger.info(f"Microphone enabled: {enabled}")

    def agent_state_changed(self, state: AgentState) -> None:
        logger.info(f"Agent state: {state.value}")

    def remaining_seconds_changed(self, seconds: float) -> None:
        logger.info(f"Remaining seconds: {seconds:.1f}")

    def agent_error(self, message: str) -> None:
        logger.error(f"Agent error: {message}")
