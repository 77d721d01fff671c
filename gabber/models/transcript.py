"""
Transcript state management for a realtime session.

This module provides the TranscriptManager class which keeps the ordered list
of transcript messages received from the agent. A record with the same
identity as an earlier one (message id plus agent flag) replaces it in place,
so partial transcriptions are refined without reordering the conversation.
"""

from typing import List

from gabber.models.session_schemas import SessionMessage


class TranscriptManager:
    """
    Ordered upsert-by-identity store of transcript messages.

    Order is the position in which an identity was first seen, not the
    message timestamp.
    """

    def __init__(self):
        """Initialize an empty transcript."""
        self._messages: List[SessionMessage] = []

    def upsert(self, message: SessionMessage) -> bool:
        """
        Insert a message or replace the earlier one with the same identity.

        Args:
            message: The decoded transcript record

        Returns:
            True if an existing entry was replaced, False if appended
        """
        for index, existing in enumerate(self._messages):
            if existing.identity == message.identity:
                self._messages[index] = message
                return True
        self._messages.append(message)
        return False

    def messages(self) -> List[SessionMessage]:
        """Return a copy of the current transcript."""
        return list(self._messages)

    def clear(self):
        self._messages.clear()

    def __len__(self):
        return len(self._messages)
