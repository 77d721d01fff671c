"""
Gabber - realtime voice-agent session SDK

This package lets a host application join a Gabber realtime voice-agent
session. It connects to the session's LiveKit room, tracks the remote agent's
conversational state, exchanges chat and transcript messages over the data
channel, and reports connection, microphone and volume state to a UI layer
through a listener interface.

Architecture Overview:
- Session: façade registered on the LiveKit room that normalizes room,
  participant and data channel events into a small state model
- SessionListener: callback interface implemented by the host application
- GabberApiClient: REST client used to start sessions and read resources
- MicrophoneCapture / TrackVolumeVisualizer: host audio glue

Key Components:
- audio: Microphone capture and volume visualisation
- config: Constants, logging setup and environment settings
- models: State enums, wire payloads and the transcript store
- services: Gabber REST API client
- session: The Session façade
- listener: The SessionListener interface

Getting Started:
```python
import asyncio
from gabber import Session, SessionListener, SessionStartRequest

class Printer(SessionListener):
    def messages_changed(self, messages):
        print(messages[-1].text)

async def main():
    listener = Printer()
    session = Session(listener, token="my-api-token")
    await session.connect(SessionStartRequest(persona="persona-id"))
    await session.set_microphone(True)
    await session.send_chat("Hello!")
    await asyncio.sleep(30)
    await session.disconnect()

asyncio.run(main())
```
"""

from gabber.listener import LoggingListener, SessionListener
from gabber.models import (
    AgentState,
    ConnectionDetails,
    ConnectionState,
    RealtimeSessionStartRequest,
    SessionMessage,
    SessionStartRequest,
)
from gabber.services.api_client import GabberApiClient, GabberApiError
from gabber.session import Session

__version__ = "0.1.0"
