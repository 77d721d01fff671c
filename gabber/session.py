"""
Realtime session façade for joining a Gabber voice-agent room.

This module implements the Session class, which registers as the sole listener
on a LiveKit room and turns its raw events into a small, stable state model
for the host application:

- connection state (not connected, connecting, waiting for agent, connected)
- agent state decoded from the agent participant's metadata
- microphone state mirrored from the local participant's publications
- the transcript, upserted from data channel packets sent by the agent

Room events are delivered on the asyncio loop that owns the room. Each handler
is synchronous and runs to completion before the next event is processed, so
no locking is needed. Outbound calls (connect, disconnect, set_microphone,
send_chat) are expected to be serialized by the host.
"""

import logging
import weakref
from typing import Awaitable, Callable, List, Optional

from livekit import rtc
from pydantic import ValidationError

from gabber.audio.microphone import MicrophoneCapture
from gabber.audio.volume import TrackVolumeVisualizer
from gabber.config.constants import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_API_URL,
    LOGGER_NAME,
    TOPIC_CHAT_INPUT,
    TOPIC_ERROR,
    TOPIC_MESSAGE,
)
from gabber.listener import SessionListener
from gabber.models.session_schemas import (
    AgentErrorMessage,
    AgentMetadata,
    AgentState,
    ChatInputMessage,
    ConnectionDetails,
    ConnectionState,
    ConnectOptions,
    RealtimeSessionStartRequest,
    SessionMessage,
    SessionStartRequest,
)
from gabber.models.transcript import TranscriptManager
from gabber.services.api_client import GabberApiClient

logger = logging.getLogger(LOGGER_NAME)

TokenGenerator = Callable[[], Awaitable[str]]


class Session:
    """
    A single conversation with a Gabber voice agent.

    The room and the REST client are created on first use. Pass `room` or
    `api_client` to supply pre-built collaborators instead.
    """

    def __init__(
        self,
        listener: SessionListener,
        token_generator: Optional[TokenGenerator] = None,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        api_timeout: float = DEFAULT_API_TIMEOUT,
        room: Optional[rtc.Room] = None,
        api_client: Optional[GabberApiClient] = None,
    ):
        """
        Initialize the session.

        Args:
            listener: Receives state notifications; held by weak reference
            token_generator: Coroutine returning a fresh API bearer token
            token: Static API bearer token, used when no generator is given
            api_url: Base URL of the Gabber API
            api_timeout: REST request timeout in seconds
            room: Optional pre-built LiveKit room
            api_client: Optional pre-built REST client
        """
        self._listener_ref = weakref.ref(listener)
        self._token_generator = token_generator
        self._token = token
        self.api_url = api_url
        self.api_timeout = api_timeout

        self._room: Optional[rtc.Room] = None
        if room is not None:
            self._attach_room(room)
        self._api_client = api_client

        self._connection_state = ConnectionState.NOT_CONNECTED
        self._agent_state = AgentState.WARMUP
        self._remaining_seconds: Optional[float] = None
        self._microphone_enabled = False
        self._transcript = TranscriptManager()

        self._agent_participant: Optional[rtc.RemoteParticipant] = None
        self._agent_track: Optional[rtc.RemoteAudioTrack] = None

        self._microphone: Optional[MicrophoneCapture] = None
        self._agent_volume = TrackVolumeVisualizer(self._on_agent_volume)
        self._user_volume = TrackVolumeVisualizer(self._on_user_volume)

    # ------------------------------------------------------------------
    # Public state
    # ------------------------------------------------------------------

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection_state

    @property
    def agent_state(self) -> AgentState:
        return self._agent_state

    @property
    def remaining_seconds(self) -> Optional[float]:
        return self._remaining_seconds

    @property
    def microphone_enabled(self) -> bool:
        return self._microphone_enabled

    @property
    def messages(self) -> List[SessionMessage]:
        return self._transcript.messages()

    @property
    def agent_participant(self) -> Optional[rtc.RemoteParticipant]:
        return self._agent_participant

    @property
    def agent_track(self) -> Optional[rtc.RemoteAudioTrack]:
        return self._agent_track

    @property
    def room(self) -> rtc.Room:
        """The LiveKit room, created on first access."""
        if self._room is None:
            self._attach_room(rtc.Room())
        return self._room

    # ------------------------------------------------------------------
    # Outbound actions
    # ------------------------------------------------------------------

    async def connect(self, opts: ConnectOptions) -> None:
        """
        Join the session room.

        Args:
            opts: ConnectionDetails to join directly, or a session start
                request to exchange the API token for connection details

        Raises:
            ValueError: If a start request is given without any API token
            GabberApiError: If the session start request fails
            Exception: Whatever the LiveKit room raises on connect failure
        """
        logger.info("Attempting to connect to LiveKit room...")
        self._reset_agent_binding()
        self._set_connection_state(ConnectionState.CONNECTING)

        try:
            details = await self._resolve_connection_details(opts)
        except Exception as e:
            logger.error(f"Failed to obtain connection details: {e}")
            self._set_connection_state(ConnectionState.NOT_CONNECTED)
            raise

        try:
            await self.room.connect(details.url, details.token)
        except Exception as e:
            logger.error(f"Failed to connect to LiveKit room with error: {e}")
            self._set_connection_state(ConnectionState.NOT_CONNECTED)
            raise
        self._on_room_connected()

    async def disconnect(self) -> None:
        """Leave the room and release audio and HTTP resources."""
        logger.info("Disconnecting from LiveKit room...")
        if self._room is not None:
            await self._room.disconnect()
        self._agent_volume.stop()
        self._user_volume.stop()
        if self._microphone is not None:
            await self._microphone.aclose()
            self._microphone = None
        if self._api_client is not None:
            await self._api_client.aclose()
        logger.info("Disconnected from LiveKit.")

    async def set_microphone(self, enabled: bool) -> None:
        """
        Enable or disable the local microphone.

        The first enable publishes a microphone track fed by the host input
        device; later calls mute or unmute that track.
        """
        logger.info(f"Setting microphone state to {enabled}...")
        publication = self._microphone_publication()
        if publication is None:
            if enabled:
                if self._microphone is None:
                    self._microphone = MicrophoneCapture()
                track = self._microphone.create_track()
                options = rtc.TrackPublishOptions(source=rtc.TrackSource.SOURCE_MICROPHONE)
                await self.room.local_participant.publish_track(track, options)
        elif enabled:
            publication.track.unmute()
        else:
            publication.track.mute()

        self._resolve_microphone_state()
        logger.info(f"Microphone state set to {enabled}.")

    async def send_chat(self, text: str) -> None:
        """Send a chat message to the agent on the chat_input topic."""
        message = ChatInputMessage(text=text)
        logger.info(f"Sending chat message: {text}")
        await self.room.local_participant.publish_data(
            message.model_dump_json(), reliable=True, topic=TOPIC_CHAT_INPUT
        )

    # ------------------------------------------------------------------
    # Connection details
    # ------------------------------------------------------------------

    async def _resolve_connection_details(self, opts: ConnectOptions) -> ConnectionDetails:
        if isinstance(opts, ConnectionDetails):
            return opts

        client = await self._get_api_client()
        if isinstance(opts, SessionStartRequest):
            response = await client.start_session(opts)
        elif isinstance(opts, RealtimeSessionStartRequest):
            response = await client.start_realtime_session(opts)
        else:
            raise TypeError(f"Unsupported connect options: {type(opts).__name__}")
        return response.connection_details

    async def _get_api_client(self) -> GabberApiClient:
        """Return the REST client, rebuilding it when the token changes."""
        if self._token_generator is not None:
            token = await self._token_generator()
        else:
            token = self._token

        if self._api_client is not None and (token is None or token == self._api_client.token):
            return self._api_client
        if not token:
            raise ValueError("A token or token_generator is required to start a session")

        if self._api_client is not None:
            await self._api_client.aclose()
        self._api_client = GabberApiClient(token, base_url=self.api_url, timeout=self.api_timeout)
        return self._api_client

    # ------------------------------------------------------------------
    # State and notification
    # ------------------------------------------------------------------

    def _notify(self, callback: str, *args) -> None:
        listener = self._listener_ref()
        if listener is None:
            logger.debug(f"Listener released, dropping {callback}")
            return
        try:
            getattr(listener, callback)(*args)
        except Exception:
            logger.exception(f"Listener callback {callback} failed")

    def _set_connection_state(self, state: ConnectionState) -> None:
        if state == self._connection_state:
            return
        self._connection_state = state
        logger.info(f"Connection state changed to: {state.value}")
        self._notify("connection_state_changed", state)

    def _set_agent_state(self, state: AgentState) -> None:
        self._agent_state = state
        logger.info(f"Agent state changed to: {state.value}")
        self._notify("agent_state_changed", state)

    def _set_remaining_seconds(self, seconds: float) -> None:
        self._remaining_seconds = seconds
        logger.debug(f"Remaining seconds updated: {seconds}")
        self._notify("remaining_seconds_changed", seconds)

    def _connected_state(self) -> ConnectionState:
        if self._agent_track is not None:
            return ConnectionState.CONNECTED
        return ConnectionState.WAITING_FOR_AGENT

    def _reset_agent_binding(self) -> None:
        self._agent_participant = None
        self._agent_track = None
        self._agent_volume.stop()

    # ------------------------------------------------------------------
    # Microphone
    # ------------------------------------------------------------------

    def _microphone_publication(self) -> Optional[rtc.LocalTrackPublication]:
        if not self.room.isconnected():
            return None
        for publication in self.room.local_participant.track_publications.values():
            if publication.source == rtc.TrackSource.SOURCE_MICROPHONE and publication.track is not None:
                return publication
        return None

    def _read_microphone_enabled(self) -> bool:
        publication = self._microphone_publication()
        if publication is None:
            return False
        return not publication.track.muted

    def _resolve_microphone_state(self) -> None:
        """Re-read the microphone flag from the room and notify on change."""
        enabled = self._read_microphone_enabled()
        if enabled == self._microphone_enabled:
            return
        self._microphone_enabled = enabled
        logger.info(f"Microphone state changed: {enabled}")
        if enabled:
            self._activate_audio_session()
        elif self._microphone is not None:
            self._microphone.stop()
        self._notify("microphone_state_changed", enabled)

    def _activate_audio_session(self) -> None:
        if self._microphone is None or self._microphone.active:
            return
        try:
            self._microphone.start()
        except (ImportError, OSError) as e:
            logger.error(f"Audio session configuration failed: {e}")

    def _on_agent_volume(self, bands: List[float], volume: float) -> None:
        self._notify("agent_volume_changed", bands, volume)

    def _on_user_volume(self, bands: List[float], volume: float) -> None:
        self._notify("user_volume_changed", bands, volume)

    # ------------------------------------------------------------------
    # Room events
    # ------------------------------------------------------------------

    def _attach_room(self, room: rtc.Room) -> None:
        self._room = room
        room.on("disconnected", self._on_disconnected)
        room.on("reconnecting", self._on_reconnecting)
        room.on("reconnected", self._on_reconnected)
        room.on("participant_metadata_changed", self._on_participant_metadata_changed)
        room.on("track_subscribed", self._on_track_subscribed)
        room.on("track_unsubscribed", self._on_track_unsubscribed)
        room.on("data_received", self._on_data_received)
        room.on("local_track_published", self._on_local_track_published)
        room.on("local_track_unpublished", self._on_local_track_unpublished)
        room.on("track_muted", self._on_track_mute_changed)
        room.on("track_unmuted", self._on_track_mute_changed)

    def _on_room_connected(self) -> None:
        # Room.connect() returns once joined; the room emits no "connected" event
        logger.info("LiveKit room connected successfully")
        self._resolve_microphone_state()
        self._set_connection_state(self._connected_state())

    def _on_disconnected(self, reason=None) -> None:
        logger.info(f"LiveKit room disconnected with reason: {reason}")
        self._set_connection_state(ConnectionState.NOT_CONNECTED)
        self._agent_volume.stop()
        self._user_volume.stop()
        self._resolve_microphone_state()

    def _on_reconnecting(self) -> None:
        logger.info("LiveKit room reconnecting")
        self._set_connection_state(ConnectionState.CONNECTING)

    def _on_reconnected(self) -> None:
        logger.info("LiveKit room reconnected")
        self._resolve_microphone_state()
        self._set_connection_state(self._connected_state())

    def _on_participant_metadata_changed(
        self, participant: rtc.Participant, old_metadata: str, metadata: str
    ) -> None:
        if participant.kind != rtc.ParticipantKind.PARTICIPANT_KIND_AGENT:
            return
        if not metadata:
            return

        try:
            agent_metadata = AgentMetadata.model_validate_json(metadata)
        except ValidationError as e:
            logger.error(f"Error decoding agent metadata: {e}")
            return

        if agent_metadata.remaining_seconds is not None:
            self._set_remaining_seconds(agent_metadata.remaining_seconds)
        self._set_agent_state(agent_metadata.agent_state)

    def _on_track_subscribed(
        self,
        track: rtc.Track,
        publication: rtc.RemoteTrackPublication,
        participant: rtc.RemoteParticipant,
    ) -> None:
        if track.kind != rtc.TrackKind.KIND_AUDIO:
            return
        if self._agent_participant is not None:
            logger.debug(f"Agent already bound, ignoring audio track {track.sid}")
            return
        if not isinstance(track, rtc.RemoteAudioTrack):
            return

        logger.info(f"Subscribed to agent track {track.sid} from {participant.identity}")
        self._agent_participant = participant
        self._agent_track = track
        self._agent_volume.set_track(track)
        self._set_connection_state(ConnectionState.CONNECTED)

    def _on_track_unsubscribed(
        self,
        track: rtc.Track,
        publication: rtc.RemoteTrackPublication,
        participant: rtc.RemoteParticipant,
    ) -> None:
        if self._agent_track is None or track.sid != self._agent_track.sid:
            logger.debug(f"Unsubscribed from unknown track {track.sid}")
            return

        logger.info(f"Agent track {track.sid} unsubscribed")
        self._reset_agent_binding()
        # The room reports disconnected during teardown; keep not_connected then
        if self.room.isconnected() and self._connection_state != ConnectionState.NOT_CONNECTED:
            self._set_connection_state(ConnectionState.WAITING_FOR_AGENT)

    def _on_data_received(self, packet: rtc.DataPacket) -> None:
        sender = packet.participant
        logger.debug(
            f"Received data for topic {packet.topic} from participant "
            f"{sender.identity if sender else None}"
        )
        if sender is None or self._agent_participant is None:
            return
        if sender.identity != self._agent_participant.identity:
            return

        if packet.topic == TOPIC_MESSAGE:
            self._handle_transcript(packet.data)
        elif packet.topic == TOPIC_ERROR:
            self._handle_agent_error(packet.data)
        else:
            logger.debug(f"Ignoring data on topic {packet.topic}")

    def _handle_transcript(self, data: bytes) -> None:
        try:
            message = SessionMessage.model_validate_json(data)
        except ValidationError as e:
            logger.error(f"Error decoding message: {e}")
            return
        self._transcript.upsert(message)
        self._notify("messages_changed", self._transcript.messages())

    def _handle_agent_error(self, data: bytes) -> None:
        try:
            error = AgentErrorMessage.model_validate_json(data)
        except ValidationError as e:
            logger.error(f"Error decoding agent error: {e}")
            return
        logger.warning(f"Agent error received: {error.message}")
        self._notify("agent_error", error.message)

    def _on_local_track_published(
        self, publication: rtc.LocalTrackPublication, track: rtc.Track
    ) -> None:
        logger.info(f"Local participant published track with sid: {publication.sid}")
        if publication.source == rtc.TrackSource.SOURCE_MICROPHONE:
            self._user_volume.set_track(track)
        self._resolve_microphone_state()

    def _on_local_track_unpublished(self, publication: rtc.LocalTrackPublication) -> None:
        logger.info(f"Local participant unpublished track with sid: {publication.sid}")
        if publication.sid == self._user_volume.track_sid:
            self._user_volume.stop()
        self._resolve_microphone_state()

    def _on_track_mute_changed(
        self, participant: rtc.Participant, publication: rtc.TrackPublication
    ) -> None:
        logger.info(
            f"Participant {participant.identity} track {publication.sid} "
            f"muted state changed to: {publication.muted}"
        )
        self._resolve_microphone_state()
