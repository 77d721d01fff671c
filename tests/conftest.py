import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from livekit import rtc

from gabber.listener import SessionListener
from gabber.session import Session


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


def emit(room, event, *args):
    """Invoke the handler a session registered on a mocked room."""
    for registered in room.on.call_args_list:
        if registered.args[0] == event:
            registered.args[1](*args)
            return
    raise AssertionError(f"No handler registered for {event}")


def mark_connected(session):
    """Apply the state derivation a completed Room.connect() triggers."""
    session._on_room_connected()


@pytest.fixture
def room():
    """A mocked LiveKit room with a connected local participant."""
    room = MagicMock()
    room.connect = AsyncMock()
    room.disconnect = AsyncMock()
    room.isconnected.return_value = True
    room.local_participant.track_publications = {}
    room.local_participant.publish_track = AsyncMock()
    room.local_participant.publish_data = AsyncMock()
    return room


@pytest.fixture
def listener():
    return MagicMock(spec=SessionListener)


@pytest.fixture
def session(listener, room):
    """A Session wired to the mocked room with audio helpers stubbed out."""
    with patch("gabber.session.TrackVolumeVisualizer", side_effect=lambda *a, **kw: MagicMock()), \
            patch("gabber.session.MicrophoneCapture") as microphone_cls:
        microphone_cls.return_value.active = False
        microphone_cls.return_value.aclose = AsyncMock()
        yield Session(listener, token="api-token", room=room)


def make_agent_participant(identity="agent-1"):
    participant = MagicMock()
    participant.identity = identity
    participant.kind = rtc.ParticipantKind.PARTICIPANT_KIND_AGENT
    return participant


def make_human_participant(identity="human-1"):
    participant = MagicMock()
    participant.identity = identity
    participant.kind = rtc.ParticipantKind.PARTICIPANT_KIND_STANDARD
    return participant


def make_audio_track(sid="TR_agent"):
    track = MagicMock(spec=rtc.RemoteAudioTrack)
    track.sid = sid
    track.kind = rtc.TrackKind.KIND_AUDIO
    return track


def make_video_track(sid="TR_video"):
    track = MagicMock(spec=rtc.RemoteVideoTrack)
    track.sid = sid
    track.kind = rtc.TrackKind.KIND_VIDEO
    return track


def make_packet(data, topic, participant):
    packet = MagicMock()
    packet.data = data
    packet.topic = topic
    packet.participant = participant
    return packet


def make_mic_publication(muted=False, sid="TR_mic"):
    publication = MagicMock()
    publication.sid = sid
    publication.source = rtc.TrackSource.SOURCE_MICROPHONE
    publication.track.muted = muted
    return publication
