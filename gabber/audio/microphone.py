"""
Host microphone capture for the local participant.

The LiveKit Python SDK publishes audio from an `rtc.AudioSource` but does not
open any capture device itself. MicrophoneCapture opens the default (or a
chosen) input device with PyAudio and pushes its PCM chunks into the source
that backs the published microphone track.
"""

import asyncio
import logging
from typing import Optional

from livekit import rtc

from gabber.config.constants import (
    LOGGER_NAME,
    MIC_CHANNELS,
    MIC_CHUNK,
    MIC_SAMPLE_RATE,
    MIC_TRACK_NAME,
)

logger = logging.getLogger(LOGGER_NAME)

# Chunks buffered between the PortAudio thread and the event loop
MAX_QUEUE_SIZE = 50


class MicrophoneCapture:
    """Feeds the host microphone into a LiveKit audio source."""

    def __init__(
        self,
        sample_rate: int = MIC_SAMPLE_RATE,
        channels: int = MIC_CHANNELS,
        chunk: int = MIC_CHUNK,
        device_index: Optional[int] = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk = chunk
        self.device_index = device_index
        self.source = rtc.AudioSource(sample_rate, channels)
        self._pa = None
        self._stream = None
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._stream is not None

    def create_track(self) -> rtc.LocalAudioTrack:
        """Create the local track that publishes this source."""
        return rtc.LocalAudioTrack.create_audio_track(MIC_TRACK_NAME, self.source)

    def start(self) -> None:
        """
        Open the input device and start pumping audio into the source.

        Raises:
            ImportError: If PyAudio is not installed
            OSError: If the input device cannot be opened
        """
        if self.active:
            return

        import pyaudio

        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=MAX_QUEUE_SIZE)

        def audio_callback(in_data, frame_count, time_info, status):
            loop.call_soon_threadsafe(self._enqueue, in_data)
            return (None, pyaudio.paContinue)

        self._pa = pyaudio.PyAudio()
        try:
            self._stream = self._pa.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk,
                input_device_index=self.device_index,
                stream_callback=audio_callback,
            )
        except OSError:
            self._pa.terminate()
            self._pa = None
            raise

        self._task = asyncio.create_task(self._pump())
        logger.info(f"Microphone capture started: {self.sample_rate}Hz, {self.channels} channel(s)")

    def _enqueue(self, data: bytes) -> None:
        if self._queue is None:
            return
        try:
            self._queue.put_nowait(data)
        except asyncio.QueueFull:
            logger.debug("Microphone queue full, dropping chunk")

    async def _pump(self) -> None:
        while True:
            data = await self._queue.get()
            frame = rtc.AudioFrame(
                data=data,
                sample_rate=self.sample_rate,
                num_channels=self.channels,
                samples_per_channel=len(data) // (2 * self.channels),
            )
            await self.source.capture_frame(frame)

    def stop(self) -> None:
        """Close the input device; the published track stays in place."""
        if self._stream is not None:
            self._stream.stop_stream()
            self._stream.close()
            self._stream = None
        if self._pa is not None:
            self._pa.terminate()
            self._pa = None
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._queue = None
        logger.info("Microphone capture stopped")

    async def aclose(self) -> None:
        self.stop()
        await self.source.aclose()
