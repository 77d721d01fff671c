"""
Volume visualisation for agent and user audio tracks.

Frames are read from a LiveKit audio stream, converted to numpy arrays and
reduced to a handful of normalised frequency bands plus an overall volume,
which a UI can draw as a level meter.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

import numpy as np
from livekit import rtc

from gabber.config.constants import LOGGER_NAME, VOLUME_BANDS

logger = logging.getLogger(LOGGER_NAME)

VolumeCallback = Callable[[List[float], float], None]


def compute_volume_bands(samples: np.ndarray, num_bands: int = VOLUME_BANDS) -> Tuple[List[float], float]:
    """
    Reduce a block of int16 PCM samples to frequency bands and a volume.

    Args:
        samples: PCM samples (int16, channels interleaved)
        num_bands: Number of frequency bands to return

    Returns:
        (bands, volume) where each band is in [0, 1] relative to the loudest
        band and volume is the RMS level in [0, 1]
    """
    if samples.size == 0:
        return [0.0] * num_bands, 0.0

    audio = samples.astype(np.float32) / 32768.0
    volume = float(min(1.0, np.sqrt(np.mean(audio ** 2))))

    # Drop the DC bin
    spectrum = np.abs(np.fft.rfft(audio))[1:]
    bands = [float(chunk.mean()) if chunk.size else 0.0
             for chunk in np.array_split(spectrum, num_bands)]
    peak = max(bands)
    if peak > 0:
        bands = [band / peak for band in bands]
    return bands, volume


class TrackVolumeVisualizer:
    """
    Reads one audio track at a time and reports its volume per frame.
    """

    def __init__(self, callback: VolumeCallback, num_bands: int = VOLUME_BANDS):
        self._callback = callback
        self.num_bands = num_bands
        self._task: Optional[asyncio.Task] = None
        self.track_sid: Optional[str] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def set_track(self, track: rtc.Track) -> None:
        """
        Start reporting the volume of a track, replacing any previous one.

        Must be called from the event loop the room runs on.
        """
        self.stop()
        self.track_sid = track.sid
        stream = rtc.AudioStream(track)
        self._task = asyncio.create_task(self._read_loop(stream))
        logger.debug(f"Volume visualizer attached to track {track.sid}")

    async def _read_loop(self, stream: rtc.AudioStream) -> None:
        try:
            async for event in stream:
                samples = np.frombuffer(event.frame.data, dtype=np.int16)
                bands, volume = compute_volume_bands(samples, self.num_bands)
                self._callback(bands, volume)
        except Exception:
            logger.exception(f"Volume reader for track {self.track_sid} failed")
        finally:
            await stream.aclose()

    def stop(self) -> None:
        """Stop reading the current track, if any."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.track_sid = None
