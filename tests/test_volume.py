import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import numpy as np
import pytest

from gabber.audio.volume import TrackVolumeVisualizer, compute_volume_bands


def sine(frequency, amplitude=16384, sample_rate=48000, samples=480):
    t = np.arange(samples) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.int16)


class TestComputeVolumeBands:

    def test_empty_block(self):
        bands, volume = compute_volume_bands(np.array([], dtype=np.int16), 4)
        assert bands == [0.0, 0.0, 0.0, 0.0]
        assert volume == 0.0

    def test_silence(self):
        bands, volume = compute_volume_bands(np.zeros(480, dtype=np.int16))
        assert volume == 0.0
        assert all(band == 0.0 for band in bands)

    def test_low_tone_fills_first_band(self):
        bands, volume = compute_volume_bands(sine(200), num_bands=5)
        assert len(bands) == 5
        assert bands[0] == pytest.approx(1.0)
        assert max(bands[1:]) < 0.5
        assert volume == pytest.approx(0.5 / np.sqrt(2), rel=0.05)

    def test_high_tone_fills_last_band(self):
        bands, _ = compute_volume_bands(sine(22000), num_bands=5)
        assert bands[-1] == pytest.approx(1.0)

    def test_volume_is_bounded(self):
        full_scale = np.full(480, -32768, dtype=np.int16)
        _, volume = compute_volume_bands(full_scale)
        assert 0.0 <= volume <= 1.0


class FakeAudioStream:
    def __init__(self, blocks):
        self._blocks = blocks
        self.aclose = AsyncMock()

    def __aiter__(self):
        return self._events()

    async def _events(self):
        for block in self._blocks:
            event = MagicMock()
            event.frame.data = block.tobytes()
            yield event


@pytest.mark.asyncio
class TestTrackVolumeVisualizer:

    async def test_reports_each_frame(self):
        callback = MagicMock()
        stream = FakeAudioStream([sine(200), np.zeros(480, dtype=np.int16)])
        track = MagicMock(sid="TR_agent")

        with patch("gabber.audio.volume.rtc.AudioStream", return_value=stream) as stream_cls:
            visualizer = TrackVolumeVisualizer(callback, num_bands=3)
            visualizer.set_track(track)
            await visualizer._task

        stream_cls.assert_called_once_with(track)
        assert callback.call_count == 2
        bands, volume = callback.call_args_list[1].args
        assert bands == [0.0, 0.0, 0.0]
        assert volume == 0.0
        stream.aclose.assert_awaited_once()
        assert visualizer.track_sid == "TR_agent"

    async def test_stream_failure_is_logged(self):
        class FailingStream(FakeAudioStream):
            async def _events(self):
                yield MagicMock(**{"frame.data": sine(200).tobytes()})
                raise RuntimeError("stream closed by peer")

        callback = MagicMock()
        stream = FailingStream([])
        with patch("gabber.audio.volume.rtc.AudioStream", return_value=stream), \
                patch("gabber.audio.volume.logger") as mock_logger:
            visualizer = TrackVolumeVisualizer(callback)
            visualizer.set_track(MagicMock(sid="TR_agent"))
            await visualizer._task

        callback.assert_called_once()
        mock_logger.exception.assert_called_once()
        stream.aclose.assert_awaited_once()
        assert not visualizer.active

    async def test_stop_cancels_reader(self):
        never_ending = asyncio.Event()

        class BlockingStream(FakeAudioStream):
            async def _events(self):
                await never_ending.wait()
                yield MagicMock()

        stream = BlockingStream([])
        with patch("gabber.audio.volume.rtc.AudioStream", return_value=stream):
            visualizer = TrackVolumeVisualizer(MagicMock())
            visualizer.set_track(MagicMock(sid="TR_1"))
            task = visualizer._task
            await asyncio.sleep(0)
            visualizer.stop()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert not visualizer.active
        assert visualizer.track_sid is None
        stream.aclose.assert_awaited_once()
