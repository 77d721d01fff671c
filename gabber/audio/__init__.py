"""
Audio helpers for the realtime session.

Key components:
- microphone: MicrophoneCapture opens the host input device with PyAudio and
  feeds it into the LiveKit audio source behind the published microphone track.
- volume: compute_volume_bands and TrackVolumeVisualizer turn agent and user
  audio frames into level-meter data for the host UI.
"""

from gabber.audio.microphone import MicrophoneCapture
from gabber.audio.volume import TrackVolumeVisualizer, compute_volume_bands
