"""Data models for the audio-to-video workflow."""

from .status import Status, STEPS, step_index, step_label
from .media import PlayableResource, AudioInput, VideoResult

__all__ = [
    "Status",
    "STEPS",
    "step_index",
    "step_label",
    "PlayableResource",
    "AudioInput",
    "VideoResult",
]
