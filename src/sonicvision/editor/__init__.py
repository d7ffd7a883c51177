"""Rendering of the final audio + video loop."""

from .compositor import loop_video, export, render_loop
from .audio import load_audio, fade_out

__all__ = [
    # Compositor
    "loop_video",
    "export",
    "render_loop",
    # Audio
    "load_audio",
    "fade_out",
]
