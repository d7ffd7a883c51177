"""Audio helpers for rendering the looping video."""

from pathlib import Path

from moviepy import AudioFileClip
from moviepy.audio.fx import AudioFadeOut


def load_audio(audio_path: Path) -> AudioFileClip:
    """Load an audio file.

    Args:
        audio_path: Path to the audio file.

    Returns:
        AudioFileClip instance.

    Raises:
        FileNotFoundError: If audio file doesn't exist.
    """
    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    return AudioFileClip(str(audio_path))


def fade_out(audio: AudioFileClip, duration: float) -> AudioFileClip:
    """Fade the end of an audio clip out over ``duration`` seconds."""
    if duration <= 0:
        return audio
    return audio.with_effects([AudioFadeOut(min(duration, audio.duration))])
