"""Compositor that loops a generated clip under a full audio track."""

import logging
from pathlib import Path
from typing import Optional

from moviepy import VideoClip, VideoFileClip
from moviepy.video.fx import Loop

from .audio import fade_out, load_audio

logger = logging.getLogger(__name__)


def loop_video(video: VideoClip, duration: float) -> VideoClip:
    """Repeat a clip until it lasts ``duration`` seconds.

    Args:
        video: Clip to repeat.
        duration: Target duration in seconds.

    Returns:
        A clip of exactly ``duration`` seconds.

    Raises:
        ValueError: If duration is not positive.
    """
    if duration <= 0:
        raise ValueError(f"Duration must be positive, got {duration}")

    if video.duration >= duration:
        return video.subclipped(0, duration)

    return video.with_effects([Loop(duration=duration)])


def export(
    video: VideoClip,
    output_path: Path,
    fps: int = 24,
    codec: str = "libx264",
    audio_codec: str = "aac",
    bitrate: Optional[str] = None,
    preset: str = "medium"
) -> Path:
    """Export video to file with proper encoding.

    Args:
        video: Video clip to export.
        output_path: Path for output file.
        fps: Frames per second (Veo renders at 24).
        codec: Video codec (default libx264).
        audio_codec: Audio codec (default aac).
        bitrate: Video bitrate (e.g., "5000k"). None for auto.
        preset: Encoding preset (ultrafast, fast, medium, slow, slower).

    Returns:
        Path to the exported video file.
    """
    # Ensure output directory exists
    output_path.parent.mkdir(parents=True, exist_ok=True)

    export_params = {
        "fps": fps,
        "codec": codec,
        "audio_codec": audio_codec,
        "preset": preset,
    }

    if bitrate:
        export_params["bitrate"] = bitrate

    video.write_videofile(str(output_path), **export_params)

    return output_path


def render_loop(
    video_path: Path,
    audio_path: Path,
    output_path: Path,
    fade_out_duration: float = 2.0,
    preset: str = "medium",
) -> Path:
    """Loop a generated clip for the whole length of an audio track.

    The clip's own soundtrack is replaced by the audio file.

    Args:
        video_path: Generated video clip.
        audio_path: Audio track the loop should accompany.
        output_path: Where to write the rendered video.
        fade_out_duration: Audio fade at the end in seconds (0 disables).
        preset: x264 encoding preset.

    Returns:
        Path to the rendered video.

    Raises:
        FileNotFoundError: If either input doesn't exist.
    """
    if not video_path.exists():
        raise FileNotFoundError(f"Video file not found: {video_path}")

    audio = load_audio(audio_path)
    video = VideoFileClip(str(video_path))

    try:
        logger.info(
            f"Looping {video.duration:.1f}s clip to {audio.duration:.1f}s of audio"
        )
        looped = loop_video(video.without_audio(), audio.duration)
        looped = looped.with_audio(fade_out(audio, fade_out_duration))
        return export(looped, output_path, preset=preset)
    finally:
        video.close()
        audio.close()
