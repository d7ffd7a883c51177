"""
Tests for looping the generated clip under the audio track.
"""
import numpy as np
import pytest
from moviepy import AudioClip, ColorClip, VideoFileClip

from sonicvision.editor import loop_video, render_loop


def make_clip(duration):
    return ColorClip(size=(16, 16), color=(20, 40, 80), duration=duration)


class TestLoopVideo:

    def test_extends_short_clip(self):
        looped = loop_video(make_clip(2), 7)
        assert looped.duration == pytest.approx(7)

    def test_trims_long_clip(self):
        trimmed = loop_video(make_clip(8), 3)
        assert trimmed.duration == pytest.approx(3)

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            loop_video(make_clip(2), 0)


class TestRenderLoop:

    def test_missing_video(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            render_loop(tmp_path / "missing.mp4", tmp_path / "song.mp3", tmp_path / "out.mp4")

    def test_missing_audio(self, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"not really a video")

        with pytest.raises(FileNotFoundError):
            render_loop(video, tmp_path / "missing.mp3", tmp_path / "out.mp4")

    def test_loops_clip_under_full_track(self, tmp_path):
        video_path = tmp_path / "clip.mp4"
        audio_path = tmp_path / "song.mp3"
        output_path = tmp_path / "out" / "loop.mp4"

        make_clip(1).write_videofile(str(video_path), fps=24, logger=None)
        tone = AudioClip(lambda t: 0.5 * np.sin(440 * 2 * np.pi * t), duration=3.5, fps=44100)
        tone.write_audiofile(str(audio_path), fps=44100, logger=None)

        render_loop(video_path, audio_path, output_path, fade_out_duration=1.0, preset="ultrafast")

        rendered = VideoFileClip(str(output_path))
        try:
            assert rendered.duration == pytest.approx(3.5, abs=0.2)
            assert rendered.audio is not None
            middle = rendered.audio.subclipped(1.0, 1.5).max_volume()
            tail = rendered.audio.subclipped(3.3, 3.45).max_volume()
            assert tail < middle * 0.5
        finally:
            rendered.close()
