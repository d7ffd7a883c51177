"""
Tests for status, step and media models.
"""
import base64

import pytest
from pydantic import ValidationError

from sonicvision.errors import OversizedInput, WorkflowError
from sonicvision.models import (
    STEPS,
    AudioInput,
    PlayableResource,
    Status,
    VideoResult,
    step_index,
    step_label,
)


class TestSteps:

    def test_steps_are_ordered(self):
        assert [label for _, label in STEPS] == ["Upload", "Analyze", "Prompt", "Generate", "Result"]

    def test_error_restarts_at_upload(self):
        assert step_index(Status.ERROR) == 0
        assert step_label(Status.ERROR) == "Upload"

    def test_review_is_prompt_step(self):
        assert step_index(Status.REVIEW) == 2
        assert step_label(Status.REVIEW) == "Prompt"


class TestPlayableResource:

    def test_from_bytes_writes_file(self, media_dir):
        resource = PlayableResource.from_bytes(b"abc", "video/mp4", media_dir)

        assert resource.path.parent == media_dir
        assert resource.path.read_bytes() == b"abc"
        assert resource.url.startswith("file://")
        assert not resource.released

    def test_creates_missing_directory(self, tmp_path):
        target = tmp_path / "nested" / "media"
        resource = PlayableResource.from_bytes(b"abc", "audio/mpeg", target)

        assert resource.path.exists()

    def test_release_is_idempotent(self, media_dir):
        resource = PlayableResource.from_bytes(b"abc", "video/mp4", media_dir)

        resource.release()
        resource.release()

        assert resource.released
        assert not resource.path.exists()

    def test_release_after_file_vanished(self, media_dir):
        resource = PlayableResource.from_bytes(b"abc", "video/mp4", media_dir)
        resource.path.unlink()

        resource.release()

        assert resource.released

    def test_read_after_release_fails(self, media_dir):
        resource = PlayableResource.from_bytes(b"abc", "video/mp4", media_dir)
        resource.release()

        with pytest.raises(ValueError):
            resource.read_bytes()


class TestAudioInput:

    def test_from_upload(self, media_dir):
        audio = AudioInput.from_upload("song.mp3", "audio/mpeg", b"\x00\x01\x02", media_dir)

        assert audio.name == "song.mp3"
        assert audio.mime_type == "audio/mpeg"
        assert base64.b64decode(audio.base64_data) == b"\x00\x01\x02"
        assert audio.resource.read_bytes() == b"\x00\x01\x02"

    def test_is_immutable(self, media_dir):
        audio = AudioInput.from_upload("song.mp3", "audio/mpeg", b"data", media_dir)

        with pytest.raises(ValidationError):
            audio.name = "other.mp3"


class TestVideoResult:

    def test_holds_prompt_and_reference(self, media_dir):
        resource = PlayableResource.from_bytes(b"v", "video/mp4", media_dir)
        result = VideoResult(resource=resource, prompt="a lake", video_uri="https://x/v")

        assert result.prompt == "a lake"
        assert result.video_uri == "https://x/v"
        assert result.resource is resource


class TestErrors:

    def test_default_message(self):
        error = OversizedInput()
        assert error.message
        assert str(error) == error.message
        assert error.kind == "OversizedInput"

    def test_limit_message(self):
        error = OversizedInput.for_limit(9 * 1024 * 1024, 8 * 1024 * 1024)
        assert "8MB" in error.message

    def test_custom_message(self):
        error = WorkflowError("boom")
        assert error.message == "boom"
