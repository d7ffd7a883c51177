"""
Shared fakes for the Gemini / Veo clients.
"""
import sys
import os
import asyncio
from types import SimpleNamespace

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from sonicvision.services.gemini import AnalysisClient
from sonicvision.services.veo import VideoJobClient
from sonicvision.workflow import WorkflowCoordinator


MP3_BYTES = b"ID3\x03\x00\x00\x00\x00\x00\x0fsome mp3 frames"
VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc:download?alt=media"


def make_operation(done=False, videos=None, error=None, filtered=None, reasons=None):
    """Build an operation handle shaped like google-genai's GenerateVideosOperation."""
    response = None
    if done and error is None:
        response = SimpleNamespace(
            generated_videos=videos,
            rai_media_filtered_count=filtered,
            rai_media_filtered_reasons=reasons,
        )
    return SimpleNamespace(
        name="models/veo/operations/op-123",
        done=done,
        error=error,
        response=response,
    )


def make_video(uri=VIDEO_URI, video_bytes=None, mime_type="video/mp4"):
    return SimpleNamespace(
        video=SimpleNamespace(uri=uri, video_bytes=video_bytes, mime_type=mime_type)
    )


class FakeModels:
    """Stands in for ``client.aio.models``."""

    def __init__(self, text="", analysis_error=None, submitted=None, submit_error=None):
        self.text = text
        self.analysis_error = analysis_error
        self.submitted = submitted if submitted is not None else make_operation()
        self.submit_error = submit_error
        self.content_calls = []
        self.video_calls = []

    async def generate_content(self, **kwargs):
        self.content_calls.append(kwargs)
        await asyncio.sleep(0)
        if self.analysis_error:
            raise self.analysis_error
        return SimpleNamespace(text=self.text)

    async def generate_videos(self, **kwargs):
        self.video_calls.append(kwargs)
        await asyncio.sleep(0)
        if self.submit_error:
            raise self.submit_error
        return self.submitted


class FakeOperations:
    """Stands in for ``client.aio.operations``; returns queued states in order."""

    def __init__(self, states=None, error=None):
        self.states = list(states or [])
        self.error = error
        self.calls = 0

    async def get(self, operation):
        self.calls += 1
        if self.error:
            raise self.error
        if len(self.states) > 1:
            return self.states.pop(0)
        if self.states:
            return self.states[0]
        return operation


class FakeGenaiClient:
    def __init__(self, models=None, operations=None):
        self.models = models or FakeModels()
        self.operations = operations or FakeOperations()
        self.aio = SimpleNamespace(models=self.models, operations=self.operations)


class FakeCredentials:
    """Credential store that hands out a fake google-genai client."""

    def __init__(self, client=None, selected=True, api_key="test-key", project=None):
        self.client = client or FakeGenaiClient()
        self.selected = selected
        self.api_key = api_key if selected else ""
        self.use_vertex = False
        self.project = project
        self.clients_made = 0

    def has_selected_key(self):
        return self.selected

    def select_key(self, api_key):
        self.api_key = api_key
        self.selected = True

    def make_client(self):
        self.clients_made += 1
        return self.client


def build_test_coordinator(credentials, media_dir, max_poll_attempts=5, max_audio_bytes=1024):
    analysis = AnalysisClient(credentials=credentials, model="gemini-test")
    video = VideoJobClient(
        credentials=credentials,
        model="veo-test",
        poll_interval=0,
        max_poll_attempts=max_poll_attempts,
        media_dir=media_dir,
    )
    return WorkflowCoordinator(
        analysis,
        video,
        credentials,
        max_audio_bytes=max_audio_bytes,
        media_dir=media_dir,
    )


@pytest.fixture
def media_dir(tmp_path):
    path = tmp_path / "media"
    path.mkdir()
    return path


@pytest.fixture
def genai_client():
    return FakeGenaiClient()


@pytest.fixture
def credentials(genai_client):
    return FakeCredentials(client=genai_client)


@pytest.fixture
def coordinator(credentials, media_dir):
    return build_test_coordinator(credentials, media_dir)
