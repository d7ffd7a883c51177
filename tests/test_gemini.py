"""
Tests for the Gemini audio analysis client.
"""
import asyncio
import base64

import pytest

from sonicvision.errors import AnalysisFailed, UnsupportedAudioType
from sonicvision.services.gemini import (
    FALLBACK_DESCRIPTION,
    SYSTEM_INSTRUCTION,
    USER_INSTRUCTION,
    AnalysisClient,
)

from conftest import MP3_BYTES, FakeCredentials


ENCODED = base64.b64encode(MP3_BYTES).decode("ascii")


@pytest.fixture
def client(credentials):
    return AnalysisClient(credentials=credentials, model="gemini-test")


class TestAnalysisClient:

    def test_returns_description(self, client, genai_client):
        genai_client.models.text = "  Cinematic aurora over a frozen lake, 4k.  "

        description = asyncio.run(client.analyze(ENCODED, "audio/mpeg"))

        assert description == "Cinematic aurora over a frozen lake, 4k."

    def test_request_carries_audio_and_instructions(self, client, genai_client):
        genai_client.models.text = "a scene"

        asyncio.run(client.analyze(ENCODED, "audio/wav"))

        call = genai_client.models.content_calls[0]
        assert call["model"] == "gemini-test"
        assert call["config"].system_instruction == SYSTEM_INSTRUCTION

        audio_part, instruction = call["contents"]
        assert audio_part.inline_data.mime_type == "audio/wav"
        assert audio_part.inline_data.data == MP3_BYTES
        assert instruction == USER_INSTRUCTION

    @pytest.mark.parametrize("text", ["", "   \n", None])
    def test_empty_response_uses_fallback(self, client, genai_client, text):
        genai_client.models.text = text

        assert asyncio.run(client.analyze(ENCODED, "audio/mpeg")) == FALLBACK_DESCRIPTION

    def test_transport_error_becomes_analysis_failed(self, client, genai_client):
        genai_client.models.analysis_error = TimeoutError("deadline")

        with pytest.raises(AnalysisFailed) as excinfo:
            asyncio.run(client.analyze(ENCODED, "audio/mpeg"))

        assert isinstance(excinfo.value.__cause__, TimeoutError)
        assert excinfo.value.message

    def test_invalid_payload_becomes_analysis_failed(self, client, genai_client):
        with pytest.raises(AnalysisFailed):
            asyncio.run(client.analyze("not base64!!", "audio/mpeg"))

        assert genai_client.models.content_calls == []

    def test_rejects_non_audio_type(self, client, genai_client):
        with pytest.raises(UnsupportedAudioType):
            asyncio.run(client.analyze(ENCODED, "video/mp4"))

        assert genai_client.models.content_calls == []

    def test_accepted_types_are_configurable(self):
        client = AnalysisClient(
            credentials=FakeCredentials(),
            accepted_mime_types=["audio/flac"],
        )

        assert client.accepts("audio/flac")
        assert not client.accepts("audio/mpeg")
