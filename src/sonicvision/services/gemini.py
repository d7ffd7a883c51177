"""Gemini audio analysis client."""

import base64
import binascii
import logging
from typing import Iterable, Optional

from google.genai import types

from ..config import config
from ..errors import AnalysisFailed, UnsupportedAudioType
from .credentials import CredentialStore

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """You are an expert creative director for music videos and abstract cinema.
Your task is to listen to audio clips and describe a stunning, high-quality visual scene that perfectly matches the mood, rhythm, and atmosphere of the audio.
The output will be used as a prompt for a video generation AI (Veo).

Guidelines:
- Focus on visual elements: lighting, colors, camera movement, and subject matter.
- Use keywords like "cinematic", "4k", "highly detailed", "atmospheric".
- Keep the description under 80 words.
- Do not mention "sound" or "audio" in the description itself; describe what is SEEN.
"""

USER_INSTRUCTION = "Create a visual video generation prompt based on this audio."

FALLBACK_DESCRIPTION = "A futuristic abstract scene pulsing with neon colors."


class AnalysisClient:
    """Describes a visual scene that matches an audio clip."""

    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        model: Optional[str] = None,
        accepted_mime_types: Optional[Iterable[str]] = None,
    ) -> None:
        """Initialize the analysis client.

        Args:
            credentials: Credential store used to build google-genai clients.
            model: Gemini model to use. Defaults to config.analysis_model.
            accepted_mime_types: Audio MIME types to accept. Defaults to
                config.accepted_mime_types.
        """
        self._credentials = credentials or CredentialStore()
        self._model = model or config.analysis_model
        self._accepted = frozenset(accepted_mime_types or config.accepted_mime_types)

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def accepts(self, mime_type: str) -> bool:
        return mime_type in self._accepted

    async def analyze(self, base64_audio: str, mime_type: str) -> str:
        """Describe a scene for the given audio.

        Args:
            base64_audio: Base64-encoded audio payload, already size-checked.
            mime_type: MIME type of the audio.

        Returns:
            A short scene description, or FALLBACK_DESCRIPTION when the
            model returns no text.

        Raises:
            UnsupportedAudioType: If the MIME type is not an accepted audio type.
            AnalysisFailed: If the payload is invalid or the call fails.
        """
        if not self.accepts(mime_type):
            raise UnsupportedAudioType(
                f"Unsupported file type: {mime_type or 'unknown'}. "
                "Please upload an MP3 or WAV file."
            )

        try:
            audio_bytes = base64.b64decode(base64_audio, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error(f"Invalid audio payload: {e}")
            raise AnalysisFailed() from e

        logger.info(f"Analyzing {len(audio_bytes)} bytes of {mime_type} with {self._model}")

        try:
            client = self._credentials.make_client()
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=[
                    types.Part.from_bytes(data=audio_bytes, mime_type=mime_type),
                    USER_INSTRUCTION,
                ],
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_INSTRUCTION,
                ),
            )
            text = response.text
        except Exception as e:
            logger.error(f"Error analyzing audio: {e}")
            raise AnalysisFailed() from e

        if not text or not text.strip():
            logger.warning("Analysis returned no text, using fallback description")
            return FALLBACK_DESCRIPTION

        description = text.strip()
        logger.debug(f"Scene description: {description[:100]}...")
        return description
