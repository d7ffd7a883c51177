"""Audio-to-video workflow coordinator."""

import logging
from pathlib import Path
from typing import Optional

from .config import Config, config as default_config
from .errors import (
    CredentialMissing,
    OversizedInput,
    UnexpectedFailure,
    UnsupportedAudioType,
    WorkflowError,
)
from .models import AudioInput, Status, VideoResult, step_index
from .services.credentials import CredentialStore
from .services.gemini import FALLBACK_DESCRIPTION, AnalysisClient
from .services.veo import CancellationToken, VideoJobClient

logger = logging.getLogger(__name__)


class WorkflowCoordinator:
    """State machine that turns an audio clip into a generated video.

    One coordinator serves one session. It is the only writer of its state
    and the only owner of the playable resources it holds:

        idle -> analyzing -> review -> generating -> completed

    Analysis failures return to ``idle`` and generation failures return to
    ``review``, each with the error kept in ``error``. ``reset`` returns to
    ``idle`` from anywhere.

    Every accepted trigger bumps a version counter. An asynchronous step
    remembers the version it started under and only applies its result if
    the version is unchanged when the result arrives, so late results after
    a reset are dropped.
    """

    def __init__(
        self,
        analysis_client: AnalysisClient,
        video_client: VideoJobClient,
        credentials: CredentialStore,
        max_audio_bytes: Optional[int] = None,
        media_dir: Optional[Path] = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            analysis_client: Client that describes a scene for the audio.
            video_client: Client that renders the scene with Veo.
            credentials: Credential gate checked before leaving idle.
            max_audio_bytes: Largest accepted upload. Defaults to
                config.max_audio_bytes.
            media_dir: Where the audio's playable copy is written.
        """
        self._analysis = analysis_client
        self._video = video_client
        self._credentials = credentials
        self._max_audio_bytes = (
            max_audio_bytes if max_audio_bytes is not None else default_config.max_audio_bytes
        )
        self._media_dir = media_dir

        self._status = Status.IDLE
        self._audio: Optional[AudioInput] = None
        self._prompt = ""
        self._result: Optional[VideoResult] = None
        self._error: Optional[WorkflowError] = None
        self._version = 0
        self._cancel_token: Optional[CancellationToken] = None

    @property
    def status(self) -> Status:
        return self._status

    @property
    def step(self) -> int:
        """Return the presentation step for the current status."""
        return step_index(self._status)

    @property
    def audio(self) -> Optional[AudioInput]:
        return self._audio

    @property
    def prompt(self) -> str:
        return self._prompt

    @property
    def result(self) -> Optional[VideoResult]:
        return self._result

    @property
    def error(self) -> Optional[WorkflowError]:
        return self._error

    @property
    def error_message(self) -> Optional[str]:
        return self._error.message if self._error else None

    @property
    def busy(self) -> bool:
        """Return True while an analysis or video job is outstanding."""
        return self._status in (Status.ANALYZING, Status.GENERATING)

    def clear_error(self) -> None:
        self._error = None

    async def select_file(self, name: str, mime_type: str, data: bytes) -> None:
        """Accept an uploaded audio file and analyze it.

        Only honored in ``idle``. Rejected files leave the status at
        ``idle`` and set the error.

        Args:
            name: Original file name.
            mime_type: Audio MIME type.
            data: Raw file contents.
        """
        if self._status != Status.IDLE:
            logger.debug(f"Ignoring file selection while {self._status.value}")
            return

        if not self._credentials.has_selected_key():
            self._reject(CredentialMissing())
            return

        if len(data) > self._max_audio_bytes:
            self._reject(OversizedInput.for_limit(len(data), self._max_audio_bytes))
            return

        if not self._analysis.accepts(mime_type):
            self._reject(UnsupportedAudioType(
                f"Unsupported file type: {mime_type or 'unknown'}. "
                "Please upload an MP3 or WAV file."
            ))
            return

        audio = AudioInput.from_upload(name, mime_type, data, self._media_dir)
        version = self._advance(Status.ANALYZING)
        self._audio = audio
        self._error = None
        logger.info(f"Analyzing {name} ({len(data)} bytes, {mime_type})")

        try:
            prompt = await self._analysis.analyze(audio.base64_data, audio.mime_type)
        except WorkflowError as e:
            if self._is_stale(version, "analysis failure"):
                return
            logger.warning(f"Analysis failed: {e.message}")
            self._release_audio()
            self._error = e
            self._transition(Status.IDLE)
            return
        except Exception as e:
            if self._is_stale(version, "analysis failure"):
                return
            logger.exception(f"Unexpected analysis error: {e}")
            self._fail(e)
            return

        if self._is_stale(version, "analysis result"):
            return

        self._prompt = prompt if prompt and prompt.strip() else FALLBACK_DESCRIPTION
        self._transition(Status.REVIEW)

    def edit_prompt(self, text: str) -> bool:
        """Replace the prompt while in ``review``.

        Returns:
            True if the edit was applied. Edits outside ``review`` and
            blank prompts are ignored.
        """
        if self._status != Status.REVIEW:
            logger.debug(f"Ignoring prompt edit while {self._status.value}")
            return False
        if not text or not text.strip():
            logger.debug("Ignoring blank prompt edit")
            return False
        self._prompt = text
        return True

    async def generate(self) -> None:
        """Submit the current prompt to Veo and wait for the video.

        Only honored in ``review``; a second call while a job is
        outstanding is ignored.
        """
        if self._status != Status.REVIEW:
            logger.debug(f"Ignoring generate request while {self._status.value}")
            return

        prompt = self._prompt
        version = self._advance(Status.GENERATING)
        self._error = None
        token = CancellationToken()
        self._cancel_token = token

        try:
            result = await self._video.generate(prompt, token)
        except WorkflowError as e:
            if self._is_stale(version, "generation failure"):
                return
            logger.warning(f"Generation failed: {e.message}")
            self._cancel_token = None
            self._error = e
            self._transition(Status.REVIEW)
            return
        except Exception as e:
            if self._is_stale(version, "generation failure"):
                return
            logger.exception(f"Unexpected generation error: {e}")
            self._cancel_token = None
            self._fail(e)
            return

        if self._is_stale(version, "video result"):
            result.resource.release()
            return

        self._cancel_token = None
        self._set_result(result)
        self._transition(Status.COMPLETED)

    def reset(self) -> None:
        """Drop everything and return to ``idle``.

        Any outstanding step is cancelled and its eventual result ignored.
        """
        self._version += 1
        if self._cancel_token is not None:
            self._cancel_token.cancel()
            self._cancel_token = None

        self._release_audio()
        self._set_result(None)
        self._prompt = ""
        self._error = None
        self._transition(Status.IDLE)

    def _advance(self, status: Status) -> int:
        self._version += 1
        self._transition(status)
        return self._version

    def _transition(self, status: Status) -> None:
        if status != self._status:
            logger.info(f"Status: {self._status.value} -> {status.value}")
        self._status = status

    def _is_stale(self, version: int, what: str) -> bool:
        if version != self._version:
            logger.info(f"Discarding stale {what}")
            return True
        return False

    def _reject(self, error: WorkflowError) -> None:
        logger.warning(f"Rejected file: {error.message}")
        self._error = error

    def _fail(self, exc: Exception) -> None:
        self._error = UnexpectedFailure(f"An unexpected error occurred: {exc}")
        self._transition(Status.ERROR)

    def _release_audio(self) -> None:
        if self._audio is not None:
            self._audio.resource.release()
            self._audio = None

    def _set_result(self, result: Optional[VideoResult]) -> None:
        previous = self._result
        if previous is not None and previous is not result:
            previous.resource.release()
        self._result = result


def build_coordinator(
    settings: Optional[Config] = None,
    credentials: Optional[CredentialStore] = None,
) -> WorkflowCoordinator:
    """Create a coordinator wired to the real Gemini and Veo clients."""
    settings = settings or default_config
    credentials = credentials or CredentialStore(settings=settings)

    analysis = AnalysisClient(
        credentials=credentials,
        model=settings.analysis_model,
        accepted_mime_types=settings.accepted_mime_types,
    )
    video = VideoJobClient(
        credentials=credentials,
        model=settings.video_model,
        resolution=settings.resolution,
        aspect_ratio=settings.aspect_ratio,
        poll_interval=settings.poll_interval,
        max_poll_attempts=settings.max_poll_attempts,
        output_bucket=settings.veo_output_bucket,
        media_dir=settings.media_dir,
        download_timeout=settings.download_timeout,
    )
    return WorkflowCoordinator(
        analysis,
        video,
        credentials,
        max_audio_bytes=settings.max_audio_bytes,
        media_dir=settings.media_dir,
    )
