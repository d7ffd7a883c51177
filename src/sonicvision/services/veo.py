"""Google Veo video generation client."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import requests
from google.api_core import exceptions as google_exceptions
from google.cloud import storage
from google.genai import types

from ..config import config
from ..errors import (
    DownloadFailed,
    GenerationTimedOut,
    JobCancelled,
    JobSubmissionFailed,
    NoVideoProduced,
)
from ..models import PlayableResource, VideoResult
from .credentials import CredentialStore

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag checked at every poll boundary.

    Cancelling never aborts a request already on the wire; it wakes the
    poller from its wait and stops the loop before the next request.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``; return True if cancelled meanwhile."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        return self.cancelled


class VideoJobClient:
    """Client wrapper for Veo video generation.

    This client handles:
    - Submitting a text prompt as a long-running Veo operation
    - Polling the operation at a fixed interval, bounded and cancellable
    - Fetching the generated video with the submitting credential
    - Materialising the video as a local playable resource
    """

    # Default configuration
    DEFAULT_MAX_POLL_ATTEMPTS = 60
    SUPPORTED_ASPECT_RATIOS = ("16:9", "9:16")

    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        model: Optional[str] = None,
        resolution: Optional[str] = None,
        aspect_ratio: Optional[str] = None,
        poll_interval: Optional[float] = None,
        max_poll_attempts: Optional[int] = DEFAULT_MAX_POLL_ATTEMPTS,
        output_bucket: Optional[str] = None,
        media_dir: Optional[Path] = None,
        download_timeout: Optional[float] = None,
    ) -> None:
        """Initialize the Veo client.

        Args:
            credentials: Credential store used for submission and download.
            model: Veo model name. Defaults to config.video_model.
            resolution: Output resolution. Defaults to config.resolution.
            aspect_ratio: '16:9' or '9:16'. Defaults to config.aspect_ratio.
            poll_interval: Seconds between polls. Defaults to config.poll_interval.
            max_poll_attempts: Polls before giving up; None polls until done.
            output_bucket: Optional gs:// bucket for Vertex AI output.
                Defaults to VEO_OUTPUT_BUCKET.
            media_dir: Where playable copies are written. Defaults to
                config.media_dir (system temp dir when unset).
            download_timeout: Seconds to wait for the video download.
        """
        self._credentials = credentials or CredentialStore()
        self._model = model or config.video_model
        self._resolution = resolution or config.resolution
        self._aspect_ratio = aspect_ratio or config.aspect_ratio
        self._poll_interval = (
            poll_interval if poll_interval is not None else config.poll_interval
        )
        self._max_poll_attempts = max_poll_attempts
        self._output_bucket = output_bucket or config.veo_output_bucket
        self._media_dir = media_dir or config.media_dir
        self._download_timeout = download_timeout or config.download_timeout
        self._storage_client: Optional[storage.Client] = None

        self._validate_config()

    def _validate_config(self) -> None:
        """Validate generation parameters."""
        if self._aspect_ratio not in self.SUPPORTED_ASPECT_RATIOS:
            raise ValueError(
                f"Invalid aspect_ratio: {self._aspect_ratio}. Must be '16:9' or '9:16'"
            )
        if self._poll_interval < 0:
            raise ValueError("poll_interval cannot be negative")
        if self._max_poll_attempts is not None and self._max_poll_attempts < 1:
            raise ValueError("max_poll_attempts must be at least 1")
        if self._output_bucket and not self._output_bucket.startswith("gs://"):
            raise ValueError(
                f"VEO_OUTPUT_BUCKET must be a GCS URI starting with 'gs://'. "
                f"Got: {self._output_bucket}"
            )

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    async def generate(
        self,
        prompt: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> VideoResult:
        """Generate a video from a text prompt.

        Args:
            prompt: Text description of the scene.
            cancel_token: Token checked at every poll boundary.

        Returns:
            VideoResult holding a playable copy of the first generated video.

        Raises:
            ValueError: If prompt is empty.
            JobSubmissionFailed: If submission or polling fails, times out
                or is cancelled.
            NoVideoProduced: If the finished operation holds no video.
            DownloadFailed: If the video cannot be fetched.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        token = cancel_token or CancellationToken()

        logger.info(f"Starting Veo generation with {self._model}")
        logger.debug(f"Prompt: {prompt[:100]}...")

        client = self._credentials.make_client()
        operation = await self._submit_generation_request(client, prompt)
        operation = await self._poll_operation(client, operation, token)

        video = self._extract_video(operation)
        data = await self._fetch_video(video)

        if token.cancelled:
            raise JobCancelled()

        resource = PlayableResource.from_bytes(
            data,
            video.mime_type or "video/mp4",
            self._media_dir,
        )
        logger.info(f"Video generation complete: {resource.path}")
        return VideoResult(resource=resource, prompt=prompt, video_uri=video.uri)

    async def _submit_generation_request(self, client: Any, prompt: str) -> Any:
        """Submit the generation request and return the operation handle."""
        video_config = types.GenerateVideosConfig(
            number_of_videos=1,
            resolution=self._resolution,
            aspect_ratio=self._aspect_ratio,
        )
        if self._output_bucket:
            video_config.output_gcs_uri = self._output_bucket

        try:
            operation = await client.aio.models.generate_videos(
                model=self._model,
                prompt=prompt,
                config=video_config,
            )
        except Exception as e:
            logger.error(f"Failed to submit Veo job: {e}")
            raise JobSubmissionFailed() from e

        logger.info(f"Video operation started: {operation.name}")
        return operation

    async def _poll_operation(
        self,
        client: Any,
        operation: Any,
        token: CancellationToken,
    ) -> Any:
        """Poll an operation until it is done.

        Args:
            client: google-genai client that submitted the operation.
            operation: The operation handle to poll.
            token: Cancellation token honored between polls.

        Returns:
            The finished operation.
        """
        poll_count = 0

        while not operation.done:
            if token.cancelled:
                raise JobCancelled()

            if self._max_poll_attempts is not None and poll_count >= self._max_poll_attempts:
                logger.warning(
                    f"Operation {operation.name} not done after {poll_count} polls"
                )
                raise GenerationTimedOut(
                    f"Video generation did not finish after {poll_count} status checks."
                )

            if await token.sleep(self._poll_interval):
                raise JobCancelled()

            poll_count += 1
            logger.debug(f"Polling Veo status (attempt {poll_count}): {operation.name}")

            try:
                operation = await client.aio.operations.get(operation=operation)
            except Exception as e:
                logger.error(f"Error checking operation status: {e}")
                raise JobSubmissionFailed() from e

        if token.cancelled:
            raise JobCancelled()

        logger.info(f"Operation {operation.name} done after {poll_count} polls")
        return operation

    def _extract_video(self, operation: Any) -> Any:
        """Return the first generated video of a finished operation."""
        error = getattr(operation, "error", None)
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            logger.error(f"Operation {operation.name} failed: {message}")
            raise JobSubmissionFailed(f"Video generation failed: {message}")

        response = getattr(operation, "response", None)
        generated = getattr(response, "generated_videos", None) if response else None

        if not generated:
            filtered = getattr(response, "rai_media_filtered_count", None) if response else None
            if filtered:
                reasons = getattr(response, "rai_media_filtered_reasons", None) or []
                detail = "; ".join(reasons) or "content policy"
                logger.warning(f"Operation {operation.name} filtered: {detail}")
                raise NoVideoProduced(f"The video was blocked by safety filters: {detail}")
            raise NoVideoProduced()

        video = getattr(generated[0], "video", None)
        if video is None or not (video.uri or video.video_bytes):
            raise NoVideoProduced()
        return video

    async def _fetch_video(self, video: Any) -> bytes:
        """Resolve a generated video descriptor to raw bytes."""
        if video.video_bytes:
            return video.video_bytes

        uri = video.uri
        if uri.startswith("gs://"):
            return await asyncio.to_thread(self._download_from_gcs, uri)
        return await asyncio.to_thread(self._download_from_url, uri)

    def _download_from_url(self, uri: str) -> bytes:
        """Fetch a video over HTTP with the submitting API key."""
        params = {} if self._credentials.use_vertex else {"key": self._credentials.api_key}

        logger.info("Downloading generated video")
        try:
            response = requests.get(uri, params=params, timeout=self._download_timeout)
        except requests.RequestException as e:
            logger.error(f"Video download failed: {e}")
            raise DownloadFailed(f"Failed to download video: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Video download error: {response.status_code} {response.reason}")
            raise DownloadFailed(
                f"Failed to download video: {response.status_code} {response.reason}"
            )

        return response.content

    def _download_from_gcs(self, gcs_uri: str) -> bytes:
        """Download a video from GCS.

        Args:
            gcs_uri: GCS URI (gs://bucket/path/to/file).
        """
        uri_parts = gcs_uri[5:].split("/", 1)
        if len(uri_parts) != 2 or not all(uri_parts):
            raise DownloadFailed(f"Invalid GCS URI format: {gcs_uri}")

        bucket_name, blob_name = uri_parts

        try:
            if self._storage_client is None:
                self._storage_client = storage.Client(
                    project=self._credentials.project
                )
            blob = self._storage_client.bucket(bucket_name).blob(blob_name)
            data = blob.download_as_bytes()
        except google_exceptions.NotFound as e:
            logger.error(f"File not found in GCS: {gcs_uri}")
            raise DownloadFailed(f"Generated video not found: {gcs_uri}") from e
        except Exception as e:
            logger.error(f"GCS download failed: {e}")
            raise DownloadFailed(f"Failed to download video: {e}") from e

        logger.debug(f"Downloaded {gcs_uri} ({len(data)} bytes)")
        return data
