"""Playable media models."""

import base64
import logging
import mimetypes
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PlayableResource:
    """A locally playable media file owned by the workflow.

    The file lives until ``release`` is called. Releasing is idempotent:
    a second call, or a call after the file vanished, does nothing.
    """

    def __init__(self, path: Path, mime_type: str) -> None:
        self._path = path
        self._mime_type = mime_type
        self._released = False

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        mime_type: str,
        directory: Optional[Path] = None,
    ) -> "PlayableResource":
        """Write ``data`` to a new temporary file and wrap it.

        Args:
            data: Raw media bytes.
            mime_type: MIME type of the media, used to pick a file suffix.
            directory: Where to create the file. Defaults to the system temp dir.

        Returns:
            A new, unreleased PlayableResource.
        """
        suffix = mimetypes.guess_extension(mime_type) or ""
        if directory is not None:
            directory.mkdir(parents=True, exist_ok=True)

        fd, name = tempfile.mkstemp(
            prefix="sonic-vision-",
            suffix=suffix,
            dir=str(directory) if directory else None,
        )
        with os.fdopen(fd, "wb") as f:
            f.write(data)

        logger.debug(f"Created playable resource {name} ({len(data)} bytes)")
        return cls(Path(name), mime_type)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def mime_type(self) -> str:
        return self._mime_type

    @property
    def url(self) -> str:
        """Return a file URI a media player can open."""
        return self._path.resolve().as_uri()

    @property
    def released(self) -> bool:
        return self._released

    def read_bytes(self) -> bytes:
        if self._released:
            raise ValueError(f"Resource already released: {self._path}")
        return self._path.read_bytes()

    def release(self) -> None:
        """Delete the backing file."""
        if self._released:
            return
        self._released = True
        try:
            self._path.unlink(missing_ok=True)
            logger.debug(f"Released playable resource {self._path}")
        except OSError as e:
            logger.warning(f"Failed to remove {self._path}: {e}")

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"PlayableResource({str(self._path)!r}, {self._mime_type!r}, {state})"


class AudioInput(BaseModel):
    """An uploaded audio clip."""

    name: str = Field(..., description="Original file name")
    mime_type: str = Field(..., description="Audio MIME type")
    base64_data: str = Field(..., description="Base64-encoded audio payload")
    resource: PlayableResource = Field(..., description="Local playable copy of the audio")

    class Config:
        """Pydantic config."""
        frozen = True
        arbitrary_types_allowed = True

    @classmethod
    def from_upload(
        cls,
        name: str,
        mime_type: str,
        data: bytes,
        directory: Optional[Path] = None,
    ) -> "AudioInput":
        """Build an AudioInput from raw uploaded bytes."""
        return cls(
            name=name,
            mime_type=mime_type,
            base64_data=base64.b64encode(data).decode("ascii"),
            resource=PlayableResource.from_bytes(data, mime_type, directory),
        )


class VideoResult(BaseModel):
    """A generated video ready to play."""

    resource: PlayableResource = Field(..., description="Local playable copy of the video")
    prompt: str = Field(..., description="Prompt the video was generated from")
    video_uri: Optional[str] = Field(None, description="Remote reference of the generated video")

    class Config:
        """Pydantic config."""
        frozen = True
        arbitrary_types_allowed = True
