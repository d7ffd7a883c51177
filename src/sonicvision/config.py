"""Configuration management."""

import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


def _env_optional_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    if raw.strip().lower() in ("none", "unbounded"):
        return None
    return int(raw)


class Config(BaseModel):
    """Application configuration."""

    # Credentials
    gemini_api_key: str = Field(
        default_factory=lambda: (
            os.getenv("GEMINI_API_KEY")
            or os.getenv("GOOGLE_API_KEY")
            or os.getenv("API_KEY", "")
        ),
        description="Gemini API key (used for analysis, Veo and video downloads)"
    )
    use_vertex: bool = Field(
        default_factory=lambda: _env_flag("GOOGLE_GENAI_USE_VERTEXAI"),
        description="Route requests through Vertex AI instead of the Gemini API"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID (Vertex AI mode)"
    )
    google_cloud_location: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
        description="Vertex AI region"
    )
    veo_output_bucket: str = Field(
        default_factory=lambda: os.getenv("VEO_OUTPUT_BUCKET", ""),
        description="Optional GCS bucket for Veo output (Vertex AI mode)"
    )

    # Model settings
    analysis_model: str = Field(
        default_factory=lambda: os.getenv("SONIC_VISION_ANALYSIS_MODEL", "gemini-2.5-flash"),
        description="Multimodal model used to describe the audio"
    )
    video_model: str = Field(
        default_factory=lambda: os.getenv("SONIC_VISION_VIDEO_MODEL", "veo-3.1-fast-generate-preview"),
        description="Veo model used to render the scene"
    )
    resolution: str = Field(default="720p", description="Generated video resolution")
    aspect_ratio: str = Field(default="16:9", description="Generated video aspect ratio")

    # Polling
    poll_interval: float = Field(
        default_factory=lambda: float(os.getenv("SONIC_VISION_POLL_INTERVAL", "10")),
        description="Seconds between Veo operation polls",
        ge=0,
    )
    max_poll_attempts: Optional[int] = Field(
        default_factory=lambda: _env_optional_int("SONIC_VISION_MAX_POLL_ATTEMPTS", 60),
        description="Maximum polls before giving up (None polls until done)"
    )
    download_timeout: float = Field(
        default=120.0,
        description="Seconds to wait for the generated video download"
    )

    # Input limits
    max_audio_bytes: int = Field(
        default=8 * 1024 * 1024,
        description="Largest accepted audio upload in bytes"
    )
    accepted_mime_types: List[str] = Field(
        default_factory=lambda: [
            "audio/mpeg",
            "audio/mp3",
            "audio/wav",
            "audio/x-wav",
            "audio/wave",
        ],
        description="Audio MIME types accepted for analysis"
    )

    # Paths
    media_dir: Optional[Path] = Field(
        default_factory=lambda: Path(os.environ["SONIC_VISION_MEDIA_DIR"])
        if os.getenv("SONIC_VISION_MEDIA_DIR") else None,
        description="Directory for temporary playable media (system temp if unset)"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def validate_required(self) -> None:
        """Validate that the credentials for the selected backend are set.

        Raises:
            ValueError: If any required configuration is missing.
        """
        missing: list[str] = []

        if self.use_vertex:
            if not self.google_cloud_project:
                missing.append("GOOGLE_CLOUD_PROJECT")
        elif not self.gemini_api_key:
            missing.append("GEMINI_API_KEY")

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                "Set the corresponding environment variables."
            )

        # Validate bucket format
        if self.veo_output_bucket and not self.veo_output_bucket.startswith("gs://"):
            raise ValueError(
                f"VEO_OUTPUT_BUCKET must be a GCS URI starting with 'gs://'. "
                f"Got: {self.veo_output_bucket}"
            )


# Global config instance
config = Config()
