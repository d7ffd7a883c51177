"""External service integrations."""

from .credentials import CredentialStore
from .gemini import AnalysisClient, FALLBACK_DESCRIPTION
from .veo import VideoJobClient, CancellationToken

__all__ = [
    "CredentialStore",
    "AnalysisClient",
    "FALLBACK_DESCRIPTION",
    "VideoJobClient",
    "CancellationToken",
]
