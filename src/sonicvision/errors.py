"""Workflow error taxonomy.

Clients translate transport and parsing failures into these exceptions
before they reach the coordinator, which maps each one onto a state
transition and keeps the instance as the current error state.
"""

from typing import Optional


class WorkflowError(Exception):
    """Base class for every recoverable workflow failure."""

    default_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        """Return the taxonomy name of this error."""
        return type(self).__name__


class OversizedInput(WorkflowError):
    default_message = "File is too large. Please upload an MP3 under 8MB."

    @classmethod
    def for_limit(cls, size: int, limit: int) -> "OversizedInput":
        megabytes = limit / (1024 * 1024)
        return cls(
            f"File is too large ({size} bytes). "
            f"Please upload an audio file under {megabytes:g}MB."
        )


class UnsupportedAudioType(WorkflowError):
    default_message = "Unsupported file type. Please upload an MP3 or WAV file."


class AnalysisFailed(WorkflowError):
    default_message = (
        "Failed to analyze audio. Please try a different file or check your connection."
    )


class JobSubmissionFailed(WorkflowError):
    default_message = (
        "Video generation failed. Please ensure you are using a paid billing "
        "project enabled for Veo."
    )


class GenerationTimedOut(JobSubmissionFailed):
    default_message = "Video generation did not finish in time."


class JobCancelled(JobSubmissionFailed):
    default_message = "Video generation was cancelled."


class NoVideoProduced(WorkflowError):
    default_message = "No video was returned from generation."


class DownloadFailed(WorkflowError):
    default_message = "Failed to download the generated video."


class CredentialMissing(WorkflowError):
    default_message = "No API key selected. Connect an API key to continue."


class UnexpectedFailure(WorkflowError):
    default_message = "An unexpected error occurred. Please start over."
