"""Workflow status model."""

from enum import Enum
from typing import List, Tuple


class Status(str, Enum):
    """Workflow status enum."""
    IDLE = "idle"
    ANALYZING = "analyzing"
    REVIEW = "review"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


# Presentation steps, in order
STEPS: List[Tuple[Status, str]] = [
    (Status.IDLE, "Upload"),
    (Status.ANALYZING, "Analyze"),
    (Status.REVIEW, "Prompt"),
    (Status.GENERATING, "Generate"),
    (Status.COMPLETED, "Result"),
]


def step_index(status: Status) -> int:
    """Return the 0-based step for a status (errors restart at Upload)."""
    for index, (step_status, _) in enumerate(STEPS):
        if step_status == status:
            return index
    return 0


def step_label(status: Status) -> str:
    """Return the step label shown for a status."""
    return STEPS[step_index(status)][1]
