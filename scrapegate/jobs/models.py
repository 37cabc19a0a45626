"""Job polling models and types."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from scrapegate.core.config import settings


class JobStatus(str, Enum):
    """Status decoded from one status check."""

    PENDING = "pending"
    COMPLETE = "complete"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PollOptions:
    """Poll cadence and budget.

    Polling is fixed-interval: ``interval`` seconds are slept before every
    status check and there is no backoff.
    """

    interval: float = settings.POLL_INTERVAL_SECONDS
    max_attempts: int = settings.POLL_MAX_ATTEMPTS
    per_poll_timeout: float = settings.POLL_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError("interval must be >= 0")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.per_poll_timeout <= 0:
            raise ValueError("per_poll_timeout must be > 0")


class VideoArtifact(BaseModel):
    """Generated video."""

    url: str
    thumbnail: str | None = None
    duration: float | None = None


class ImageArtifact(BaseModel):
    """Generated image."""

    url: str


class JobResult(BaseModel):
    """Final artifact descriptor of a completed remote job."""

    handle: str
    video: VideoArtifact | None = None
    images: list[ImageArtifact] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    attempts: int = 0
