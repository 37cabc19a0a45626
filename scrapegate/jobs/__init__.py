"""Remote job submission and polling."""

from scrapegate.jobs.models import (
    ImageArtifact,
    JobResult,
    JobStatus,
    PollOptions,
    VideoArtifact,
)
from scrapegate.jobs.poller import AsyncJobPoller

__all__ = [
    "AsyncJobPoller",
    "ImageArtifact",
    "JobResult",
    "JobStatus",
    "PollOptions",
    "VideoArtifact",
]
