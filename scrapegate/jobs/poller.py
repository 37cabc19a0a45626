"""Submit-then-poll client for remote job APIs.

A remote job goes ``SUBMITTED -> POLLING -> COMPLETED | TIMED_OUT``, or
fails straight away with ``SUBMISSION_FAILED``. Polling is the only loop:
a failed or timed out status check is inconclusive and simply moves on to
the next attempt. The budget is ``PollOptions.max_attempts`` status checks
with a fixed ``interval`` slept before each one.

Cancelling the awaiting task stops the local wait only; the remote job is
left running.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import ValidationError as ModelValidationError

from scrapegate.core.config import settings
from scrapegate.core.events import POLL_ATTEMPTS, UPSTREAM_CALLS
from scrapegate.core.exceptions import (
    PollTimeoutError,
    ResultParseError,
    SubmissionError,
)
from scrapegate.core.logging import get_logger
from scrapegate.jobs.models import JobResult, JobStatus, PollOptions
from scrapegate.services.utils import get_scraper_headers, to_upstream_error

logger = get_logger("scrapegate.jobs.poller")

Sleep = Callable[[float], Awaitable[Any]]


class AsyncJobPoller(ABC):
    """Base class for job-based remote APIs.

    Subclasses implement the remote-specific hooks; ``submit``,
    ``poll_until_done`` and ``run`` stay generic.
    """

    name: str = "job"
    default_options: PollOptions | None = None

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        options: PollOptions | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the poller.

        Args:
            headers: HTTP headers sent with every call
            timeout: Timeout in seconds for the job creation call
            options: Poll cadence, defaults to ``default_options``
            sleep: Awaitable sleep used between status checks
        """
        self.headers = headers if headers is not None else get_scraper_headers()
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self.options = options or self.default_options or PollOptions()
        self._sleep = sleep

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self.headers, timeout=timeout, follow_redirects=True
        )

    @abstractmethod
    async def _create(self, client: httpx.AsyncClient, request: dict[str, Any]) -> Any:
        """Issue the job creation call and return the decoded response."""
        raise NotImplementedError

    @abstractmethod
    def _extract_handle(self, payload: Any, request: dict[str, Any]) -> str | None:
        """Return the job handle from the creation response, if present."""
        raise NotImplementedError

    @abstractmethod
    async def _check(self, client: httpx.AsyncClient, handle: str) -> Any:
        """Issue one status call and return the decoded response."""
        raise NotImplementedError

    @abstractmethod
    def _status(self, payload: Any) -> JobStatus:
        """Decode the completion state of a status payload."""
        raise NotImplementedError

    @abstractmethod
    def _parse_result(self, handle: str, payload: Any) -> JobResult:
        """Decode a completed status payload.

        Raises:
            ResultParseError: If the payload is malformed
        """
        raise NotImplementedError

    async def submit(self, request: dict[str, Any]) -> str:
        """Create a remote job.

        Args:
            request: Fully validated job payload

        Returns:
            Non-empty job handle

        Raises:
            SubmissionError: If the call fails or no handle is returned
        """
        try:
            async with self._client(self.timeout) as client:
                payload = await self._create(client, request)
        except httpx.HTTPError as e:
            UPSTREAM_CALLS.labels(service=self.name, outcome="error").inc()
            raise to_upstream_error(e, self.name, SubmissionError) from e
        except ValueError as e:
            UPSTREAM_CALLS.labels(service=self.name, outcome="error").inc()
            raise SubmissionError(
                f"{self.name} returned an unreadable job creation response",
                {"service": self.name},
            ) from e

        handle = self._extract_handle(payload, request)
        if handle is None or not str(handle).strip():
            UPSTREAM_CALLS.labels(service=self.name, outcome="error").inc()
            raise SubmissionError(
                f"{self.name} did not return a job handle", {"service": self.name}
            )

        UPSTREAM_CALLS.labels(service=self.name, outcome="ok").inc()
        logger.info("job_submitted", client=self.name, handle=str(handle))
        return str(handle)

    async def poll_until_done(
        self, handle: str, options: PollOptions | None = None
    ) -> JobResult:
        """Wait for a submitted job to complete.

        Args:
            handle: Handle returned by ``submit``
            options: Poll cadence, defaults to the client's options

        Returns:
            Decoded job result

        Raises:
            PollTimeoutError: If no completion is seen within the budget
            ResultParseError: If the completion payload is malformed
        """
        options = options or self.options

        async with self._client(options.per_poll_timeout) as client:
            for attempt in range(1, options.max_attempts + 1):
                await self._sleep(options.interval)

                try:
                    payload = await asyncio.wait_for(
                        self._check(client, handle), timeout=options.per_poll_timeout
                    )
                    status = self._status(payload)
                except Exception as e:
                    POLL_ATTEMPTS.labels(client=self.name, outcome="error").inc()
                    logger.debug(
                        "job_poll_inconclusive",
                        client=self.name,
                        handle=handle,
                        attempt=attempt,
                        error=repr(e),
                    )
                    continue

                if status is not JobStatus.COMPLETE:
                    POLL_ATTEMPTS.labels(client=self.name, outcome=status.value).inc()
                    continue

                POLL_ATTEMPTS.labels(client=self.name, outcome="complete").inc()
                try:
                    result = self._parse_result(handle, payload)
                except ModelValidationError as e:
                    raise ResultParseError(
                        f"{self.name} returned malformed result metadata",
                        {"handle": handle},
                    ) from e
                result.attempts = attempt
                logger.info(
                    "job_completed", client=self.name, handle=handle, attempts=attempt
                )
                return result

        logger.warning(
            "job_poll_timeout",
            client=self.name,
            handle=handle,
            attempts=options.max_attempts,
        )
        raise PollTimeoutError(
            f"{self.name} generation timed out, please try again",
            handle=handle,
            attempts=options.max_attempts,
        )

    async def run(
        self, request: dict[str, Any], options: PollOptions | None = None
    ) -> JobResult:
        """Submit a job and wait for its result."""
        handle = await self.submit(request)
        return await self.poll_until_done(handle, options)
