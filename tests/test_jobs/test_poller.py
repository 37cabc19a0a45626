"""Tests for the submit-then-poll job client."""

import asyncio
from typing import Any

import httpx
import pytest

from scrapegate.core.exceptions import PollTimeoutError, ResultParseError, SubmissionError
from scrapegate.jobs import ImageArtifact, JobResult, JobStatus, PollOptions
from tests.fixtures.jobs import ScriptedPoller


@pytest.mark.asyncio
async def test_submit_returns_handle() -> None:
    poller = ScriptedPoller([], handle="abc")
    assert await poller.submit({"prompt": "x"}) == "abc"
    assert poller.create_calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("handle", [None, "", "   "])
async def test_submit_without_handle_raises(handle: str | None) -> None:
    poller = ScriptedPoller([], handle=handle)
    with pytest.raises(SubmissionError):
        await poller.submit({})


@pytest.mark.asyncio
async def test_submit_transport_error_is_submission_error() -> None:
    poller = ScriptedPoller([], create_error=httpx.ConnectError("refused"))
    with pytest.raises(SubmissionError) as exc_info:
        await poller.submit({})
    assert exc_info.value.details["service"] == "scripted"
    # No automatic retry
    assert poller.create_calls == 1


@pytest.mark.asyncio
async def test_submit_status_error_keeps_upstream_cause() -> None:
    request = httpx.Request("POST", "https://remote/create")
    response = httpx.Response(503, json={"message": "busy"}, request=request)
    error = httpx.HTTPStatusError("busy", request=request, response=response)
    poller = ScriptedPoller([], create_error=error)

    with pytest.raises(SubmissionError) as exc_info:
        await poller.submit({})

    assert exc_info.value.details["upstreamStatus"] == 503
    assert exc_info.value.details["upstreamMessage"] == "busy"


@pytest.mark.asyncio
async def test_always_pending_times_out_after_max_attempts() -> None:
    options = PollOptions(interval=0.25, max_attempts=4, per_poll_timeout=1.0)
    poller = ScriptedPoller([JobStatus.PENDING] * 10, options=options)

    with pytest.raises(PollTimeoutError) as exc_info:
        await poller.poll_until_done("job-1")

    assert poller.check_calls == 4
    assert poller.sleeps == [0.25] * 4
    assert exc_info.value.attempts == 4
    assert exc_info.value.details == {"handle": "job-1", "attempts": 4}


@pytest.mark.asyncio
async def test_interval_is_slept_before_each_check() -> None:
    poller = ScriptedPoller([JobStatus.PENDING, JobStatus.COMPLETE])
    await poller.poll_until_done("job-1")
    assert poller.events == ["sleep", "check", "sleep", "check"]


@pytest.mark.asyncio
@pytest.mark.parametrize("n", [1, 3, 5])
async def test_completes_after_exactly_n_checks(n: int) -> None:
    replies = [JobStatus.PENDING] * (n - 1) + [JobStatus.COMPLETE]
    poller = ScriptedPoller(replies)

    result = await poller.poll_until_done("job-1")

    assert poller.check_calls == n
    assert result.attempts == n
    assert result.video is not None
    assert result.video.url == "https://x/job-1.mp4"


@pytest.mark.asyncio
async def test_transient_errors_do_not_abort_polling() -> None:
    replies = [
        httpx.ReadTimeout("slow"),
        ValueError("not json"),
        JobStatus.UNKNOWN,
        JobStatus.COMPLETE,
    ]
    poller = ScriptedPoller(replies)

    result = await poller.poll_until_done("job-1")

    assert poller.check_calls == 4
    assert result.attempts == 4


@pytest.mark.asyncio
async def test_status_call_timeout_is_inconclusive() -> None:
    class SlowPoller(ScriptedPoller):
        async def _check(self, client, handle):  # type: ignore[no-untyped-def]
            if self.check_calls == 0:
                self.check_calls += 1
                await asyncio.sleep(1)
            return await super()._check(client, handle)

    options = PollOptions(interval=0, max_attempts=3, per_poll_timeout=0.01)
    poller = SlowPoller([JobStatus.COMPLETE], options=options)

    result = await poller.poll_until_done("job-1")

    assert result.attempts == 2


@pytest.mark.asyncio
async def test_run_submits_then_polls() -> None:
    poller = ScriptedPoller([JobStatus.COMPLETE], handle="task-9")

    result = await poller.run({"prompt": "x"})

    assert poller.events == ["create", "sleep", "check"]
    assert result.handle == "task-9"


@pytest.mark.asyncio
async def test_run_does_not_poll_after_failed_submission() -> None:
    poller = ScriptedPoller([JobStatus.COMPLETE], handle=None)

    with pytest.raises(SubmissionError):
        await poller.run({})

    assert poller.check_calls == 0
    assert poller.sleeps == []


@pytest.mark.asyncio
async def test_options_override_client_defaults() -> None:
    poller = ScriptedPoller([])
    options = PollOptions(interval=0.1, max_attempts=2, per_poll_timeout=1.0)

    with pytest.raises(PollTimeoutError):
        await poller.poll_until_done("job-1", options)

    assert poller.check_calls == 2
    assert poller.sleeps == [0.1, 0.1]


@pytest.mark.asyncio
async def test_cancellation_propagates() -> None:
    class BlockingPoller(ScriptedPoller):
        async def _record_sleep(self, seconds: float) -> None:
            await asyncio.sleep(10)

    poller = BlockingPoller([])
    task = asyncio.create_task(poller.poll_until_done("job-1"))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


class BadImagePoller(ScriptedPoller):
    def _parse_result(self, handle: str, payload: Any) -> JobResult:
        return JobResult(handle=handle, images=[ImageArtifact(url=None)])  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_invalid_result_fields_raise_result_parse_error() -> None:
    poller = BadImagePoller([JobStatus.COMPLETE])

    with pytest.raises(ResultParseError) as exc_info:
        await poller.poll_until_done("job-1")

    assert exc_info.value.details == {"handle": "job-1"}
    assert poller.check_calls == 1
