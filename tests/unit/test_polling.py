# tests/unit/test_polling.py
"""Tests for PollingOrchestrator using a fake clock and scripted job API."""

import logging
import math

import pytest

from runpod_flow.errors import ClassifiedError, ErrorKind
from runpod_flow.jobs.polling import PollingOrchestrator, PollState
from runpod_flow.models.jobs import JobResult, JobStatus


class ScriptedAPI:
    """Job API double: run_async returns `submitted`, polls walk `statuses`."""

    def __init__(self, submitted: str = "QUEUED", statuses=(), output=None):
        self._submitted = submitted
        self._statuses = list(statuses)
        self._output = output
        self.submissions: list[tuple[str, object]] = []
        self.polls: list[tuple[str, str]] = []

    def _result(self, status) -> JobResult:
        if isinstance(status, Exception):
            raise status
        payload = {"id": "job-1", "status": status}
        if status == "COMPLETED":
            payload["output"] = self._output
        if status == "FAILED":
            payload["error"] = "worker crashed"
        return JobResult.model_validate(payload)

    async def run_async(self, model_id, input):
        self.submissions.append((model_id, input))
        return self._result(self._submitted)

    async def get_status(self, model_id, job_id):
        self.polls.append((model_id, job_id))
        status = self._statuses.pop(0) if len(self._statuses) > 1 else self._statuses[0]
        return self._result(status)


def _orchestrator(api, fake_clock, interval=1.0, timeout=5.0) -> PollingOrchestrator:
    return PollingOrchestrator(
        api,
        poll_interval=interval,
        timeout=timeout,
        sleep=fake_clock.sleep,
        clock=fake_clock,
    )


class TestCompletion:
    @pytest.mark.asyncio
    async def test_completes_on_third_poll(self, fake_clock):
        """QUEUED → IN_PROGRESS → COMPLETED at ~3s with a 5s budget."""
        api = ScriptedAPI(
            statuses=["QUEUED", "IN_PROGRESS", "COMPLETED"], output={"text": "hello"}
        )
        orchestrator = _orchestrator(api, fake_clock)

        result = await orchestrator.run("whisper-large", {"audio": "x"})

        assert result.status is JobStatus.COMPLETED
        assert result.output == {"text": "hello"}
        assert orchestrator.polls == 3
        assert orchestrator.state is PollState.COMPLETED
        assert fake_clock.sleeps == [1.0, 1.0, 1.0]
        assert api.submissions == [("whisper-large", {"audio": "x"})]
        assert api.polls == [("whisper-large", "job-1")] * 3

    @pytest.mark.asyncio
    async def test_terminal_submission_skips_polling(self, fake_clock):
        api = ScriptedAPI(submitted="COMPLETED", statuses=["IN_PROGRESS"], output=[1, 2])
        orchestrator = _orchestrator(api, fake_clock)

        result = await orchestrator.run("m", {})

        assert result.output == [1, 2]
        assert api.polls == []
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_failed_submission_skips_polling(self, fake_clock):
        api = ScriptedAPI(submitted="FAILED", statuses=["IN_PROGRESS"])
        orchestrator = _orchestrator(api, fake_clock)

        with pytest.raises(ClassifiedError) as exc_info:
            await orchestrator.run("m", {})

        assert exc_info.value.kind is ErrorKind.REMOTE_FAILURE
        assert api.polls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("interval,timeout", [(1.0, 5.0), (0.25, 5.0), (3.0, 10.0), (10.0, 600.0)])
    async def test_poll_count_bounds(self, fake_clock, interval, timeout):
        """Completion just before the deadline stays within ceil(T/I) + 1 polls."""
        last_poll_before_deadline = math.ceil(timeout / interval) - 1
        statuses = ["IN_PROGRESS"] * (last_poll_before_deadline - 1) + ["COMPLETED"]
        api = ScriptedAPI(statuses=statuses or ["COMPLETED"], output="ok")
        orchestrator = _orchestrator(api, fake_clock, interval=interval, timeout=timeout)

        result = await orchestrator.run("m", {})

        assert result.status is JobStatus.COMPLETED
        assert 1 <= orchestrator.polls <= math.ceil(timeout / interval) + 1


class TestFailure:
    @pytest.mark.asyncio
    async def test_failed_job_raises_remote_failure(self, fake_clock):
        api = ScriptedAPI(statuses=["IN_PROGRESS", "FAILED"])
        orchestrator = _orchestrator(api, fake_clock)

        with pytest.raises(ClassifiedError) as exc_info:
            await orchestrator.run("flux-dev", {})

        error = exc_info.value
        assert error.kind is ErrorKind.REMOTE_FAILURE
        assert error.message == "worker crashed"
        assert error.context.job_id == "job-1"
        assert error.context.status == "FAILED"
        assert orchestrator.state is PollState.FAILED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["CANCELLED", "TIMED_OUT"])
    async def test_other_terminal_failures(self, fake_clock, status):
        api = ScriptedAPI(statuses=[status])
        with pytest.raises(ClassifiedError) as exc_info:
            await _orchestrator(api, fake_clock).run("m", {})
        assert exc_info.value.kind is ErrorKind.REMOTE_FAILURE
        assert exc_info.value.context.status == status

    @pytest.mark.asyncio
    async def test_poll_error_propagates_without_retry(self, fake_clock):
        api = ScriptedAPI(
            statuses=["IN_PROGRESS", ClassifiedError(ErrorKind.NETWORK, "502"), "COMPLETED"]
        )
        orchestrator = _orchestrator(api, fake_clock)

        with pytest.raises(ClassifiedError) as exc_info:
            await orchestrator.run("m", {})

        assert exc_info.value.kind is ErrorKind.NETWORK
        assert len(api.polls) == 2


class TestTimeout:
    @pytest.mark.asyncio
    async def test_never_terminal_times_out(self, fake_clock):
        """Stuck IN_PROGRESS fails with TIMEOUT after ~5s, carrying the last status."""
        api = ScriptedAPI(statuses=["QUEUED", "IN_PROGRESS"])
        orchestrator = _orchestrator(api, fake_clock, interval=1.0, timeout=5.0)
        started = fake_clock.now

        with pytest.raises(ClassifiedError) as exc_info:
            await orchestrator.run("whisper-large", {})

        error = exc_info.value
        assert error.kind is ErrorKind.TIMEOUT
        assert error.context.status == "IN_PROGRESS"
        assert error.context.job_id == "job-1"
        assert error.context.model_id == "whisper-large"
        assert fake_clock.now - started == pytest.approx(5.0)
        assert orchestrator.polls == 5
        assert orchestrator.state is PollState.TIMED_OUT

    @pytest.mark.asyncio
    async def test_timeout_shorter_than_interval_polls_once(self, fake_clock):
        api = ScriptedAPI(statuses=["IN_PROGRESS"])
        orchestrator = _orchestrator(api, fake_clock, interval=10.0, timeout=5.0)

        with pytest.raises(ClassifiedError) as exc_info:
            await orchestrator.run("m", {})

        assert exc_info.value.kind is ErrorKind.TIMEOUT
        assert orchestrator.polls == 1

    @pytest.mark.asyncio
    async def test_instant_completion_with_short_timeout(self, fake_clock):
        """The single guaranteed poll can still observe completion."""
        api = ScriptedAPI(statuses=["COMPLETED"], output="done")
        orchestrator = _orchestrator(api, fake_clock, interval=10.0, timeout=5.0)

        result = await orchestrator.run("m", {})
        assert result.output == "done"
        assert orchestrator.polls == 1

    @pytest.mark.asyncio
    async def test_timeout_counts_submission_time(self, fake_clock):
        """Elapsed time is measured from before submission."""

        class SlowSubmitAPI(ScriptedAPI):
            async def run_async(self, model_id, input):
                fake_clock.advance(4.5)
                return await super().run_async(model_id, input)

        api = SlowSubmitAPI(statuses=["IN_PROGRESS"])
        orchestrator = _orchestrator(api, fake_clock, interval=1.0, timeout=5.0)

        with pytest.raises(ClassifiedError):
            await orchestrator.run("m", {})
        assert orchestrator.polls == 1

    @pytest.mark.asyncio
    async def test_timeout_warning_carries_job_context(self, fake_clock, caplog):
        api = ScriptedAPI(statuses=["IN_PROGRESS"])
        orchestrator = _orchestrator(api, fake_clock, interval=1.0, timeout=2.0)

        with caplog.at_level(logging.WARNING, logger="runpod_flow.jobs.polling"):
            with pytest.raises(ClassifiedError):
                await orchestrator.run("whisper-large", {})

        record = next(r for r in caplog.records if "timed out" in r.getMessage())
        assert record.model_id == "whisper-large"
        assert record.job_id == "job-1"
        assert record.job_status == "IN_PROGRESS"
