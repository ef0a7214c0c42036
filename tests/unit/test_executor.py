# tests/unit/test_executor.py
"""
End-to-end executor tests over RunpodClient + httpx MockTransport.

Tests cover:
    - Dispatch for all four operations
    - Uniform ClassifiedError contract
    - Batch execution
"""

import httpx
import pytest

from runpod_flow.api.client import RunpodClient
from runpod_flow.errors import ClassifiedError, ErrorKind
from runpod_flow.jobs.executor import JobExecutor
from runpod_flow.models.jobs import JobRequest, JobStatus, Operation


class FakeRunpod:
    """Minimal in-process RunPod: scripted status sequence per job."""

    def __init__(self, statuses=("COMPLETED",), output=None, run_status="QUEUED"):
        self._statuses = list(statuses)
        self._output = output
        self._run_status = run_status
        self.paths: list[str] = []

    def _job(self, status: str) -> dict:
        body = {"id": "job-1", "status": status}
        if status == "COMPLETED":
            body["output"] = self._output
        return body

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.paths.append(f"{request.method} {path}")
        if path.endswith("/runsync"):
            return httpx.Response(200, json=self._job(self._statuses[-1]))
        if path.endswith("/run"):
            return httpx.Response(200, json=self._job(self._run_status))
        if "/status/" in path:
            status = self._statuses.pop(0) if len(self._statuses) > 1 else self._statuses[0]
            return httpx.Response(200, json=self._job(status))
        return httpx.Response(404, json={"error": "unknown route"})


def _executor(handler, fake_clock) -> JobExecutor:
    client = RunpodClient(api_key="test-key", transport=httpx.MockTransport(handler))
    return JobExecutor(client, sleep=fake_clock.sleep, clock=fake_clock)


class TestScenarios:
    @pytest.mark.asyncio
    async def test_sync_flux_returns_response_unchanged(self, fake_clock):
        response = {"id": "abc", "status": "COMPLETED", "output": {"image_url": "https://cdn/cat.png"}}

        def handler(request):
            return httpx.Response(200, json=response)

        executor = _executor(handler, fake_clock)
        result = await executor.execute(
            JobRequest(model_id="flux-dev", operation=Operation.SYNC, input={"prompt": "a cat"})
        )

        assert result.to_wire() == response

    @pytest.mark.asyncio
    async def test_sync_failed_is_remote_failure(self, fake_clock):
        def handler(request):
            return httpx.Response(200, json={"id": "abc", "status": "FAILED"})

        executor = _executor(handler, fake_clock)
        with pytest.raises(ClassifiedError) as exc_info:
            await executor.execute(
                JobRequest(model_id="flux-dev", operation=Operation.SYNC, input={})
            )
        assert exc_info.value.kind is ErrorKind.REMOTE_FAILURE

    @pytest.mark.asyncio
    async def test_async_wait_whisper_completes(self, fake_clock):
        fake = FakeRunpod(statuses=["QUEUED", "IN_PROGRESS", "COMPLETED"], output={"text": "hi"})
        executor = _executor(fake, fake_clock)
        started = fake_clock.now

        result = await executor.execute(
            JobRequest(
                model_id="whisper-large",
                operation=Operation.ASYNC_WAIT,
                input={"audio": "https://x/a.wav"},
                poll_interval_ms=1000,
                timeout_ms=5000,
            )
        )

        assert result.status is JobStatus.COMPLETED
        assert result.output == {"text": "hi"}
        assert fake_clock.now - started == pytest.approx(3.0)
        assert fake.paths == [
            "POST /v2/whisper-large/run",
            "GET /v2/whisper-large/status/job-1",
            "GET /v2/whisper-large/status/job-1",
            "GET /v2/whisper-large/status/job-1",
        ]

    @pytest.mark.asyncio
    async def test_async_wait_whisper_times_out(self, fake_clock):
        fake = FakeRunpod(statuses=["IN_PROGRESS"])
        executor = _executor(fake, fake_clock)
        started = fake_clock.now

        with pytest.raises(ClassifiedError) as exc_info:
            await executor.execute(
                JobRequest(
                    model_id="whisper-large",
                    operation=Operation.ASYNC_WAIT,
                    input={"audio": "https://x/a.wav"},
                    poll_interval_ms=1000,
                    timeout_ms=5000,
                )
            )

        assert exc_info.value.kind is ErrorKind.TIMEOUT
        assert exc_info.value.context.status == "IN_PROGRESS"
        assert fake_clock.now - started == pytest.approx(5.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "operation,extra",
        [
            (Operation.SYNC, {"input": {}}),
            (Operation.ASYNC_NO_WAIT, {"input": {}}),
            (Operation.ASYNC_WAIT, {"input": {}}),
            (Operation.STATUS_CHECK, {"job_id": "job-1"}),
        ],
    )
    async def test_invalid_api_key_is_unauthorized(self, fake_clock, operation, extra):
        """Every operation surfaces a 401 the same way."""

        def handler(request):
            return httpx.Response(401, json={"error": "Unauthorized"})

        executor = _executor(handler, fake_clock)
        with pytest.raises(ClassifiedError) as exc_info:
            await executor.execute(JobRequest(model_id="flux-dev", operation=operation, **extra))
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED


class TestDispatch:
    @pytest.mark.asyncio
    async def test_async_no_wait_does_not_poll(self, fake_clock):
        fake = FakeRunpod()
        result = await _executor(fake, fake_clock).execute(
            JobRequest(model_id="m", operation=Operation.ASYNC_NO_WAIT, input={})
        )
        assert result.status is JobStatus.QUEUED
        assert fake.paths == ["POST /v2/m/run"]
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_status_check(self, fake_clock):
        fake = FakeRunpod(statuses=["IN_PROGRESS"])
        result = await _executor(fake, fake_clock).execute(
            JobRequest(model_id="m", operation=Operation.STATUS_CHECK, job_id="job-1")
        )
        assert result.status is JobStatus.IN_PROGRESS
        assert fake.paths == ["GET /v2/m/status/job-1"]

    @pytest.mark.asyncio
    async def test_unvalidated_status_check_without_job_id(self, fake_clock):
        fake = FakeRunpod()
        request = JobRequest.model_construct(
            model_id="m", operation=Operation.STATUS_CHECK, input=None, job_id=None
        )

        with pytest.raises(ValueError, match="job_id is required"):
            await _executor(fake, fake_clock).execute(request)
        assert fake.paths == []

    @pytest.mark.asyncio
    async def test_default_input_sent_when_omitted(self, fake_clock):
        sent = []

        def handler(request):
            sent.append(request.content)
            return httpx.Response(200, json={"id": "j", "status": "QUEUED"})

        await _executor(handler, fake_clock).execute(
            JobRequest(model_id="flux-dev", operation=Operation.ASYNC_NO_WAIT)
        )
        assert b'"prompt"' in sent[0]
        assert b'"width"' in sent[0]

    @pytest.mark.asyncio
    async def test_unclassified_exception_is_wrapped(self, fake_clock):
        class BrokenAPI:
            async def run_sync(self, model_id, input):
                raise RuntimeError("bug")

        executor = JobExecutor(BrokenAPI(), sleep=fake_clock.sleep, clock=fake_clock)
        with pytest.raises(ClassifiedError) as exc_info:
            await executor.execute(JobRequest(model_id="m", operation=Operation.SYNC, input={}))
        assert exc_info.value.context.model_id == "m"


class TestExecuteMany:
    @pytest.mark.asyncio
    async def test_results_in_request_order(self, fake_clock):
        def handler(request):
            if "bad" in request.url.path:
                return httpx.Response(403, json={"error": "forbidden"})
            return httpx.Response(200, json={"id": request.url.path.split("/")[2], "status": "QUEUED"})

        executor = _executor(handler, fake_clock)
        requests = [
            JobRequest(model_id=name, operation=Operation.ASYNC_NO_WAIT, input={})
            for name in ("first", "bad", "third")
        ]

        results = await executor.execute_many(requests, concurrency=2)

        assert results[0].id == "first"
        assert isinstance(results[1], ClassifiedError)
        assert results[1].kind is ErrorKind.FORBIDDEN
        assert results[2].id == "third"

    @pytest.mark.asyncio
    async def test_rejects_zero_concurrency(self, fake_clock):
        executor = _executor(FakeRunpod(), fake_clock)
        with pytest.raises(ValueError):
            await executor.execute_many([], concurrency=0)
