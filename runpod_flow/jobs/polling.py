# runpod_flow/jobs/polling.py
"""
Polling orchestrator for asynchronous RunPod jobs.

Submits a job with /run and polls /status until the job reaches a terminal
state or the local timeout budget runs out.

Known limitations:
    - No retry or backoff while polling: a failed status call ends the run.
    - A local timeout does not cancel the remote job, which may keep running.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol

from runpod_flow.errors import ErrorContext, remote_failure, timed_out
from runpod_flow.models.jobs import JobResult

logger = logging.getLogger(__name__)


class JobAPI(Protocol):
    """The subset of RunpodClient the orchestrator needs."""

    async def run_async(self, model_id: str, input: Any) -> JobResult: ...

    async def get_status(self, model_id: str, job_id: str) -> JobResult: ...


class PollState(Enum):
    """Orchestrator lifecycle states."""

    SUBMITTED = "submitted"
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


_STATE_FOR_STATUS = {
    "QUEUED": PollState.QUEUED,
    "IN_PROGRESS": PollState.IN_PROGRESS,
    "COMPLETED": PollState.COMPLETED,
}


class PollingOrchestrator:
    """
    Drives one asynchronous job from submission to a terminal state.

    At least one status poll always happens before a timeout is declared,
    even when the timeout is shorter than the poll interval.
    """

    def __init__(
        self,
        api: JobAPI,
        poll_interval: float,
        timeout: float,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            api: Job API (RunpodClient)
            poll_interval: Seconds to wait before each status poll
            timeout: Seconds before the run is abandoned locally
            sleep: Cooperative sleep primitive (injectable for tests)
            clock: Monotonic time source (injectable for tests)
        """
        self._api = api
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._sleep = sleep
        self._clock = clock
        self._state = PollState.SUBMITTED
        self._polls = 0

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def polls(self) -> int:
        """Number of status polls issued so far."""
        return self._polls

    async def run(self, model_id: str, input: Any) -> JobResult:
        """
        Submit a job and wait for it to finish.

        Args:
            model_id: RunPod endpoint/model identifier
            input: JSON job input

        Returns:
            The COMPLETED JobResult

        Raises:
            ClassifiedError: REMOTE_FAILURE if the job fails, TIMEOUT if the
                budget runs out first, or any error from a poll (not retried)
        """
        started = self._clock()
        self._state = PollState.SUBMITTED
        self._polls = 0

        result = await self._api.run_async(model_id, input)
        job_id = result.id
        self._advance(result)

        # Remote short-circuited to a terminal state: no polling needed
        if result.status.is_terminal:
            return self._finish(model_id, result)

        logger.info(
            f"Polling job {job_id} on {model_id} every {self._poll_interval:g}s "
            f"(timeout {self._timeout:g}s)"
        )

        while True:
            await self._sleep(self._poll_interval)
            result = await self._api.get_status(model_id, job_id)
            self._polls += 1
            self._advance(result)

            if result.status.is_terminal:
                return self._finish(model_id, result)

            elapsed = self._clock() - started
            if elapsed >= self._timeout:
                self._state = PollState.TIMED_OUT
                logger.warning(
                    f"Job {job_id} on {model_id} timed out after {elapsed:.1f}s "
                    f"({self._polls} polls, last status {result.status.value}); "
                    f"remote job was not cancelled",
                    extra={"model_id": model_id, "job_id": job_id, "job_status": result.status.value},
                )
                raise timed_out(
                    elapsed,
                    self._timeout,
                    ErrorContext(model_id=model_id, job_id=job_id, status=result.status.value),
                )

            logger.debug(f"Job {job_id}: {result.status.value} after {elapsed:.1f}s")

    def _advance(self, result: JobResult) -> None:
        self._state = _STATE_FOR_STATUS.get(result.status.value, PollState.FAILED)

    def _finish(self, model_id: str, result: JobResult) -> JobResult:
        if result.status.is_failure:
            logger.warning(
                f"Job {result.id} on {model_id} ended with {result.status.value}",
                extra={"model_id": model_id, "job_id": result.id, "job_status": result.status.value},
            )
            raise remote_failure(
                result.error,
                ErrorContext(model_id=model_id, job_id=result.id, status=result.status.value),
            )
        logger.info(
            f"Job {result.id} on {model_id} completed after {self._polls} polls",
            extra={"model_id": model_id, "job_id": result.id},
        )
        return result
