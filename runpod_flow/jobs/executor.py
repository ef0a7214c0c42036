# runpod_flow/jobs/executor.py
"""
Job executor: the single entry point for running RunPod jobs.

Dispatches a JobRequest to runsync, run, run-and-poll, or status, and
normalizes every path to a JobResult or a ClassifiedError.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Iterable, Protocol, assert_never, cast

from runpod_flow.errors import ClassifiedError, ErrorContext, classify_exception
from runpod_flow.models.jobs import JobRequest, JobResult, Operation

from .polling import PollingOrchestrator

logger = logging.getLogger(__name__)


class RemoteJobAPI(Protocol):
    """Job operations of RunpodClient used by the executor."""

    async def run_sync(self, model_id: str, input: Any) -> JobResult: ...

    async def run_async(self, model_id: str, input: Any) -> JobResult: ...

    async def get_status(self, model_id: str, job_id: str) -> JobResult: ...


class JobExecutor:
    """Executes JobRequests against a RemoteJobAPI."""

    def __init__(
        self,
        api: RemoteJobAPI,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize executor.

        Args:
            api: Job API (RunpodClient)
            sleep: Sleep primitive handed to each PollingOrchestrator
            clock: Time source handed to each PollingOrchestrator
        """
        self._api = api
        self._sleep = sleep
        self._clock = clock

    async def execute(self, request: JobRequest) -> JobResult:
        """
        Execute one job request.

        Args:
            request: Validated job request

        Returns:
            JobResult for the requested operation

        Raises:
            ClassifiedError: For every failure, regardless of operation
            ValueError: If a status check carries no job_id (only possible
                when validation was bypassed, e.g. via model_construct)
        """
        if request.operation is Operation.STATUS_CHECK and not request.job_id:
            raise ValueError("job_id is required for a status check")
        logger.info(f"Executing {request.operation.value} on {request.model_id}")
        try:
            return await self._dispatch(request)
        except ClassifiedError:
            raise
        except Exception as e:
            # Anything unclassified still leaves as a ClassifiedError
            raise classify_exception(
                e, ErrorContext(model_id=request.model_id, job_id=request.job_id)
            ) from e

    async def execute_many(
        self, requests: Iterable[JobRequest], concurrency: int = 4
    ) -> list[JobResult | ClassifiedError]:
        """
        Execute a batch of requests concurrently.

        Each request runs independently; a failure does not affect the others.

        Args:
            requests: Job requests to execute
            concurrency: Maximum number of requests in flight

        Returns:
            One JobResult or ClassifiedError per request, in request order
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        semaphore = asyncio.Semaphore(concurrency)

        async def _run_one(request: JobRequest) -> JobResult | ClassifiedError:
            async with semaphore:
                try:
                    return await self.execute(request)
                except ClassifiedError as e:
                    logger.error(
                        f"Job {request.operation.value} on {request.model_id} failed: {e}",
                        extra={"model_id": request.model_id, "job_id": e.context.job_id},
                    )
                    return e

        return list(await asyncio.gather(*(_run_one(r) for r in requests)))

    async def _dispatch(self, request: JobRequest) -> JobResult:
        match request.operation:
            case Operation.SYNC:
                return await self._api.run_sync(request.model_id, request.input)
            case Operation.ASYNC_NO_WAIT:
                return await self._api.run_async(request.model_id, request.input)
            case Operation.ASYNC_WAIT:
                orchestrator = PollingOrchestrator(
                    self._api,
                    poll_interval=request.poll_interval_s,
                    timeout=request.timeout_s,
                    sleep=self._sleep,
                    clock=self._clock,
                )
                return await orchestrator.run(request.model_id, request.input)
            case Operation.STATUS_CHECK:
                return await self._api.get_status(request.model_id, cast(str, request.job_id))
            case _:
                assert_never(request.operation)
