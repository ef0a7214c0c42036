# runpod_flow/api/client.py
"""
RunPod serverless client.

Thin async binding for the job endpoints (runsync, run, status) and the
GraphQL model registry. Each operation is one outbound call; failures are
always raised as ClassifiedError.
"""

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx
from tenacity import AsyncRetrying

from runpod_flow.catalog.categorizer import categorize
from runpod_flow.errors import (
    ClassifiedError,
    ErrorContext,
    ErrorKind,
    classify_exception,
    classify_response,
    malformed,
    remote_failure,
)
from runpod_flow.models.catalog import ModelCategory, ModelDescriptor
from runpod_flow.models.jobs import JobResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.runpod.ai/v2"
DEFAULT_GRAPHQL_URL = "https://api.runpod.io/graphql"

MODELS_QUERY = "query Endpoints { myself { endpoints { id name } } }"

_NOT_FOUND_MARKERS = ("not found", "does not exist")


class RunpodClient:
    """
    Async client for RunPod serverless endpoints.

    The underlying httpx.AsyncClient is created on first use and released by
    close() (or by leaving an ``async with`` block). Pass ``transport`` to
    route requests through a custom httpx transport.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        graphql_url: str = DEFAULT_GRAPHQL_URL,
        timeout: float = 300.0,
        retry_policy: AsyncRetrying | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize RunPod client.

        Args:
            api_key: RunPod API key (only used to build the auth header)
            base_url: Serverless API base URL, without trailing slash
            graphql_url: GraphQL endpoint used for model discovery
            timeout: Transport ceiling in seconds for any single request
            retry_policy: Optional tenacity policy for job calls (off by default)
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.graphql_url = graphql_url
        self._timeout = timeout
        self._retry_policy = retry_policy
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def __repr__(self) -> str:
        return f"RunpodClient(base_url={self.base_url!r}, timeout={self._timeout})"

    @property
    def http(self) -> httpx.AsyncClient:
        """Lazy-loaded httpx client."""
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._http

    async def close(self) -> None:
        """Close the httpx client if initialized."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "RunpodClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Job endpoints
    # ------------------------------------------------------------------

    async def run_sync(self, model_id: str, input: Any) -> JobResult:
        """
        Run a job and block until the remote returns.

        Raises:
            ClassifiedError: TIMEOUT if the transport ceiling is hit,
                REMOTE_FAILURE if the job reports a failed status, or the
                classified HTTP/transport failure
        """
        context = ErrorContext(model_id=model_id)
        logger.info(f"runsync: model={model_id}")
        payload = await self._job_call(
            "POST", self._endpoint(model_id, "runsync"), context, {"input": input}
        )
        result = self._parse_job(payload, context)

        if result.status.is_failure:
            raise remote_failure(
                result.error,
                context.merged(job_id=result.id, status=result.status.value),
            )

        logger.info(f"runsync: model={model_id} job={result.id} status={result.status.value}")
        return result

    async def run_async(self, model_id: str, input: Any) -> JobResult:
        """Submit a job without waiting; the result is normally QUEUED."""
        context = ErrorContext(model_id=model_id)
        payload = await self._job_call(
            "POST", self._endpoint(model_id, "run"), context, {"input": input}
        )
        result = self._parse_job(payload, context)
        logger.info(f"run: model={model_id} job={result.id} status={result.status.value}")
        return result

    async def get_status(self, model_id: str, job_id: str) -> JobResult:
        """
        Fetch the current status of a job.

        Raises:
            ClassifiedError: NOT_FOUND if the remote does not know the job
        """
        context = ErrorContext(model_id=model_id, job_id=job_id)
        payload = await self._job_call(
            "GET", self._endpoint(model_id, "status", job_id), context
        )

        if isinstance(payload, dict) and "status" not in payload and payload.get("error"):
            message = str(payload["error"])
            if any(marker in message.lower() for marker in _NOT_FOUND_MARKERS):
                raise ClassifiedError(ErrorKind.NOT_FOUND, message, context)

        result = self._parse_job(payload, context)
        logger.debug(f"status: model={model_id} job={job_id} status={result.status.value}")
        return result

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    async def list_models(self) -> list[ModelDescriptor]:
        """
        Query the registry for available models.

        Returns:
            Descriptors in registry order

        Raises:
            ClassifiedError: NETWORK on transport errors, MALFORMED on an
                unparseable payload, UNAUTHORIZED/REMOTE_FAILURE on GraphQL errors
        """
        context = ErrorContext()
        payload = await self._request(
            "POST", self.graphql_url, context, {"query": MODELS_QUERY}
        )

        if not isinstance(payload, dict):
            raise malformed("Registry response is not a JSON object", context)

        if errors := payload.get("errors"):
            message = _graphql_error_message(errors)
            if "unauthorized" in message.lower():
                raise ClassifiedError(ErrorKind.UNAUTHORIZED, message, context)
            raise remote_failure(message, context)

        try:
            endpoints = payload["data"]["myself"]["endpoints"]
        except (KeyError, TypeError) as e:
            raise malformed(f"Registry response missing endpoints: {e}", context) from e
        if not isinstance(endpoints, list):
            raise malformed("Registry endpoints is not a list", context)

        models = []
        for entry in endpoints:
            if not isinstance(entry, dict) or not entry.get("id"):
                raise malformed(f"Invalid registry entry: {entry!r}", context)
            model_id = str(entry["id"])
            display_name = str(entry.get("name") or model_id)
            category = categorize(model_id)
            if category is ModelCategory.UNKNOWN:
                category = categorize(display_name)
            models.append(
                ModelDescriptor(id=model_id, display_name=display_name, category=category)
            )

        logger.info(f"Registry returned {len(models)} models")
        return models

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _endpoint(self, model_id: str, *parts: str) -> str:
        segments = [quote(model_id, safe="")] + [quote(p, safe="") for p in parts]
        return f"{self.base_url}/{'/'.join(segments)}"

    async def _job_call(
        self, method: str, url: str, context: ErrorContext, body: Any = None
    ) -> Any:
        if self._retry_policy is None:
            return await self._request(method, url, context, body)
        return await self._retry_policy.copy()(self._request, method, url, context, body)

    async def _request(
        self, method: str, url: str, context: ErrorContext, body: Any = None
    ) -> Any:
        try:
            response = await self.http.request(method, url, json=body)
        except (httpx.HTTPError, OSError) as e:
            error = classify_exception(e, context)
            logger.warning(
                f"{method} {url} failed: {error}",
                extra={"model_id": context.model_id, "job_id": context.job_id},
            )
            raise error from e

        if not response.is_success:
            error = classify_response(response, context)
            logger.warning(
                f"{method} {url} failed: {error}",
                extra={"model_id": context.model_id, "job_id": context.job_id},
            )
            raise error

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise classify_exception(e, context) from e

    def _parse_job(self, payload: Any, context: ErrorContext) -> JobResult:
        if not isinstance(payload, dict):
            raise malformed("Job response is not a JSON object", context)
        try:
            return JobResult.model_validate(payload)
        except ValueError as e:
            # pydantic.ValidationError subclasses ValueError
            raise classify_exception(e, context.merged(job_id=payload.get("id"))) from e


def _graphql_error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])
        return str(first)
    return str(errors)
