# runpod_flow/models/jobs.py
"""
Job request/result models.

JobRequest is built once per invocation and never mutated. JobResult is
parsed straight from the RunPod wire format (camelCase aliases).
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

MIN_POLL_INTERVAL_MS = 250
MAX_POLL_INTERVAL_MS = 10_000
MIN_TIMEOUT_MS = 5_000
MAX_TIMEOUT_MS = 600_000


class Operation(Enum):
    """How a job request is executed."""

    SYNC = "sync"
    ASYNC_WAIT = "async_wait"
    ASYNC_NO_WAIT = "async_no_wait"
    STATUS_CHECK = "status_check"


class JobStatus(Enum):
    """Job states as reported by RunPod."""

    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    TIMED_OUT = "TIMED_OUT"

    @classmethod
    def _missing_(cls, value):
        # RunPod reports queued jobs as IN_QUEUE
        if value == "IN_QUEUE":
            return cls.QUEUED
        return None

    @property
    def is_terminal(self) -> bool:
        return self not in (JobStatus.QUEUED, JobStatus.IN_PROGRESS)

    @property
    def is_failure(self) -> bool:
        return self.is_terminal and self is not JobStatus.COMPLETED


class JobRequest(BaseModel):
    """
    A single job invocation.

    job_id is required for STATUS_CHECK and forbidden otherwise; input is the
    reverse. Run operations built without input get the default template for
    the model's category.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", protected_namespaces=())

    model_id: str = Field(min_length=1, description="RunPod endpoint/model identifier")
    operation: Operation = Field(description="Execution mode")
    input: Any = Field(default=None, description="JSON input passed as {'input': ...}")
    job_id: str | None = Field(default=None, description="Job to check (STATUS_CHECK only)")
    poll_interval_ms: int = Field(
        default=2_000,
        ge=MIN_POLL_INTERVAL_MS,
        le=MAX_POLL_INTERVAL_MS,
        description="Delay between status polls (ASYNC_WAIT)",
    )
    timeout_ms: int = Field(
        default=300_000,
        ge=MIN_TIMEOUT_MS,
        le=MAX_TIMEOUT_MS,
        description="Total wait budget before a local timeout (ASYNC_WAIT)",
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_default_input(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        operation = data.get("operation")
        if isinstance(operation, str):
            try:
                operation = Operation(operation)
            except ValueError:
                return data
        if (
            operation is not None
            and operation is not Operation.STATUS_CHECK
            and data.get("input") is None
            and data.get("model_id")
        ):
            # Imported here: the catalog package depends on this module
            from runpod_flow.catalog.categorizer import default_input

            data = {**data, "input": default_input(data["model_id"])}
        return data

    @model_validator(mode="after")
    def _check_operation_fields(self) -> "JobRequest":
        if self.operation is Operation.STATUS_CHECK:
            if not self.job_id:
                raise ValueError("job_id is required for a status check")
            if self.input is not None:
                raise ValueError("input is not accepted for a status check")
        elif self.job_id is not None:
            raise ValueError(f"job_id is only accepted for a status check, not {self.operation.value}")
        return self

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000


class JobResult(BaseModel):
    """Uniform job result returned by every operation."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = Field(min_length=1, description="RunPod job id")
    status: JobStatus = Field(description="Reported job status")
    output: Any = Field(default=None, description="Job output (COMPLETED only)")
    execution_time_ms: int | float | None = Field(default=None, alias="executionTime")
    delay_time_ms: int | float | None = Field(default=None, alias="delayTime")
    worker_id: str | None = Field(default=None, alias="workerId")
    error: str | None = Field(default=None, description="Remote error text, if any")

    @model_validator(mode="before")
    @classmethod
    def _drop_output_unless_completed(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("status") not in ("COMPLETED", JobStatus.COMPLETED):
            if "output" in data:
                data = {k: v for k, v in data.items() if k != "output"}
        if isinstance(data, dict) and data.get("error") is not None and not isinstance(data["error"], str):
            data = {**data, "error": str(data["error"])}
        return data

    def to_wire(self) -> dict[str, Any]:
        """Dump back to the RunPod response shape, omitting absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
