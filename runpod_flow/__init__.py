# runpod_flow/__init__.py
"""runpod-flow: run RunPod serverless AI jobs through one uniform contract."""

from runpod_flow.api import RunpodClient
from runpod_flow.catalog import ModelCatalog, categorize
from runpod_flow.errors import ClassifiedError, ErrorContext, ErrorKind
from runpod_flow.jobs import JobExecutor, PollingOrchestrator
from runpod_flow.models import (
    CatalogSnapshot,
    CatalogSource,
    JobRequest,
    JobResult,
    JobStatus,
    ModelCategory,
    ModelDescriptor,
    Operation,
)

__version__ = "0.1.0"

__all__ = [
    "RunpodClient",
    "ModelCatalog",
    "categorize",
    "JobExecutor",
    "PollingOrchestrator",
    "ClassifiedError",
    "ErrorContext",
    "ErrorKind",
    "JobRequest",
    "JobResult",
    "JobStatus",
    "Operation",
    "ModelCategory",
    "ModelDescriptor",
    "CatalogSnapshot",
    "CatalogSource",
]
