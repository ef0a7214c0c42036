# runpod_flow/models/__init__.py
"""
Data models for runpod-flow.

Provides job request/result models and model catalog types.
"""

from runpod_flow.models.catalog import (
    CatalogSnapshot,
    CatalogSource,
    ModelCategory,
    ModelDescriptor,
)
from runpod_flow.models.jobs import JobRequest, JobResult, JobStatus, Operation

__all__ = [
    # Jobs
    "Operation",
    "JobStatus",
    "JobRequest",
    "JobResult",
    # Catalog
    "ModelCategory",
    "ModelDescriptor",
    "CatalogSource",
    "CatalogSnapshot",
]
