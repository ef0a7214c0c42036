# runpod_flow/jobs/__init__.py
"""Job execution: executor dispatch and async polling."""

from .executor import JobExecutor, RemoteJobAPI
from .polling import PollingOrchestrator, PollState

__all__ = [
    "JobExecutor",
    "RemoteJobAPI",
    "PollingOrchestrator",
    "PollState",
]
