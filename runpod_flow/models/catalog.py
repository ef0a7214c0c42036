# runpod_flow/models/catalog.py
"""Model catalog types: descriptors and cached snapshots."""

from dataclasses import dataclass
from enum import Enum


class ModelCategory(Enum):
    """Content type a model produces or consumes."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    UNKNOWN = "unknown"


class CatalogSource(Enum):
    """Where a catalog snapshot came from."""

    LIVE = "live"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ModelDescriptor:
    """A single model entry in the catalog."""

    id: str
    display_name: str
    category: ModelCategory


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    Immutable point-in-time copy of the model registry.

    fetched_at is a reading of the catalog's clock (monotonic seconds by
    default), not a wall-clock timestamp.
    """

    models: tuple[ModelDescriptor, ...]
    fetched_at: float
    source: CatalogSource

    def find(self, model_id: str) -> ModelDescriptor | None:
        """Look up a descriptor by exact id."""
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    def age(self, now: float) -> float:
        return now - self.fetched_at
