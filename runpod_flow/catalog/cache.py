# runpod_flow/catalog/cache.py
"""
Model catalog with TTL caching and silent fallback.

A registry failure never reaches the caller: the catalog swaps in the static
fallback list instead. Registry outages are therefore invisible to callers, so every
downgrade is logged as a warning.
"""

import asyncio
import logging
import time
from typing import Callable, Protocol

from runpod_flow.errors import ClassifiedError, ErrorContext, ErrorKind
from runpod_flow.models.catalog import CatalogSnapshot, CatalogSource, ModelDescriptor

from .fallback import FALLBACK_MODELS

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


class ModelRegistry(Protocol):
    """Anything that can list models (RunpodClient in production)."""

    async def list_models(self) -> list[ModelDescriptor]: ...


class ModelCatalog:
    """
    Cached view of the model registry.

    Features:
        - Snapshot reused while younger than the TTL
        - Registry errors degrade to the fallback list (also TTL-bound)
        - At most one refresh in flight; concurrent callers share it
    """

    def __init__(
        self,
        registry: ModelRegistry,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        fallback: tuple[ModelDescriptor, ...] = FALLBACK_MODELS,
    ) -> None:
        """
        Initialize model catalog.

        Args:
            registry: Source of live model listings
            ttl: Seconds a snapshot stays fresh
            clock: Monotonic time source (injectable for tests)
            fallback: Descriptors served when the registry is unavailable
        """
        self._registry = registry
        self._ttl = ttl
        self._clock = clock
        self._fallback = fallback
        self._snapshot: CatalogSnapshot | None = None
        self._refresh_task: asyncio.Task[CatalogSnapshot] | None = None
        # Bumped by invalidate(); a snapshot is only fresh for the generation
        # that was current when its refresh was requested
        self._generation = 0
        self._snapshot_generation = 0
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> CatalogSnapshot | None:
        """Current snapshot, fresh or not (None before the first fetch)."""
        return self._snapshot

    def is_fresh(self) -> bool:
        snapshot = self._snapshot
        if snapshot is None or self._snapshot_generation != self._generation:
            return False
        return snapshot.age(self._clock()) < self._ttl

    def invalidate(self) -> None:
        """Force the next get_models() call to refresh."""
        self._generation += 1

    async def get_models(self, wait: bool = True) -> CatalogSnapshot:
        """
        Return the current catalog snapshot, refreshing it if stale.

        Args:
            wait: If False and a refresh is already running, return the
                previous snapshot instead of waiting (when one exists)

        Returns:
            Fresh CatalogSnapshot (LIVE or FALLBACK); never raises on
            registry failure
        """
        if self.is_fresh():
            return self._snapshot  # type: ignore[return-value]

        async with self._lock:
            if self.is_fresh():
                return self._snapshot  # type: ignore[return-value]
            task = self._refresh_task
            if task is None:
                task = asyncio.create_task(self._refresh(self._generation))
                self._refresh_task = task
            elif not wait and self._snapshot is not None:
                logger.debug("Catalog refresh pending, serving previous snapshot")
                return self._snapshot

        # Shielded so a cancelled caller does not abort the shared refresh
        return await asyncio.shield(task)

    async def get_model(self, model_id: str) -> ModelDescriptor:
        """
        Resolve a model id against the catalog.

        Raises:
            ClassifiedError: NOT_FOUND if the id is not in the current snapshot
        """
        snapshot = await self.get_models()
        model = snapshot.find(model_id)
        if model is None:
            raise ClassifiedError(
                ErrorKind.NOT_FOUND,
                f"Model '{model_id}' not found in {snapshot.source.value} catalog",
                ErrorContext(model_id=model_id),
            )
        return model

    async def _refresh(self, generation: int) -> CatalogSnapshot:
        try:
            try:
                models = await self._registry.list_models()
            except ClassifiedError as e:
                logger.warning(f"Model registry unavailable, using fallback list: {e}")
                snapshot = self._fallback_snapshot()
            else:
                if models:
                    snapshot = CatalogSnapshot(
                        models=tuple(models),
                        fetched_at=self._clock(),
                        source=CatalogSource.LIVE,
                    )
                    logger.info(f"Catalog refreshed from registry ({len(models)} models)")
                else:
                    logger.warning("Model registry returned no models, using fallback list")
                    snapshot = self._fallback_snapshot()
            self._snapshot = snapshot
            self._snapshot_generation = generation
            return snapshot
        finally:
            self._refresh_task = None

    def _fallback_snapshot(self) -> CatalogSnapshot:
        return CatalogSnapshot(
            models=self._fallback,
            fetched_at=self._clock(),
            source=CatalogSource.FALLBACK,
        )
