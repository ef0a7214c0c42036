# runpod_flow/catalog/__init__.py
"""Model catalog: categorization, static fallback list and TTL cache."""

from .cache import DEFAULT_TTL_SECONDS, ModelCatalog, ModelRegistry
from .categorizer import categorize, default_input
from .fallback import FALLBACK_MODELS

__all__ = [
    "ModelCatalog",
    "ModelRegistry",
    "DEFAULT_TTL_SECONDS",
    "FALLBACK_MODELS",
    "categorize",
    "default_input",
]
