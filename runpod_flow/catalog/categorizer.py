# runpod_flow/catalog/categorizer.py
"""
Model identifier → content category mapping.

Rule sets are checked in rank order (text, image, video, audio) and the
first matching pattern wins. Matching is case-insensitive.
"""

import copy
import re
from typing import Any

from runpod_flow.models.catalog import ModelCategory

# Ranked: an id matching several sets resolves to the earliest one
_RULES: list[tuple[ModelCategory, tuple[str, ...]]] = [
    (
        ModelCategory.TEXT,
        (
            r"llama",
            r"mistral",
            r"mixtral",
            r"qwen",
            r"deepseek",
            r"gemma",
            r"\bphi[-_]?\d",
            r"\bgpt",
            r"vllm",
            r"\bllm\b",
            r"\bchat\b",
            r"instruct",
        ),
    ),
    (
        ModelCategory.IMAGE,
        (
            r"flux",
            r"sdxl",
            r"stable[-_]?diffusion",
            r"\bsd[-_]?\d",
            r"kandinsky",
            r"pixart",
            r"playground",
            r"controlnet",
            r"dall[-_]?e",
            r"\bimage",
            r"\bimg",
        ),
    ),
    (
        ModelCategory.VIDEO,
        (
            r"video",
            r"\bwan[-_.]?\d",
            r"hunyuan",
            r"mochi",
            r"\bltx",
            r"\bsvd\b",
            r"animatediff",
            r"\bkling",
        ),
    ),
    (
        ModelCategory.AUDIO,
        (
            r"whisper",
            r"\btts\b",
            r"xtts",
            r"audio",
            r"speech",
            r"musicgen",
            r"\bbark\b",
            r"kokoro",
        ),
    ),
]

_COMPILED: list[tuple[ModelCategory, list[re.Pattern[str]]]] = [
    (category, [re.compile(p, re.IGNORECASE) for p in patterns])
    for category, patterns in _RULES
]

_DEFAULT_INPUTS: dict[ModelCategory, dict[str, Any]] = {
    ModelCategory.TEXT: {"prompt": "Hello, how are you?", "max_tokens": 512},
    ModelCategory.IMAGE: {"prompt": "A photo of a cat", "width": 1024, "height": 1024},
    ModelCategory.VIDEO: {"prompt": "A cat walking through a garden", "duration": 5},
    ModelCategory.AUDIO: {"audio": "https://example.com/sample.wav"},
    ModelCategory.UNKNOWN: {"prompt": ""},
}


def categorize(model_id: str) -> ModelCategory:
    """
    Classify a model identifier by content type.

    Args:
        model_id: RunPod endpoint/model identifier (e.g. "flux-dev")

    Returns:
        Category of the first matching rule set, or UNKNOWN
    """
    for category, patterns in _COMPILED:
        if any(p.search(model_id) for p in patterns):
            return category
    return ModelCategory.UNKNOWN


def default_input(model_id: str) -> dict[str, Any]:
    """Return a fresh default input template for the model's category."""
    return copy.deepcopy(_DEFAULT_INPUTS[categorize(model_id)])
