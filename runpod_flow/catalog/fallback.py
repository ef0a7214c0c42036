# runpod_flow/catalog/fallback.py
"""
Static fallback model list.

Served when the live registry query fails, so model discovery degrades
instead of blocking the caller.
"""

from runpod_flow.models.catalog import ModelDescriptor

from .categorizer import categorize

# (id, display name) for well-known RunPod public endpoints
_FALLBACK_ENTRIES: tuple[tuple[str, str], ...] = (
    ("llama-3-8b-instruct", "Llama 3 8B Instruct"),
    ("mistral-7b-instruct", "Mistral 7B Instruct"),
    ("qwen2-5-72b-instruct", "Qwen 2.5 72B Instruct"),
    ("deepseek-r1-distill", "DeepSeek R1 Distill"),
    ("flux-dev", "FLUX.1 [dev]"),
    ("flux-schnell", "FLUX.1 [schnell]"),
    ("sdxl", "Stable Diffusion XL"),
    ("stable-diffusion-v1-5", "Stable Diffusion 1.5"),
    ("wan-2-1-t2v", "Wan 2.1 Text-to-Video"),
    ("hunyuan-video", "HunyuanVideo"),
    ("whisper-large", "Whisper Large v3"),
    ("faster-whisper", "Faster Whisper"),
    ("xtts-v2", "XTTS v2"),
)

FALLBACK_MODELS: tuple[ModelDescriptor, ...] = tuple(
    ModelDescriptor(id=model_id, display_name=name, category=categorize(model_id))
    for model_id, name in _FALLBACK_ENTRIES
)
