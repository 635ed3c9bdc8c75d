"""
Environment-backed defaults shared by the picturebook services.
"""

from __future__ import annotations

import os

from .errors import MissingCredentialError

DEFAULT_PAGE_MODEL = "gemini/gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini/gemini-2.5-flash-image"
DEFAULT_REPLICATE_MODEL = "google/nano-banana"

IMAGE_BACKENDS = ("litellm", "replicate")


def resolve_api_key(api_key: str | None = None) -> str | None:
    """Return the explicit key, else the first credential found in the environment."""
    return api_key or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")


def require_api_key(api_key: str | None = None) -> str:
    resolved = resolve_api_key(api_key)
    if not resolved:
        raise MissingCredentialError()
    return resolved


def resolve_image_backend(backend: str | None = None) -> str:
    name = (backend or os.getenv("PICTUREBOOK_IMAGE_BACKEND") or "litellm").strip().lower()
    if name not in IMAGE_BACKENDS:
        raise ValueError(
            f"Unknown image backend '{name}'. Choose one of: {', '.join(IMAGE_BACKENDS)}."
        )
    return name
