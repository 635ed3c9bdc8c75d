"""
Integration with Replicate as an alternative illustration backend.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable as IterableABC
from typing import Any, Callable, Sequence

import replicate

from picturebook.common import IllustrationMissingError, IllustrationTransportError
from picturebook.common.config import DEFAULT_REPLICATE_MODEL

from .encoding import EncodedImage
from .prompting import IllustrationPrompt, build_illustration_prompt

logger = logging.getLogger(__name__)


def _build_nano_banana_input(*, prompt: IllustrationPrompt) -> dict[str, Any]:
    return {
        "prompt": prompt.text,
        "image_input": [image.as_data_uri() for image in prompt.reference_images],
        "output_format": "png",
    }


def _build_flux_kontext_input(*, prompt: IllustrationPrompt) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "prompt": prompt.text,
        "output_format": "png",
        "safety_tolerance": 2,
        "aspect_ratio": "1:1",
    }
    # Kontext accepts a single reference image.
    if prompt.reference_images:
        payload["input_image"] = prompt.reference_images[0].as_data_uri()
    return payload


_MODEL_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "google/nano-banana": _build_nano_banana_input,
    "black-forest-labs/flux-kontext-pro": _build_flux_kontext_input,
}


def _resolve_input_builder(model_identifier: str) -> Callable[..., dict[str, Any]]:
    normalized_identifier = model_identifier.strip().lower()
    builder = _MODEL_INPUT_BUILDERS.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = _MODEL_INPUT_BUILDERS.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(_MODEL_INPUT_BUILDERS))
        raise ValueError(
            "Model identifier "
            f"'{model_identifier}' is not configured with a default input payload. "
            f"Supported models: {supported_models}."
        )
    return builder


class ReplicateIllustrationGenerator:
    """
    Illustration backend running a Replicate-hosted multi-reference image model.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model`` or ``owner/model:version`` format. Falls back to
        ``REPLICATE_MODEL``, then to ``google/nano-banana``.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        client: replicate.Client | None = None,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        self._model_identifier = (
            model_identifier or os.getenv("REPLICATE_MODEL") or DEFAULT_REPLICATE_MODEL
        )
        self._input_builder = _resolve_input_builder(self._model_identifier)
        self._client = client or replicate.Client(api_token=self._api_token)

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    def generate_illustration(
        self,
        page_text: str,
        character_images: Sequence[EncodedImage],
        **model_kwargs: Any,
    ) -> str:
        """
        Run the configured model and return the URL of its first output image.
        """
        prompt = build_illustration_prompt(page_text, character_images)
        replicate_input = self._input_builder(prompt=prompt)
        # Allow the caller to tweak model-specific knobs (e.g., seed, aspect_ratio).
        replicate_input.update(model_kwargs)

        try:
            outputs = self._client.run(self._model_identifier, input=replicate_input)
        except Exception as exc:
            logger.exception("Replicate image generation failed.")
            raise IllustrationTransportError(cause=exc) from exc

        urls = normalize_image_outputs(outputs)
        if not urls:
            raise IllustrationMissingError()
        return urls[0]


def normalize_image_outputs(raw: Any) -> list[str]:
    """
    Normalize the image outputs returned by Replicate into a list of URL strings.
    """
    if raw is None:
        return []

    # FileOutput is iterable over its bytes; take its URL instead.
    url = getattr(raw, "url", None)
    if isinstance(url, str):
        return [url]

    if isinstance(raw, str):
        return [raw] if raw else []

    if isinstance(raw, bytes):
        decoded = raw.decode("utf-8", errors="ignore")
        return [decoded] if decoded else []

    if isinstance(raw, IterableABC):
        collected = list(raw)
        if not collected:
            return []

        if all(isinstance(item, str) and len(item) == 1 for item in collected):
            return ["".join(collected)]

        normalized: list[str] = []
        for item in collected:
            normalized.extend(normalize_image_outputs(item))
        return normalized

    return [str(raw)]
