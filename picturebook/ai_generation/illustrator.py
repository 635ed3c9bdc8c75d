"""
Per-page illustration generation through a multimodal LiteLLM image model.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Iterator, Mapping, Sequence

from picturebook.common import (
    ChatResult,
    CompletionCallable,
    IllustrationMissingError,
    IllustrationTransportError,
    call_chat_completion,
    resolve_api_key,
)
from picturebook.common.config import DEFAULT_IMAGE_MODEL

from .encoding import EncodedImage
from .prompting import IllustrationPrompt, build_illustration_prompt

logger = logging.getLogger(__name__)


class IllustrationGenerator:
    """
    Generate one storybook illustration per page, guided by the character reference images.

    Parameters
    ----------
    api_key:
        Credential for the image model. Falls back to ``GEMINI_API_KEY`` / ``API_KEY``.
    model:
        LiteLLM model identifier. Falls back to ``PICTUREBOOK_IMAGE_MODEL``.
    completion_fn:
        Optional replacement for :func:`call_chat_completion`. Mainly useful for testing.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = resolve_api_key(api_key)
        self._model = model or os.getenv("PICTUREBOOK_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion

    @property
    def model(self) -> str:
        return self._model

    def generate_illustration(
        self,
        page_text: str,
        character_images: Sequence[EncodedImage],
        **model_kwargs: Any,
    ) -> str:
        """
        Return the page illustration as a ``data:<mime>;base64,<payload>`` URI.

        Only the first image part of the response is used.
        """
        prompt: IllustrationPrompt = build_illustration_prompt(page_text, character_images)

        try:
            result: ChatResult = self._completion_fn(
                model=self._model,
                messages=[{"role": "user", "content": prompt.as_content_parts()}],
                api_key=self._api_key,
                modalities=["image", "text"],
                **model_kwargs,
            )
        except Exception as exc:
            logger.exception("Image generation failed.")
            raise IllustrationTransportError(cause=exc) from exc

        image_uri = next(iter_inline_images(result.message), None)
        if image_uri is None:
            raise IllustrationMissingError()
        return image_uri


def iter_inline_images(message: Any) -> Iterator[str]:
    """
    Yield every inline image carried by an assistant message, as data URIs, in order.

    LiteLLM reports generated images on ``message.images``; list-typed ``content``
    is scanned too for providers that return image parts inline.
    """
    if message is None:
        return

    for field in ("images", "content"):
        parts = _get(message, field)
        if not isinstance(parts, (list, tuple)):
            continue
        for part in parts:
            uri = _inline_image_uri(part)
            if uri is not None:
                yield uri


def _inline_image_uri(part: Any) -> str | None:
    image_url = _get(part, "image_url")
    if image_url is not None:
        url = image_url if isinstance(image_url, str) else _get(image_url, "url")
        if isinstance(url, str) and url.startswith("data:image/"):
            return url

    inline = _get(part, "inline_data") or _get(part, "inlineData")
    if inline is not None:
        mime_type = _get(inline, "mime_type") or _get(inline, "mimeType")
        data = _get(inline, "data")
        if mime_type and data:
            return f"data:{mime_type};base64,{data}"

    return None


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)
