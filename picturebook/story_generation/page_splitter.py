"""
Utilities for splitting a full story into picture-book pages.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Sequence

from picturebook.common import (
    ChatResult,
    CompletionCallable,
    InvalidStoryError,
    SegmentationFormatError,
    SegmentationTransportError,
    call_chat_completion,
    resolve_api_key,
)
from picturebook.common.config import DEFAULT_PAGE_MODEL

from .prompting import (
    DEFAULT_PAGE_COUNT_RANGE,
    PAGES_RESPONSE_FORMAT,
    SegmentationPrompt,
    build_segmentation_prompt,
)

logger = logging.getLogger(__name__)


class StoryPageSplitter:
    """
    Splits a story into an ordered list of page texts using a structured-output LLM call.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
        target_page_range: tuple[int, int] = DEFAULT_PAGE_COUNT_RANGE,
    ) -> None:
        self._api_key = resolve_api_key(api_key)
        self._model = (
            model
            or os.getenv("PICTUREBOOK_PAGE_MODEL")
            or os.getenv("LITELLM_MODEL")
            or DEFAULT_PAGE_MODEL
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._target_page_range = target_page_range

    @property
    def model(self) -> str:
        return self._model

    def split_story(
        self,
        story: str,
        *,
        temperature: float | None = None,
        **response_kwargs: Any,
    ) -> list[str]:
        """
        Split the story into roughly 5-7 balanced pages and return their texts in order.
        """
        if not story or not story.strip():
            raise InvalidStoryError()

        prompt: SegmentationPrompt = build_segmentation_prompt(
            story, page_range=self._target_page_range
        )

        logger.info("Splitting story (%d characters) with %s.", len(story), self._model)
        try:
            result: ChatResult = self._completion_fn(
                model=self._model,
                messages=[{"role": "user", "content": prompt.user}],
                temperature=temperature,
                api_key=self._api_key,
                response_format=PAGES_RESPONSE_FORMAT,
                **response_kwargs,
            )
        except Exception as exc:
            logger.exception("Story segmentation failed.")
            raise SegmentationTransportError(cause=exc) from exc

        pages = self._parse_pages_json(result.text)
        logger.info("Story split into %d page(s).", len(pages))
        return pages

    def _parse_pages_json(self, raw_text: str) -> list[str]:
        try:
            parsed = json.loads(raw_text.strip())
        except json.JSONDecodeError as exc:
            raise SegmentationFormatError(
                "Failed to parse page split response as JSON.", cause=exc
            ) from exc

        pages = parsed.get("pages") if isinstance(parsed, dict) else None
        if not isinstance(pages, list):
            raise SegmentationFormatError("Page split JSON must contain a 'pages' list.")
        if not pages:
            raise SegmentationFormatError("Page split JSON returned no pages.")

        return self._normalize_pages(pages)

    @staticmethod
    def _normalize_pages(pages: Sequence[Any]) -> list[str]:
        texts: list[str] = []
        for index, item in enumerate(pages):
            if not isinstance(item, str):
                raise SegmentationFormatError(
                    f"Page {index + 1} is not a string: {item!r}"
                )
            text = item.strip()
            if not text:
                raise SegmentationFormatError(f"Page {index + 1} is empty.")
            texts.append(text)
        return texts
