"""
Prompt construction utilities for splitting a story into picture-book pages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE_COUNT_RANGE = (5, 7)

PAGES_RESPONSE_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "storybook_pages",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "pages": {
                    "type": "array",
                    "description": (
                        "An array of strings, where each string is the text for one page "
                        "of the storybook."
                    ),
                    "items": {
                        "type": "string",
                        "description": "The text content for a single page of the book.",
                    },
                }
            },
            "required": ["pages"],
            "additionalProperties": False,
        },
    },
}


@dataclass(frozen=True)
class SegmentationPrompt:
    """
    Container for the prompt text sent to the page-splitting model.
    """

    user: str


def build_segmentation_prompt(
    story: str,
    *,
    page_range: tuple[int, int] = DEFAULT_PAGE_COUNT_RANGE,
) -> SegmentationPrompt:
    """
    Build the editor instruction asking the model to divide ``story`` into pages.
    """
    if not story or not story.strip():
        raise ValueError("story must be a non-empty string.")

    lower, upper = page_range
    return SegmentationPrompt(
        user=(
            "You are a book editor. Read the following story and divide it into "
            f"{lower}-{upper} balanced pages for a children's storybook. "
            "Each page should contain one or two paragraphs. "
            f'Story: """{story}"""'
        )
    )
