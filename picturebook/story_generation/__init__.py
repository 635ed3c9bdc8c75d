"""
Story segmentation utilities for turning a story into picture-book pages.
"""

from .page_splitter import StoryPageSplitter
from .prompting import (
    DEFAULT_PAGE_COUNT_RANGE,
    PAGES_RESPONSE_FORMAT,
    SegmentationPrompt,
    build_segmentation_prompt,
)

__all__ = [
    "DEFAULT_PAGE_COUNT_RANGE",
    "PAGES_RESPONSE_FORMAT",
    "SegmentationPrompt",
    "build_segmentation_prompt",
    "StoryPageSplitter",
]
