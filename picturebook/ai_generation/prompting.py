"""
Prompt construction utilities for picture-book illustration generation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .encoding import EncodedImage

ILLUSTRATION_STYLE = (
    "Create a whimsical, beautiful, children's storybook-style illustration for the "
    "following scene. The characters and art style should be inspired by the provided "
    "reference images."
)


@dataclass(frozen=True)
class IllustrationPrompt:
    """Instruction text plus the inline reference images sent with it."""

    text: str
    reference_images: tuple[EncodedImage, ...] = ()

    def as_content_parts(self) -> list[dict[str, Any]]:
        """Render the prompt as a multimodal message content list (text first)."""
        parts: list[dict[str, Any]] = [{"type": "text", "text": self.text}]
        for image in self.reference_images:
            parts.append({"type": "image_url", "image_url": {"url": image.as_data_uri()}})
        return parts


def build_illustration_prompt(
    page_text: str,
    character_images: Sequence[EncodedImage] = (),
) -> IllustrationPrompt:
    """
    Build the fixed-style instruction for one page, attaching every character image.
    """
    if not page_text or not page_text.strip():
        raise ValueError("page_text must be a non-empty string.")

    return IllustrationPrompt(
        text=f'{ILLUSTRATION_STYLE} Scene: "{page_text.strip()}"',
        reference_images=tuple(character_images),
    )
