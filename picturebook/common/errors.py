"""
Error types raised by the picturebook generation workflow.

Every stage raises its own error class so callers can dispatch on the type
instead of matching message strings. Each error keeps a short, user-facing
description and the underlying ``cause`` for diagnostics.
"""

from __future__ import annotations


class PictureBookError(Exception):
    """Base class for all picturebook failures."""

    default_message = "Picture book generation failed."

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.cause is not None and str(self.cause):
            return f"{self.message} ({self.cause})"
        return self.message


class MissingCredentialError(PictureBookError):
    default_message = "API key is not set. Set GEMINI_API_KEY or API_KEY, or pass api_key."


class InvalidStoryError(PictureBookError, ValueError):
    default_message = "Story text must be a non-empty string."


class CharacterEncodingError(PictureBookError):
    default_message = "Failed to read a character image."


class UnsupportedImageTypeError(PictureBookError, ValueError):
    default_message = "Character images must be JPEG, PNG, or WEBP files."


class SegmentationFormatError(PictureBookError):
    default_message = "Invalid format for story segmentation."


class SegmentationTransportError(PictureBookError):
    default_message = "Failed to split the story into pages."


class IllustrationMissingError(PictureBookError):
    default_message = "No image was generated for the page."


class IllustrationTransportError(PictureBookError):
    default_message = "Failed to generate an illustration for a page."
