"""
Common utilities shared across picturebook modules.
"""

from .config import require_api_key, resolve_api_key, resolve_image_backend
from .errors import (
    CharacterEncodingError,
    IllustrationMissingError,
    IllustrationTransportError,
    InvalidStoryError,
    MissingCredentialError,
    PictureBookError,
    SegmentationFormatError,
    SegmentationTransportError,
    UnsupportedImageTypeError,
)
from .llm import ChatResult, CompletionCallable, call_chat_completion

__all__ = [
    "ChatResult",
    "CompletionCallable",
    "call_chat_completion",
    "require_api_key",
    "resolve_api_key",
    "resolve_image_backend",
    "PictureBookError",
    "MissingCredentialError",
    "InvalidStoryError",
    "CharacterEncodingError",
    "UnsupportedImageTypeError",
    "SegmentationFormatError",
    "SegmentationTransportError",
    "IllustrationMissingError",
    "IllustrationTransportError",
]
