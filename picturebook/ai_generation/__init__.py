"""
Character image encoding and illustration generation for picturebook.
"""

from .encoding import (
    ACCEPTED_MEDIA_TYPES,
    CharacterImage,
    EncodedImage,
    encode_character_image,
    encode_character_images,
    load_character_image,
)
from .illustrator import IllustrationGenerator, iter_inline_images
from .prompting import IllustrationPrompt, build_illustration_prompt
from .replicate_service import ReplicateIllustrationGenerator, normalize_image_outputs

__all__ = [
    "ACCEPTED_MEDIA_TYPES",
    "CharacterImage",
    "EncodedImage",
    "encode_character_image",
    "encode_character_images",
    "load_character_image",
    "IllustrationGenerator",
    "iter_inline_images",
    "IllustrationPrompt",
    "build_illustration_prompt",
    "ReplicateIllustrationGenerator",
    "normalize_image_outputs",
]
