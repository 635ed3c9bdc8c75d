"""
picturebook package exposing story splitting, illustration, pipeline, and PDF tooling.
"""

from .ai_generation import CharacterImage, load_character_image
from .pdf_generation import StorybookPDFBuilder
from .pipeline import (
    Book,
    BookPage,
    PictureBookOrchestrator,
    generate_book_from_story,
)

__all__ = [
    "Book",
    "BookPage",
    "CharacterImage",
    "load_character_image",
    "PictureBookOrchestrator",
    "generate_book_from_story",
    "StorybookPDFBuilder",
]
