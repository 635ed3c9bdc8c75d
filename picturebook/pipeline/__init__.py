"""
End-to-end orchestration for picturebook generation.
"""

from .pipeline import (
    Book,
    BookPage,
    PictureBookOrchestrator,
    ProgressCallback,
    generate_book_from_story,
    new_page_id,
)

__all__ = [
    "Book",
    "BookPage",
    "PictureBookOrchestrator",
    "ProgressCallback",
    "generate_book_from_story",
    "new_page_id",
]
