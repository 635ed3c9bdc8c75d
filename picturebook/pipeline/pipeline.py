"""
Orchestrates the picturebook pipeline from story and character art to illustrated pages.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

import yaml

from picturebook.ai_generation import (
    CharacterImage,
    EncodedImage,
    IllustrationGenerator,
    ReplicateIllustrationGenerator,
    encode_character_images,
)
from picturebook.common import (
    CompletionCallable,
    InvalidStoryError,
    require_api_key,
    resolve_api_key,
    resolve_image_backend,
)
from picturebook.story_generation import StoryPageSplitter

ProgressCallback = Callable[[str], None]
IllustrationBackend = IllustrationGenerator | ReplicateIllustrationGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookPage:
    """A finished page: generated identifier, illustration reference, and page text."""

    id: str
    image_url: str
    generated_text: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "image_url": self.image_url,
            "generated_text": self.generated_text,
        }


@dataclass
class Book:
    """Aggregated output of the picturebook pipeline."""

    pages: list[BookPage] = field(default_factory=list)
    story: str = ""

    def __len__(self) -> int:
        return len(self.pages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "story": self.story,
            "pages": [page.to_dict() for page in self.pages],
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Book":
        if "pages" not in payload:
            raise ValueError("Book payload must include 'pages'.")

        pages: list[BookPage] = []
        for entry in payload.get("pages") or []:
            try:
                page = BookPage(
                    id=str(entry["id"]),
                    image_url=str(entry["image_url"]),
                    generated_text=str(entry["generated_text"]),
                )
            except (KeyError, TypeError) as exc:
                raise ValueError(f"Invalid page entry: {entry}") from exc
            pages.append(page)

        return cls(pages=pages, story=str(payload.get("story") or ""))

    @classmethod
    def from_yaml(cls, source: str | Path) -> "Book":
        path = Path(source)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, Mapping):
            raise ValueError("Book YAML must deserialize to a mapping.")
        return cls.from_dict(data)


class PictureBookOrchestrator:
    """
    High-level coordinator that chains image encoding, story splitting, and illustration.
    """

    def __init__(
        self,
        *,
        page_splitter: StoryPageSplitter | None = None,
        image_generator: IllustrationBackend | None = None,
        api_key: str | None = None,
        page_model: str | None = None,
        image_model: str | None = None,
        image_backend: str | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = resolve_api_key(api_key)
        self._page_splitter = page_splitter or StoryPageSplitter(
            api_key=self._api_key,
            model=page_model,
            completion_fn=completion_fn,
        )
        self._image_generator = image_generator or _build_image_generator(
            backend=image_backend,
            api_key=self._api_key,
            model=image_model,
            completion_fn=completion_fn,
        )

    def generate_book(
        self,
        story: str,
        character_images: Sequence[CharacterImage],
        progress_callback: ProgressCallback | None = None,
    ) -> Book:
        """
        Run the full pipeline and return the finished book.

        The first failure at any stage propagates; no partial book is returned.
        """
        require_api_key(self._api_key)
        if not story or not story.strip():
            raise InvalidStoryError()

        self._notify(progress_callback, "Preparing your character art...")
        encoded_images = encode_character_images(character_images)

        self._notify(progress_callback, "Splitting your story into pages...")
        page_texts = self._page_splitter.split_story(story)

        pages = self._illustrate_pages(page_texts, encoded_images, progress_callback)

        self._notify(progress_callback, "Assembling your book...")
        return Book(pages=pages, story=story)

    def _illustrate_pages(
        self,
        page_texts: Sequence[str],
        encoded_images: Sequence[EncodedImage],
        progress_callback: ProgressCallback | None,
    ) -> list[BookPage]:
        pages: list[BookPage] = []
        total_pages = len(page_texts)
        # One page at a time; each call finishes before the next starts.
        for index, page_text in enumerate(page_texts):
            self._notify(
                progress_callback,
                f"Generating illustration for page {index + 1} of {total_pages}...",
            )
            image_url = self._image_generator.generate_illustration(page_text, encoded_images)
            pages.append(
                BookPage(
                    id=new_page_id(index),
                    image_url=image_url,
                    generated_text=page_text,
                )
            )
        return pages

    @staticmethod
    def _notify(callback: ProgressCallback | None, message: str) -> None:
        logger.info(message)
        if callback is not None:
            callback(message)


def generate_book_from_story(
    story: str,
    character_images: Sequence[CharacterImage],
    progress_callback: ProgressCallback | None = None,
    **orchestrator_kwargs: Any,
) -> Book:
    """
    Convenience entry point: build an orchestrator from the environment and run it once.
    """
    require_api_key(orchestrator_kwargs.get("api_key"))
    orchestrator = PictureBookOrchestrator(**orchestrator_kwargs)
    return orchestrator.generate_book(story, character_images, progress_callback)


def new_page_id(index: int) -> str:
    return f"page-{int(time.time() * 1000)}-{index}"


def _build_image_generator(
    *,
    backend: str | None,
    api_key: str | None,
    model: str | None,
    completion_fn: CompletionCallable | None,
) -> IllustrationBackend:
    if resolve_image_backend(backend) == "replicate":
        return ReplicateIllustrationGenerator(model_identifier=model)
    return IllustrationGenerator(api_key=api_key, model=model, completion_fn=completion_fn)
