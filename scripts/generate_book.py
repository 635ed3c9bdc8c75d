"""
CLI to turn a story and character reference images into an illustrated picture book.

Usage:
    python scripts/generate_book.py \
        --story story.txt \
        --character art/fox.png --character art/owl.webp \
        --output book.yaml \
        --pdf book.pdf

Environment variables:
    GEMINI_API_KEY (or API_KEY)  - required
    PICTUREBOOK_IMAGE_BACKEND    - optional, "litellm" (default) or "replicate"
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from picturebook import PictureBookOrchestrator, StorybookPDFBuilder  # noqa: E402
from picturebook.ai_generation import CharacterImage, load_character_image  # noqa: E402
from picturebook.common import PictureBookError  # noqa: E402
from picturebook.common.config import IMAGE_BACKENDS  # noqa: E402
from picturebook.pdf_generation.builder import DEFAULT_TITLE  # noqa: E402


class ProgressTracker:
    """
    Prints pipeline status lines and advances a per-page progress bar.
    """

    def __init__(self) -> None:
        self._page_bar: tqdm | None = None

    def __call__(self, message: str) -> None:
        tqdm.write(message)
        page, total = _parse_page_progress(message)
        if page is not None:
            if self._page_bar is None:
                self._page_bar = tqdm(total=total, desc="Illustrated pages", unit="page")
            # The message for page N means pages 1..N-1 are done.
            self._advance_to(page - 1)
        elif message.startswith("Assembling") and self._page_bar is not None:
            self._advance_to(self._page_bar.total)

    def _advance_to(self, completed: int) -> None:
        if self._page_bar is not None and completed > self._page_bar.n:
            self._page_bar.update(completed - self._page_bar.n)

    def close(self) -> None:
        if self._page_bar is not None:
            self._page_bar.close()
            self._page_bar = None


def _parse_page_progress(message: str) -> tuple[int | None, int | None]:
    prefix = "Generating illustration for page "
    if not message.startswith(prefix):
        return None, None
    counts = message[len(prefix):].rstrip(".").split(" of ")
    try:
        return int(counts[0]), int(counts[1])
    except (IndexError, ValueError):
        return None, None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate an illustrated picture book from a story and character art."
    )
    story_source = parser.add_mutually_exclusive_group(required=True)
    story_source.add_argument("--story", help="Path to a UTF-8 text file holding the story.")
    story_source.add_argument("--story-text", help="The story text itself.")
    parser.add_argument(
        "--character",
        action="append",
        required=True,
        metavar="IMAGE",
        help="Character reference image (JPEG, PNG or WEBP). Repeatable.",
    )
    parser.add_argument(
        "--output",
        default="picturebook.yaml",
        help="Output YAML file to store the generated pages (default: picturebook.yaml).",
    )
    parser.add_argument("--pdf", default=None, help="Optionally render the book to this PDF path.")
    parser.add_argument("--title", default=None, help="Cover title used for the PDF export.")
    parser.add_argument(
        "--image-backend",
        choices=IMAGE_BACKENDS,
        default=None,
        help="Illustration backend (default: PICTUREBOOK_IMAGE_BACKEND or litellm).",
    )
    parser.add_argument("--page-model", default=None, help="Override the page-splitting model.")
    parser.add_argument("--image-model", default=None, help="Override the illustration model.")
    parser.add_argument("--api-key", default=None, help="Override the API key.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def load_story(args: argparse.Namespace) -> str:
    if args.story_text is not None:
        return args.story_text
    return Path(args.story).expanduser().read_text(encoding="utf-8")


def load_characters(paths: list[str]) -> list[CharacterImage]:
    return [load_character_image(path) for path in paths]


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        story = load_story(args)
        characters = load_characters(args.character)
        orchestrator = PictureBookOrchestrator(
            api_key=args.api_key,
            page_model=args.page_model,
            image_model=args.image_model,
            image_backend=args.image_backend,
        )
    except (OSError, ValueError, PictureBookError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    tracker = ProgressTracker()
    try:
        book = orchestrator.generate_book(story, characters, progress_callback=tracker)
    except PictureBookError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        tracker.close()

    output_path = Path(args.output)
    output_path.write_text(book.to_yaml(), encoding="utf-8")
    print(f"Saved {len(book.pages)} page(s) to {output_path}")

    if args.pdf:
        StorybookPDFBuilder().build(book, args.pdf, title=args.title or DEFAULT_TITLE)
        print(f"Rendered picture book PDF to {args.pdf}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
