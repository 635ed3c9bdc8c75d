"""
Render a saved picture book YAML into a printable PDF.

Usage:
    python scripts/render_book_pdf.py \
        --book picturebook.yaml \
        --output picturebook.pdf
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from picturebook import Book, StorybookPDFBuilder  # noqa: E402
from picturebook.pdf_generation.builder import DEFAULT_TITLE, PAGE_SIZES  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert a picture book YAML into a flip-book style PDF."
    )
    parser.add_argument(
        "--book",
        required=True,
        help="Path to the book YAML (output of generate_book.py).",
    )
    parser.add_argument(
        "--output",
        required=True,
        help="Destination PDF file path.",
    )
    parser.add_argument(
        "--title",
        default=DEFAULT_TITLE,
        help=f"Cover title (default: {DEFAULT_TITLE!r}).",
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="square",
        help="Page size to render (default: square).",
    )
    parser.add_argument(
        "--margin-mm",
        type=float,
        default=18.0,
        help="Page margin in millimetres (default: 18).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for downloading remote illustrations (default: 30).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    book = Book.from_yaml(args.book)
    builder = StorybookPDFBuilder(
        page_size=PAGE_SIZES[args.page_size],
        margin_mm=args.margin_mm,
        request_timeout=args.timeout,
    )
    builder.build(book, args.output, title=args.title)

    print(f"Rendered picture book PDF to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
