"""
Character reference image intake and base64 encoding.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Sequence

from picturebook.common import CharacterEncodingError, UnsupportedImageTypeError

ImageSource = str | Path | bytes | BinaryIO

ACCEPTED_MEDIA_TYPES = ("image/jpeg", "image/png", "image/webp")

logger = logging.getLogger(__name__)

# mimetypes does not know .webp on every platform.
mimetypes.add_type("image/webp", ".webp")


@dataclass(frozen=True)
class CharacterImage:
    """A character reference image supplied by the user."""

    source: ImageSource
    mime_type: str
    name: str | None = None

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if isinstance(self.source, (str, Path)):
            return Path(self.source).name
        return "<in-memory image>"


@dataclass(frozen=True)
class EncodedImage:
    """Base64 payload and media type ready to be attached inline to a request."""

    mime_type: str
    data: str

    def as_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def load_character_image(path: str | Path, *, mime_type: str | None = None) -> CharacterImage:
    """
    Build a :class:`CharacterImage` for a file on disk, rejecting unsupported media types.
    """
    image_path = Path(path).expanduser()
    resolved_type = mime_type or mimetypes.guess_type(image_path.name)[0]
    if resolved_type not in ACCEPTED_MEDIA_TYPES:
        raise UnsupportedImageTypeError(
            f"'{image_path.name}' is not a supported character image "
            f"(accepted: {', '.join(ACCEPTED_MEDIA_TYPES)})."
        )
    return CharacterImage(source=image_path, mime_type=resolved_type, name=image_path.name)


def encode_character_image(image: CharacterImage) -> EncodedImage:
    try:
        raw = _read_source(image.source)
    except Exception as exc:
        raise CharacterEncodingError(
            f"Failed to read character image '{image.label}'.", cause=exc
        ) from exc
    return EncodedImage(
        mime_type=image.mime_type,
        data=base64.b64encode(raw).decode("ascii"),
    )


def encode_character_images(
    images: Sequence[CharacterImage],
    *,
    max_workers: int | None = None,
) -> list[EncodedImage]:
    """
    Encode every image concurrently and return the payloads in input order.

    All encodings run to completion; the first failure in input order is raised.
    """
    if not images:
        return []

    workers = max_workers or min(8, len(images))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(encode_character_image, image) for image in images]

    # Leaving the executor block waits for every future.
    encoded: list[EncodedImage] = []
    for future in futures:
        encoded.append(future.result())
    logger.debug("Encoded %d character image(s).", len(encoded))
    return encoded


def _read_source(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if hasattr(source, "read"):
        data = source.read()  # type: ignore[union-attr]
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("Character image streams must be opened in binary mode.")
        return bytes(data)
    return Path(source).expanduser().read_bytes()
