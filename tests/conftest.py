import base64
import json
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from picturebook.ai_generation import CharacterImage, EncodedImage
from picturebook.common import ChatResult

PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_BYTES = base64.b64decode(PNG_BASE64)


@dataclass
class FakeCompletion:
    """Records completion calls and answers them with a scripted responder."""

    responder: Callable[..., ChatResult]
    calls: list[dict[str, Any]] = field(default_factory=list)

    def __call__(self, **kwargs: Any) -> ChatResult:
        self.calls.append(kwargs)
        return self.responder(**kwargs)


def pages_result(pages: Any) -> ChatResult:
    text = json.dumps({"pages": pages})
    return ChatResult(text=text, message={"role": "assistant", "content": text}, raw=None)


def image_result(*uris: str) -> ChatResult:
    message = {
        "role": "assistant",
        "content": None,
        "images": [
            {"type": "image_url", "index": i, "image_url": {"url": uri}}
            for i, uri in enumerate(uris)
        ],
    }
    return ChatResult(text="", message=message, raw=None)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (
        "GEMINI_API_KEY",
        "API_KEY",
        "PICTUREBOOK_PAGE_MODEL",
        "PICTUREBOOK_IMAGE_MODEL",
        "PICTUREBOOK_IMAGE_BACKEND",
        "LITELLM_MODEL",
        "REPLICATE_API_TOKEN",
        "REPLICATE_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(name="png_image")
def png_image_fixture() -> CharacterImage:
    return CharacterImage(source=PNG_BYTES, mime_type="image/png", name="fox.png")


@pytest.fixture(name="encoded_png")
def encoded_png_fixture() -> EncodedImage:
    return EncodedImage(mime_type="image/png", data=PNG_BASE64)
