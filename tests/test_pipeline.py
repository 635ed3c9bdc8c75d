"""
Book assembly pipeline tests.
"""
import re

import pytest

from picturebook.ai_generation import CharacterImage, IllustrationGenerator
from picturebook.common import (
    CharacterEncodingError,
    IllustrationMissingError,
    IllustrationTransportError,
    InvalidStoryError,
    MissingCredentialError,
    SegmentationFormatError,
)
from picturebook.pipeline import PictureBookOrchestrator, generate_book_from_story, new_page_id
from picturebook.story_generation import StoryPageSplitter

from conftest import PNG_BASE64, FakeCompletion, image_result, pages_result


class FakeSplitter:
    def __init__(self, pages=None, error=None):
        self.pages = pages or []
        self.error = error
        self.calls = []

    def split_story(self, story):
        self.calls.append(story)
        if self.error is not None:
            raise self.error
        return list(self.pages)


class FakeIllustrator:
    def __init__(self, fail_on=None, error=None):
        self.fail_on = fail_on
        self.error = error or IllustrationTransportError(cause=RuntimeError("boom"))
        self.calls = []

    def generate_illustration(self, page_text, character_images):
        self.calls.append((page_text, list(character_images)))
        if self.fail_on is not None and len(self.calls) - 1 == self.fail_on:
            raise self.error
        return f"data:image/png;base64,page{len(self.calls)}"


def make_orchestrator(splitter, illustrator, api_key="key"):
    return PictureBookOrchestrator(
        page_splitter=splitter,
        image_generator=illustrator,
        api_key=api_key,
    )


class TestGenerateBook:
    def test_fox_scenario(self, png_image):
        splitter = FakeSplitter(["Page 1 text", "Page 2 text"])
        illustrator = FakeIllustrator()
        book = make_orchestrator(splitter, illustrator).generate_book(
            "A fox finds a mushroom.", [png_image]
        )

        assert [text for text, _ in illustrator.calls] == ["Page 1 text", "Page 2 text"]
        assert len(book.pages) == 2
        assert [page.generated_text for page in book.pages] == ["Page 1 text", "Page 2 text"]
        assert all(page.image_url for page in book.pages)
        assert book.story == "A fox finds a mushroom."

    def test_every_page_uses_the_same_encoded_images(self, png_image):
        illustrator = FakeIllustrator()
        make_orchestrator(FakeSplitter(["a", "b", "c"]), illustrator).generate_book(
            "Story.", [png_image, png_image]
        )

        for _, images in illustrator.calls:
            assert [image.data for image in images] == [PNG_BASE64, PNG_BASE64]

    def test_page_ids_are_unique_and_indexed(self, png_image):
        book = make_orchestrator(FakeSplitter(["a", "b", "c"]), FakeIllustrator()).generate_book(
            "Story.", [png_image]
        )
        ids = [page.id for page in book.pages]
        assert len(set(ids)) == 3
        for index, page_id in enumerate(ids):
            assert re.fullmatch(rf"page-\d+-{index}", page_id)

    def test_progress_messages(self, png_image):
        messages = []
        make_orchestrator(FakeSplitter(["a", "b"]), FakeIllustrator()).generate_book(
            "Story.", [png_image], progress_callback=messages.append
        )
        assert messages == [
            "Preparing your character art...",
            "Splitting your story into pages...",
            "Generating illustration for page 1 of 2...",
            "Generating illustration for page 2 of 2...",
            "Assembling your book...",
        ]

    def test_missing_credential_stops_before_any_work(self, png_image):
        splitter = FakeSplitter(["a"])
        illustrator = FakeIllustrator()
        messages = []

        with pytest.raises(MissingCredentialError):
            make_orchestrator(splitter, illustrator, api_key=None).generate_book(
                "Story.", [png_image], progress_callback=messages.append
            )
        assert messages == []
        assert splitter.calls == []

    def test_credential_from_environment(self, monkeypatch, png_image):
        monkeypatch.setenv("API_KEY", "env-key")
        book = make_orchestrator(FakeSplitter(["a"]), FakeIllustrator(), api_key=None).generate_book(
            "Story.", [png_image]
        )
        assert len(book) == 1

    @pytest.mark.parametrize("story", ["", "   \n"])
    def test_empty_story_rejected_before_segmenter(self, story, png_image):
        splitter = FakeSplitter(["a"])
        with pytest.raises(InvalidStoryError):
            make_orchestrator(splitter, FakeIllustrator()).generate_book(story, [png_image])
        assert splitter.calls == []

    def test_format_error_means_zero_illustration_calls(self, png_image):
        illustrator = FakeIllustrator()
        splitter = FakeSplitter(error=SegmentationFormatError())
        with pytest.raises(SegmentationFormatError):
            make_orchestrator(splitter, illustrator).generate_book("Story.", [png_image])
        assert illustrator.calls == []

    def test_illustration_failure_returns_no_partial_book(self, png_image):
        illustrator = FakeIllustrator(fail_on=2)
        with pytest.raises(IllustrationTransportError):
            make_orchestrator(FakeSplitter(["a", "b", "c", "d"]), illustrator).generate_book(
                "Story.", [png_image]
            )
        # Pages after the failing one are never attempted.
        assert [text for text, _ in illustrator.calls] == ["a", "b", "c"]

    def test_missing_image_aborts(self, png_image):
        illustrator = FakeIllustrator(fail_on=0, error=IllustrationMissingError())
        with pytest.raises(IllustrationMissingError):
            make_orchestrator(FakeSplitter(["a", "b"]), illustrator).generate_book(
                "Story.", [png_image]
            )
        assert len(illustrator.calls) == 1

    def test_encoding_failure_stops_remaining_stages(self, tmp_path, png_image):
        splitter = FakeSplitter(["a"])
        illustrator = FakeIllustrator()
        broken = CharacterImage(source=tmp_path / "missing.png", mime_type="image/png")

        with pytest.raises(CharacterEncodingError):
            make_orchestrator(splitter, illustrator).generate_book(
                "Story.", [png_image, broken]
            )
        assert splitter.calls == []
        assert illustrator.calls == []


class TestEndToEndWithFakeCompletion:
    def test_litellm_backends_wired_together(self, png_image):
        def respond(**kwargs):
            if "response_format" in kwargs:
                return pages_result(["Page 1 text", "Page 2 text"])
            return image_result(f"data:image/png;base64,{PNG_BASE64}")

        fake = FakeCompletion(respond)
        orchestrator = PictureBookOrchestrator(
            page_splitter=StoryPageSplitter(api_key="key", completion_fn=fake),
            image_generator=IllustrationGenerator(api_key="key", completion_fn=fake),
            api_key="key",
        )

        book = orchestrator.generate_book("A fox finds a mushroom.", [png_image])

        assert len(fake.calls) == 3
        assert "response_format" in fake.calls[0]
        assert all("modalities" in call for call in fake.calls[1:])
        assert "Page 1 text" in fake.calls[1]["messages"][0]["content"][0]["text"]
        assert "Page 2 text" in fake.calls[2]["messages"][0]["content"][0]["text"]
        assert [page.image_url for page in book.pages] == [
            f"data:image/png;base64,{PNG_BASE64}"
        ] * 2

    @pytest.mark.parametrize("pages", [[], ["Page one", "   "]])
    def test_empty_pages_fail_before_any_illustration(self, pages, png_image):
        def respond(**kwargs):
            if "response_format" in kwargs:
                return pages_result(pages)
            return image_result(f"data:image/png;base64,{PNG_BASE64}")

        fake = FakeCompletion(respond)
        orchestrator = PictureBookOrchestrator(
            page_splitter=StoryPageSplitter(api_key="key", completion_fn=fake),
            image_generator=IllustrationGenerator(api_key="key", completion_fn=fake),
            api_key="key",
        )

        with pytest.raises(SegmentationFormatError):
            orchestrator.generate_book("A fox finds a mushroom.", [png_image])
        assert len(fake.calls) == 1

    def test_default_backend_is_litellm(self):
        orchestrator = PictureBookOrchestrator(api_key="key")
        assert isinstance(orchestrator._image_generator, IllustrationGenerator)

    def test_unsupported_replicate_model_rejected_when_built(self, monkeypatch):
        monkeypatch.setenv("REPLICATE_API_TOKEN", "r8_token")
        monkeypatch.setenv("REPLICATE_MODEL", "someone/unknown")
        with pytest.raises(ValueError):
            PictureBookOrchestrator(api_key="key", image_backend="replicate")

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValueError):
            PictureBookOrchestrator(api_key="key", image_backend="dall-e")


class TestGenerateBookFromStory:
    def test_requires_credential(self, png_image):
        with pytest.raises(MissingCredentialError):
            generate_book_from_story("Story.", [png_image])

    def test_runs_with_injected_collaborators(self, png_image):
        book = generate_book_from_story(
            "Story.",
            [png_image],
            api_key="key",
            page_splitter=FakeSplitter(["only"]),
            image_generator=FakeIllustrator(),
        )
        assert [page.generated_text for page in book.pages] == ["only"]


def test_new_page_id_format():
    assert re.fullmatch(r"page-\d{13,}-4", new_page_id(4))
