"""Unit tests for post composition and the moderation transition table."""

import pytest

from furioza.kernel.errors import ValidationError
from furioza.orchestration.state_machine import (
    ModerationAction,
    ThreadState,
    compose_post_content,
    valid_actions,
)


class TestComposePostContent:
    def test_text_only(self):
        assert compose_post_content("  Hej drużyno  ") == "Hej drużyno"

    def test_images_are_appended_as_markers(self):
        content = compose_post_content(
            "Zdjęcia z meczu",
            ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"],
        )
        assert content == (
            "Zdjęcia z meczu\n\n"
            "[IMG]https://cdn.example.com/a.jpg[/IMG]\n"
            "[IMG]https://cdn.example.com/b.jpg[/IMG]"
        )

    def test_images_without_text(self):
        assert compose_post_content("", ["https://cdn.example.com/a.jpg"]) == (
            "[IMG]https://cdn.example.com/a.jpg[/IMG]"
        )

    def test_empty_post_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            compose_post_content("   ", [])
        assert exc_info.value.field == "content"

    def test_too_many_images_rejected(self):
        urls = [f"https://cdn.example.com/{i}.jpg" for i in range(6)]
        with pytest.raises(ValidationError) as exc_info:
            compose_post_content("x", urls, max_images=5)
        assert exc_info.value.field == "image_urls"

    def test_five_images_allowed(self):
        urls = [f"https://cdn.example.com/{i}.jpg" for i in range(5)]
        assert compose_post_content("x", urls, max_images=5).count("[IMG]") == 5

    def test_non_http_image_rejected(self):
        with pytest.raises(ValidationError):
            compose_post_content("x", ["javascript:alert(1)"])


class TestTransitionTable:
    def test_open_unpinned(self):
        assert set(valid_actions(ThreadState(locked=False, pinned=False))) == {
            ModerationAction.LOCK,
            ModerationAction.PIN,
        }

    def test_locked_pinned(self):
        assert set(valid_actions(ThreadState(locked=True, pinned=True))) == {
            ModerationAction.UNLOCK,
            ModerationAction.UNPIN,
        }

    def test_state_label(self):
        assert ThreadState(locked=True, pinned=False).label == "locked/unpinned"
