"""Tests for text utilities (F1)."""

import pytest

from edumate.utils.text_utils import (
    format_countdown,
    slugify,
    strip_markdown_emphasis,
    strip_think,
)


class TestFormatCountdown:
    """Tests for HH:MM:SS formatting."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (3600, "01:00:00"),
            (10800, "03:00:00"),
            (3661, "01:01:01"),
            (59, "00:00:59"),
            (0, "00:00:00"),
            (-5, "00:00:00"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_countdown(seconds) == expected


class TestStripThink:
    """Tests for removing reasoning blocks."""

    def test_removes_think_block(self):
        assert strip_think("<think>hmm</think>\nAnswer") == "Answer"

    def test_multiline_and_case(self):
        text = "<THINKING>\nstep 1\nstep 2\n</THINKING>{\"ok\": true}"

        assert strip_think(text) == '{"ok": true}'

    def test_plain_text_unchanged(self):
        assert strip_think("  Just text  ") == "Just text"


class TestMarkdownHelpers:
    """Tests for note export helpers."""

    def test_strip_emphasis(self):
        assert strip_markdown_emphasis("**Bold** and *italic*") == "Bold and italic"

    def test_slugify(self):
        assert slugify("Light: Reflection & Refraction") == "Light_Reflection_Refraction"

    def test_slugify_empty(self):
        assert slugify("  !!  ") == "notes"
