"""Unit tests for search text cleanup."""
import pytest

from mediasearch.utils.sanitizer import clean_search_text


class TestCleanSearchText:
    """Tests for clean_search_text."""

    def test_collapses_whitespace(self):
        assert clean_search_text("  iron \t\n man  ") == "iron man"

    def test_strips_control_characters(self):
        assert clean_search_text("alien\x00s") == "alien s"

    def test_keeps_punctuation(self):
        assert clean_search_text("Tom & Jerry: The Movie") == "Tom & Jerry: The Movie"

    def test_truncates(self):
        assert clean_search_text("abcdef", max_length=3) == "abc"

    def test_truncation_does_not_leave_trailing_space(self):
        assert clean_search_text("abc def", max_length=4) == "abc"

    @pytest.mark.parametrize("text", ["", "   ", "\x00\x01", None])
    def test_rejects_empty(self, text):
        with pytest.raises(ValueError):
            clean_search_text(text)
