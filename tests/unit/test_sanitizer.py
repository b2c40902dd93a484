"""Unit tests for the report fragment sanitizer."""

import pytest

from medivoice.streaming.sanitizer import clean


SAMPLES = [
    "**MEDIVOICE HOSPITAL**",
    "## CHIEF COMPLAINT",
    "### *Assessment*: stable",
    "Plain text with no markers.",
    "#1 priority *** done ##",
    "",
]


@pytest.mark.unit
class TestSanitizer:
    """Test cases for clean()."""

    def test_removes_bold_and_heading_markers(self):
        assert clean("**MEDIVOICE HOSPITAL**") == "MEDIVOICE HOSPITAL"
        assert clean("## CHIEF COMPLAINT") == " CHIEF COMPLAINT"

    def test_keeps_other_punctuation(self):
        assert clean("- BP 120/80, HR 72 (normal)") == "- BP 120/80, HR 72 (normal)"

    def test_empty_and_none(self):
        assert clean("") == ""
        assert clean(None) == ""

    def test_marker_only_fragment_becomes_empty(self):
        assert clean("***") == ""
        assert clean("#") == ""

    @pytest.mark.parametrize("fragment", SAMPLES)
    def test_output_has_no_markers(self, fragment):
        cleaned = clean(fragment)

        assert "*" not in cleaned
        assert "#" not in cleaned

    @pytest.mark.parametrize("fragment", SAMPLES)
    def test_idempotent(self, fragment):
        assert clean(clean(fragment)) == clean(fragment)
