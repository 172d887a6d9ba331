"""Tests for the academic catalog (F2)."""

from edumate.core.catalog import BOARDS, STANDARDS, SUBJECTS, available_subjects, is_senior


class TestCatalog:
    """Tests for boards, classes and subject lists."""

    def test_boards_and_standards(self):
        assert "CBSE" in BOARDS
        assert STANDARDS[0] == "6"
        assert STANDARDS[-1] == "12"

    def test_senior_classes(self):
        assert is_senior("11")
        assert is_senior("12")
        assert not is_senior("10")

    def test_junior_subjects_ignore_stream(self):
        assert available_subjects("9", "Commerce") == SUBJECTS["General"]

    def test_senior_stream_subjects(self):
        assert available_subjects("12", "Commerce") == SUBJECTS["Commerce"]
        assert available_subjects("11") == SUBJECTS["Science"]
