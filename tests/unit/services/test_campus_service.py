"""Unit tests for campus_service."""
import pytest

from src.services.campus_service import get_campus_guide, save_campus_guide
from src.utils.exceptions import ValidationError


class TestCampusGuide:
    """Test campus guide load/save."""

    def test_empty_when_unset(self, store):
        """Test an absent document reads as an empty list."""
        assert get_campus_guide() == []

    def test_save_and_load(self, store):
        """Test sections are stored as given."""
        sections = [{"title": "停车", "description": "B1", "items": ["入口在东侧"]}]
        save_campus_guide(sections)

        assert get_campus_guide() == sections

    def test_rejects_non_list(self, store):
        """Test anything but a list of objects is refused."""
        with pytest.raises(ValidationError, match="园区指南必须是对象数组"):
            save_campus_guide({"title": "x"})

        with pytest.raises(ValidationError):
            save_campus_guide(["x"])

        assert get_campus_guide() == []
