"""Unit tests for aggregation_service."""
from src.models.registration import Registration
from src.services.aggregation_service import (
    RegistrationStats,
    compute_stats,
    progress_percent,
    remaining_slots,
    total_headcount,
)


class TestComputeStats:
    """Test compute_stats and total_headcount."""

    def test_empty_collection(self):
        """Test no registrations means all zeros."""
        assert compute_stats([]) == RegistrationStats(0, 0, 0)
        assert total_headcount([]) == 0

    def test_headcount_includes_registrant_and_family(self):
        """Test (2 adults, 0 children) + (0, 1) totals 5 people."""
        collection = [
            Registration(id="a", name="甲", adult_family_count=2),
            Registration(id="b", name="乙", child_family_count=1),
        ]

        stats = compute_stats(collection)

        assert stats.registrants == 2
        assert stats.adult_family == 2
        assert stats.child_family == 1
        assert stats.total_headcount == 5

    def test_raw_documents_total(self):
        """Test (1+2+1) + (1+0+0) == 5 over stored documents."""
        collection = [
            {"adultFamilyCount": 2, "childFamilyCount": 1},
            {"adultFamilyCount": 0, "childFamilyCount": 0},
        ]
        assert total_headcount(collection) == 5

    def test_order_does_not_matter(self):
        """Test the sum is independent of collection order."""
        collection = [
            Registration(id="a", name="甲", adult_family_count=3),
            Registration(id="b", name="乙", child_family_count=2),
            Registration(id="c", name="丙"),
        ]

        assert total_headcount(collection) == total_headcount(list(reversed(collection)))

    def test_raw_documents_with_malformed_counts(self):
        """Test malformed stored counts contribute 0."""
        collection = [
            {"id": "a", "adultFamilyCount": "abc", "childFamilyCount": None},
            {"id": "b", "adultFamilyCount": "2", "childFamilyCount": -4},
        ]

        stats = compute_stats(collection)

        assert stats == RegistrationStats(registrants=2, adult_family=2, child_family=0)


class TestProgress:
    """Test remaining_slots and progress_percent."""

    def test_remaining_can_go_negative(self):
        """Test over-target is reported, not clamped."""
        assert remaining_slots(30, 28) == -2
        assert remaining_slots(5, 28) == 23

    def test_progress_is_capped(self):
        """Test percent stays within 0-100."""
        assert progress_percent(14, 28) == 50.0
        assert progress_percent(40, 28) == 100.0
        assert progress_percent(0, 0) == 0.0
