"""
Tests for toxicity tier mapping and score formatting.
"""

import pytest
from toxicity_dashboard.services.toxicity import Tier, toxicity_tier, format_score


class TestToxicityTier:
    """Thresholds are inclusive on the lower tier."""

    @pytest.mark.parametrize("score", [0.0, 0.1, 0.29, 0.3])
    def test_low_range(self, score):
        assert toxicity_tier(score) is Tier.LOW

    @pytest.mark.parametrize("score", [0.3000001, 0.42, 0.5, 0.7])
    def test_medium_range(self, score):
        assert toxicity_tier(score) is Tier.MEDIUM

    @pytest.mark.parametrize("score", [0.7000001, 0.85, 1.0])
    def test_high_range(self, score):
        assert toxicity_tier(score) is Tier.HIGH

    def test_tier_labels_and_colors(self):
        assert Tier.LOW.label == "Low Toxicity"
        assert Tier.LOW.color == "text-green-600"
        assert Tier.MEDIUM.label == "Medium Toxicity"
        assert Tier.MEDIUM.color == "text-yellow-600"
        assert Tier.HIGH.label == "High Toxicity"
        assert Tier.HIGH.color == "text-red-600"


class TestFormatScore:

    def test_formats_as_percentage_with_one_decimal(self):
        assert format_score(0.42) == "42.0%"
        assert format_score(0.15) == "15.0%"

    def test_extremes(self):
        assert format_score(0.0) == "0.0%"
        assert format_score(1.0) == "100.0%"
