"""
Unit tests for tier classification.
"""

import pytest

from mesh_agent.tier import Tier, classify


class TestClassify:
    """Test classify boundaries"""

    @pytest.mark.parametrize('cores, memory_gb, expected', [
        (16, 32, Tier.ALPHA),
        (64, 512, Tier.ALPHA),
        (15, 32, Tier.BETA),
        (16, 31, Tier.BETA),
        (8, 16, Tier.BETA),
        (7, 16, Tier.GAMMA),
        (8, 15, Tier.GAMMA),
        (4, 0, Tier.GAMMA),
        (3, 100, Tier.DELTA),
        (1, 1, Tier.DELTA),
        (0, 0, Tier.DELTA),
    ])
    def test_boundaries(self, cores, memory_gb, expected):
        """Should apply the first matching rule top-down"""
        assert classify(cores, memory_gb) is expected

    def test_deterministic(self):
        """Should return the same tier for the same inputs"""
        assert {classify(12, 24) for _ in range(10)} == {Tier.BETA}

    def test_tier_renders_as_label(self):
        """Should render as the plain lowercase label"""
        assert str(Tier.GAMMA) == 'gamma'
        assert Tier('delta') is Tier.DELTA
