"""
Tests for geographic distance functions.
"""

import numpy as np
import pytest

from utils.geo import cumulative_distance_m, haversine_m


class TestHaversine:

    def test_same_point(self):
        assert haversine_m(46.0, 7.0, 46.0, 7.0) == 0.0

    def test_small_distance(self):
        """0.001 degree of latitude is about 111 meters."""
        assert haversine_m(46.0, 7.0, 46.001, 7.0) == pytest.approx(111.19, abs=0.1)

    def test_symmetry(self):
        assert haversine_m(43.0, 76.0, 44.0, 77.0) == pytest.approx(haversine_m(44.0, 77.0, 43.0, 76.0))


class TestCumulativeDistance:

    def test_starts_at_zero_and_accumulates(self):
        lats = np.array([46.0, 46.001, 46.002])
        lons = np.array([7.0, 7.0, 7.0])
        result = cumulative_distance_m(lats, lons)
        assert result[0] == 0.0
        np.testing.assert_allclose(result, [0.0, 111.19, 222.39], atol=0.1)

    def test_matches_pointwise_haversine(self):
        lats = np.array([46.0, 46.01, 46.02, 46.015])
        lons = np.array([7.0, 7.02, 7.01, 7.03])
        expected = np.cumsum([0.0] + [
            haversine_m(lats[i], lons[i], lats[i + 1], lons[i + 1]) for i in range(len(lats) - 1)
        ])
        np.testing.assert_allclose(cumulative_distance_m(lats, lons), expected)

    def test_repeated_point_adds_nothing(self):
        result = cumulative_distance_m(np.array([46.0, 46.0]), np.array([7.0, 7.0]))
        np.testing.assert_allclose(result, [0.0, 0.0])

    def test_empty(self):
        assert len(cumulative_distance_m(np.array([]), np.array([]))) == 0
