"""
Unit tests for the heuristic fallback.
"""

import pytest

from floodcheck.analysis import FallbackHeuristicEngine
from floodcheck.config import CoastalRegion
from floodcheck.models import AssessmentSource, GeoPoint, RiskLevel, RiskStatus


class ExplodingRegions(list):
    """Region list that fails if it is ever iterated"""

    def __iter__(self):
        raise AssertionError("region list evaluated")


@pytest.fixture
def engine(config):
    return FallbackHeuristicEngine(config)


@pytest.mark.parametrize("lat, lon", [
    (51.5074, -0.1278),   # London
    (-33.8688, 151.2093), # Sydney
    (-30.0, 174.0),       # north of the box
    (-36.8, 180.0),
])
def test_outside_coverage(engine, lat, lon):
    assessment = engine.estimate(GeoPoint(latitude=lat, longitude=lon))
    assert assessment.status == RiskStatus.OUTSIDE_COVERAGE
    assert assessment.risk_level == RiskLevel.UNKNOWN


@pytest.mark.parametrize("regions", [
    [],
    [CoastalRegion("Everywhere", 0.0, 0.0, 360.0)],
])
def test_outside_coverage_ignores_regions(regions):
    engine = FallbackHeuristicEngine(regions=regions, coverage_bbox=(-47.5, 166.0, -34.0, 179.0))
    assessment = engine.estimate(GeoPoint(latitude=51.5, longitude=-0.1))
    assert assessment.status == RiskStatus.OUTSIDE_COVERAGE


def test_outside_coverage_checked_before_regions():
    engine = FallbackHeuristicEngine(regions=[], coverage_bbox=(-47.5, 166.0, -34.0, 179.0))
    engine.regions = ExplodingRegions()
    assessment = engine.estimate(GeoPoint(latitude=40.0, longitude=-74.0))
    assert assessment.status == RiskStatus.OUTSIDE_COVERAGE


def test_point_in_region(engine, auckland):
    assessment = engine.estimate(auckland)
    assert assessment.status == RiskStatus.POTENTIAL_RISK
    assert assessment.risk_level == RiskLevel.MEDIUM
    assert "Auckland" in assessment.details
    assert "lower confidence" in assessment.message
    assert assessment.source == AssessmentSource.HEURISTIC_FALLBACK
    assert assessment.location == auckland


def test_point_outside_regions_is_low_risk(engine):
    # Lake Taupo, inland
    assessment = engine.estimate(GeoPoint(latitude=-38.6857, longitude=176.0702))
    assert assessment.status == RiskStatus.LOW_RISK
    assert assessment.risk_level == RiskLevel.LOW
    assert "lower confidence" in assessment.message


def test_distance_is_degree_space():
    region = CoastalRegion("Square", -40.0, 175.0, 0.5)
    engine = FallbackHeuristicEngine(regions=[region], coverage_bbox=(-47.5, 166.0, -34.0, 179.0))
    # ~0.49 and ~0.51 degrees from the center
    inside = engine.estimate(GeoPoint(latitude=-40.3, longitude=175.39))
    outside = engine.estimate(GeoPoint(latitude=-40.31, longitude=175.4))
    assert inside.status == RiskStatus.POTENTIAL_RISK
    assert outside.status == RiskStatus.LOW_RISK


def test_nearest_region_wins():
    regions = [CoastalRegion("Far", -40.0, 175.0, 1.0), CoastalRegion("Near", -40.5, 175.5, 1.0)]
    engine = FallbackHeuristicEngine(regions=regions, coverage_bbox=(-47.5, 166.0, -34.0, 179.0))
    assessment = engine.estimate(GeoPoint(latitude=-40.45, longitude=175.45))
    assert "Near" in assessment.details
