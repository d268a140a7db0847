"""
Heuristic flood risk fallback

Used when authoritative flood mapping is unavailable. Approximates risk by
proximity to a fixed list of coastal regions. Distances are planar in
degree space, not geodesic.
"""

from typing import Optional, Sequence, Tuple

from loguru import logger
from shapely.geometry import Point, box

from ..config import get_config, CoastalRegion, PipelineConfig
from ..models import AssessmentSource, GeoPoint, RiskAssessment, RiskLevel, RiskStatus


class FallbackHeuristicEngine:
    """Estimate flood risk from static coastal region data"""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        regions: Optional[Sequence[CoastalRegion]] = None,
        coverage_bbox: Optional[Tuple[float, float, float, float]] = None,
    ):
        cfg = config or get_config()
        self.regions = list(regions if regions is not None else cfg.coastal_regions)
        min_lat, min_lon, max_lat, max_lon = coverage_bbox or cfg.coverage_bbox
        self.coverage = box(min_lon, min_lat, max_lon, max_lat)

    def covers(self, point: GeoPoint) -> bool:
        return self.coverage.covers(Point(point.longitude, point.latitude))

    def nearest_region(self, point: GeoPoint) -> Optional[CoastalRegion]:
        """Closest region whose radius contains the point"""
        location = Point(point.longitude, point.latitude)
        best = None
        best_distance = None
        for region in self.regions:
            distance = location.distance(Point(region.longitude, region.latitude))
            if distance <= region.radius_deg and (best_distance is None or distance < best_distance):
                best, best_distance = region, distance
        return best

    def estimate(self, point: GeoPoint) -> RiskAssessment:
        if not self.covers(point):
            logger.info(f"({point.latitude}, {point.longitude}) is outside national coverage")
            return RiskAssessment(
                status=RiskStatus.OUTSIDE_COVERAGE,
                risk_level=RiskLevel.UNKNOWN,
                message="Location is outside New Zealand flood mapping coverage",
                details="This checker only covers New Zealand coastal flood hazards.",
                source=AssessmentSource.HEURISTIC_FALLBACK,
                location=point,
            )

        region = self.nearest_region(point)
        if region is not None:
            logger.info(f"Heuristic fallback: within {region.name} coastal region")
            return RiskAssessment(
                status=RiskStatus.POTENTIAL_RISK,
                risk_level=RiskLevel.MEDIUM,
                message="Possible coastal flood exposure (estimate, lower confidence)",
                details=f"Located in the {region.name} coastal area, which includes mapped "
                        "coastal flood zones. Official flood mapping could not be checked.",
                recommendation="Check NIWA and local council flood maps for this address.",
                source=AssessmentSource.HEURISTIC_FALLBACK,
                location=point,
            )

        logger.info("Heuristic fallback: no coastal region matched")
        return RiskAssessment(
            status=RiskStatus.LOW_RISK,
            risk_level=RiskLevel.LOW,
            message="No known coastal flood area nearby (estimate, lower confidence)",
            details="Official flood mapping could not be checked; this estimate uses a "
                    "limited list of coastal areas.",
            recommendation="Still check local council flood maps for river and stormwater flooding risks.",
            source=AssessmentSource.HEURISTIC_FALLBACK,
            location=point,
        )
