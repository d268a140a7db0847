"""
Pydantic models for flood risk assessment data structures
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


# ============================================================
# Geometry Types
# ============================================================

class GeoPoint(BaseModel):
    """WGS84 point produced by the geocoder"""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    display_name: Optional[str] = None


class ProjectionMethod(str, Enum):
    PROJECTED = "projected"
    APPROXIMATED = "approximated"


class ProjectedPoint(BaseModel):
    """
    Point in the hazard service's spatial reference.

    APPROXIMATED points carry the unmodified lon/lat in x/y and
    wkid = the source reference (4326).
    """
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    wkid: int
    method: ProjectionMethod = ProjectionMethod.PROJECTED
    reason: Optional[str] = None

    @property
    def approximated(self) -> bool:
        return self.method == ProjectionMethod.APPROXIMATED


# ============================================================
# Hazard Layer Models
# ============================================================

class LayerDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    scenario_label: str


class LayerQueryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    layer_id: str
    scenario_label: str
    in_zone: bool
    raw: Optional[Dict[str, Any]] = None


class ScenarioSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    scenario_label: str
    in_zone: bool


# ============================================================
# Risk Assessment
# ============================================================

class RiskStatus(str, Enum):
    CURRENT_RISK = "current_risk"
    FUTURE_RISK = "future_risk"
    LOW_RISK = "low_risk"
    POTENTIAL_RISK = "potential_risk"
    NO_DATA = "no_data"
    OUTSIDE_COVERAGE = "outside_coverage"
    ERROR = "error"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


class AssessmentSource(str, Enum):
    NIWA_COASTAL_FLOOD = "niwa_coastal_flood"
    HEURISTIC_FALLBACK = "heuristic_fallback"
    NONE = "none"


STATUS_ICONS: Dict[RiskStatus, str] = {
    RiskStatus.CURRENT_RISK: "🔴",
    RiskStatus.FUTURE_RISK: "🟠",
    RiskStatus.POTENTIAL_RISK: "🟡",
    RiskStatus.LOW_RISK: "🟢",
    RiskStatus.NO_DATA: "⚪",
    RiskStatus.OUTSIDE_COVERAGE: "⚪",
    RiskStatus.ERROR: "⚠️",
}


class RiskAssessment(BaseModel):
    """Terminal output of one pipeline run"""
    model_config = ConfigDict(frozen=True)

    status: RiskStatus
    risk_level: RiskLevel
    message: str
    details: Optional[str] = None
    recommendation: Optional[str] = None
    scenario_summary: List[ScenarioSummary] = Field(default_factory=list)

    source: AssessmentSource = AssessmentSource.NONE
    coordinates_approximated: bool = False
    location: Optional[GeoPoint] = None

    @property
    def icon(self) -> str:
        return STATUS_ICONS[self.status]
