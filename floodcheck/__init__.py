"""
Coastal flood risk checker for New Zealand property addresses
"""

from .config import PipelineConfig, get_config, load_config_from_env, validate_config
from .models import GeoPoint, ProjectedPoint, RiskAssessment, RiskLevel, RiskStatus
from .pipeline import FloodRiskPipeline, AssessmentRun, PipelineState

__version__ = "0.1.0"

__all__ = [
    "PipelineConfig",
    "get_config",
    "load_config_from_env",
    "validate_config",
    "GeoPoint",
    "ProjectedPoint",
    "RiskAssessment",
    "RiskLevel",
    "RiskStatus",
    "FloodRiskPipeline",
    "AssessmentRun",
    "PipelineState",
]
