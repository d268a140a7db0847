"""
Risk interpreter

Maps per-layer membership results to one risk classification. Only the
two anchor layers drive the status:

  current conditions in zone  -> current_risk / high
  worst-case future in zone   -> future_risk / medium
  otherwise                   -> low_risk / low
  no results                  -> no_data / unknown

Intermediate scenarios are reported in the scenario summary only.
"""

from typing import Dict, Optional, Sequence

from ..config import get_config, PipelineConfig
from ..models import (
    AssessmentSource, LayerQueryResult, RiskAssessment, RiskLevel, RiskStatus, ScenarioSummary
)


# (message, details, recommendation) per status
RISK_TEXT: Dict[RiskStatus, tuple] = {
    RiskStatus.CURRENT_RISK: (
        "Property is in a 1% annual flood zone under current conditions",
        "This property is currently at risk of coastal flooding during extreme weather "
        "events (1 in 100 year flood).",
        "Consider flood insurance and evacuation planning. Consult with local council "
        "about flood mitigation measures.",
    ),
    RiskStatus.FUTURE_RISK: (
        "Property may be at risk with 1m sea level rise (projected by 2100)",
        "While not currently in a flood zone, this property could be affected by coastal "
        "flooding with projected sea level rise.",
        "Monitor sea level rise projections and consider long-term flood risk in property decisions.",
    ),
    RiskStatus.LOW_RISK: (
        "Property not currently identified in NIWA coastal flood mapping",
        "Based on NIWA extreme coastal flood mapping, this property is not in mapped "
        "coastal flood zones.",
        "Still check local council flood maps for river and stormwater flooding risks.",
    ),
    RiskStatus.NO_DATA: (
        "No flood mapping data available for this location",
        None,
        "Check local council flood maps directly.",
    ),
}

RISK_LEVELS: Dict[RiskStatus, RiskLevel] = {
    RiskStatus.CURRENT_RISK: RiskLevel.HIGH,
    RiskStatus.FUTURE_RISK: RiskLevel.MEDIUM,
    RiskStatus.LOW_RISK: RiskLevel.LOW,
    RiskStatus.NO_DATA: RiskLevel.UNKNOWN,
}


class RiskInterpreter:
    """Deterministic, side-effect-free classification of layer results"""

    def __init__(self, config: Optional[PipelineConfig] = None):
        cfg = config or get_config()
        self.current_anchor_id = cfg.layers.current_anchor_id
        self.future_anchor_id = cfg.layers.resolve_future_anchor()

    def interpret(self, results: Sequence[LayerQueryResult]) -> RiskAssessment:
        summary = [ScenarioSummary(scenario_label=r.scenario_label, in_zone=r.in_zone) for r in results]
        status = self.classify(results)
        message, details, recommendation = RISK_TEXT[status]
        return RiskAssessment(
            status=status,
            risk_level=RISK_LEVELS[status],
            message=message,
            details=details,
            recommendation=recommendation,
            scenario_summary=summary,
            source=AssessmentSource.NIWA_COASTAL_FLOOD,
        )

    def classify(self, results: Sequence[LayerQueryResult]) -> RiskStatus:
        if not results:
            return RiskStatus.NO_DATA

        current = self._find(results, self.current_anchor_id)
        if current is not None and current.in_zone:
            return RiskStatus.CURRENT_RISK

        future = self._find(results, self.future_anchor_id)
        if future is not None and future.in_zone:
            return RiskStatus.FUTURE_RISK

        return RiskStatus.LOW_RISK

    @staticmethod
    def _find(results: Sequence[LayerQueryResult], layer_id: str) -> Optional[LayerQueryResult]:
        for result in results:
            if result.layer_id == layer_id:
                return result
        return None
