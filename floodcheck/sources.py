"""
Flood risk sources

One capability interface with two variants:
- AuthoritativeSource: project -> query hazard layers -> interpret
- HeuristicFallbackSource: static coastal region estimate
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from loguru import logger

from .analysis import FallbackHeuristicEngine, RiskInterpreter
from .collectors import CoordinateProjector, FloodLayerQueryEngine, configured_layers
from .config import get_config, PipelineConfig
from .errors import RunCancelled, SourceUnavailableError
from .models import GeoPoint, RiskAssessment

StageCallback = Callable[[str], None]


def _check_cancelled(cancel_event: Optional[threading.Event]):
    if cancel_event is not None and cancel_event.is_set():
        raise RunCancelled()


class FloodRiskSource(ABC):
    """Produces a RiskAssessment for a geocoded point"""

    name: str = "source"

    @abstractmethod
    def assess(
        self,
        point: GeoPoint,
        cancel_event: Optional[threading.Event] = None,
        on_stage: Optional[StageCallback] = None,
    ) -> RiskAssessment:
        """
        Raises:
            SourceUnavailableError: the source cannot assess this point at all
            RunCancelled: cancel_event was set between stages
        """


class AuthoritativeSource(FloodRiskSource):
    """NIWA coastal flood mapping via the ArcGIS MapServer"""

    name = "niwa"

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        projector: Optional[CoordinateProjector] = None,
        engine: Optional[FloodLayerQueryEngine] = None,
        interpreter: Optional[RiskInterpreter] = None,
    ):
        self.config = config or get_config()
        self.projector = projector or CoordinateProjector(self.config)
        self.engine = engine or FloodLayerQueryEngine(self.config)
        self.interpreter = interpreter or RiskInterpreter(self.config)
        self.layers = configured_layers(self.config)

    def assess(self, point, cancel_event=None, on_stage=None):
        if not self.engine.available:
            raise SourceUnavailableError("flood mapping service is not configured")

        if on_stage:
            on_stage("projecting")
        projected = self.projector.project(point)
        _check_cancelled(cancel_event)

        if on_stage:
            on_stage("querying")
        results = self.engine.run(projected, self.layers, cancel_event=cancel_event)
        _check_cancelled(cancel_event)

        if on_stage:
            on_stage("interpreting")
        assessment = self.interpreter.interpret(results)
        logger.info(f"Authoritative assessment: {assessment.status.value} ({assessment.risk_level.value})")
        return assessment.model_copy(update={
            "coordinates_approximated": projected.approximated,
            "location": point,
        })


class HeuristicFallbackSource(FloodRiskSource):
    """Lower-confidence estimate from static coastal regions"""

    name = "heuristic"

    def __init__(self, config: Optional[PipelineConfig] = None, engine: Optional[FallbackHeuristicEngine] = None):
        self.engine = engine or FallbackHeuristicEngine(config)

    def assess(self, point, cancel_event=None, on_stage=None):
        _check_cancelled(cancel_event)
        if on_stage:
            on_stage("interpreting")
        return self.engine.estimate(point)
