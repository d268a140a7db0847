"""
Flood risk pipeline orchestrator

One run per address:

  idle -> resolving -> projecting -> querying -> interpreting -> done
              \\-> error (geocoding failed, no point to fall back on)

If the authoritative source is unavailable (or reports no data and
fallback_on_no_data is set), the geocoded point goes straight to the
heuristic fallback. A run for a new address cancels any in-flight run;
superseded runs end as cancelled and their results are discarded.
"""

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Protocol

from loguru import logger

from .analysis import RiskInterpreter
from .collectors import Geocoder, normalize_address
from .config import get_config, PipelineConfig
from .errors import (
    AddressUnavailableError, GeocodingFailure, GeocodingFailureReason, RunCancelled, SourceUnavailableError
)
from .models import AssessmentSource, GeoPoint, RiskAssessment, RiskLevel, RiskStatus
from .sources import AuthoritativeSource, FloodRiskSource, HeuristicFallbackSource


class PipelineState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    PROJECTING = "projecting"
    QUERYING = "querying"
    INTERPRETING = "interpreting"
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"


TERMINAL_STATES = {PipelineState.DONE, PipelineState.ERROR, PipelineState.CANCELLED}


GEOCODING_ERROR_TEXT = {
    GeocodingFailureReason.NETWORK_ERROR: (
        "Could not reach the address lookup service",
        "Try again in a few minutes.",
    ),
    GeocodingFailureReason.NO_RESULTS: (
        "Address could not be found",
        "Check the address. If the listing page is still loading, try again once it has finished.",
    ),
    GeocodingFailureReason.MALFORMED_RESPONSE: (
        "Address lookup returned an unexpected response",
        "Try again later.",
    ),
}


class AddressSource(Protocol):
    def get_address(self, listing_id: str) -> Optional[str]:
        ...


@dataclass
class AssessmentRun:
    """State of one assessment request"""
    address: str
    run_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    started_at: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    state: PipelineState = PipelineState.IDLE
    history: List[PipelineState] = field(default_factory=list)
    point: Optional[GeoPoint] = None
    result: Optional[RiskAssessment] = None
    error: Optional[GeocodingFailure] = None
    used_fallback: bool = False
    cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self):
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, state: PipelineState):
        logger.debug(f"[run {self.run_id}] {self.state.value} -> {state.value}")
        self.history.append(state)
        self.state = state

    def on_stage(self, stage: str):
        self.transition(PipelineState(stage))

    def check_cancelled(self):
        if self.cancelled:
            raise RunCancelled()


def geocoding_error_assessment(failure: GeocodingFailure) -> RiskAssessment:
    message, recommendation = GEOCODING_ERROR_TEXT[failure.reason]
    return RiskAssessment(
        status=RiskStatus.ERROR,
        risk_level=RiskLevel.UNKNOWN,
        message=message,
        details=f"Geocoding failed: {failure.reason.value}",
        recommendation=recommendation,
    )


class FloodRiskPipeline:
    """
    Assess coastal flood risk for an address

    Usage:
        pipeline = FloodRiskPipeline()
        assessment = pipeline.assess("123 Beach Rd, Auckland, New Zealand")
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        geocoder: Optional[Geocoder] = None,
        primary: Optional[FloodRiskSource] = None,
        fallback: Optional[FloodRiskSource] = None,
    ):
        self.config = config or get_config()
        self.geocoder = geocoder or Geocoder(self.config)
        self.primary = primary or AuthoritativeSource(self.config)
        self.fallback = fallback or HeuristicFallbackSource(self.config)
        self.interpreter = RiskInterpreter(self.config)

        self._lock = threading.Lock()
        self._in_flight: List[AssessmentRun] = []

    # ------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------

    def assess(self, address: str) -> Optional[RiskAssessment]:
        """Run the pipeline; None if the run was superseded"""
        return self.run(address).result

    def assess_listing(self, listing_id: str, store: AddressSource) -> Optional[RiskAssessment]:
        """
        Assess the address stored for a listing.

        The lookup is retried once after `address_retry_delay_s`.

        Raises:
            AddressUnavailableError: no address stored after the retry
        """
        address = store.get_address(listing_id)
        if not address:
            delay = self.config.address_retry_delay_s
            logger.info(f"No address for listing {listing_id} yet, retrying in {delay}s")
            time.sleep(delay)
            address = store.get_address(listing_id)
        if not address:
            raise AddressUnavailableError(listing_id)
        return self.assess(address)

    def start(self, address: str) -> AssessmentRun:
        """Register a new run, superseding every in-flight run for another address"""
        run = AssessmentRun(address=normalize_address(address))
        with self._lock:
            for active in self._in_flight:
                if not active.finished and active.address != run.address:
                    logger.info(f"[run {active.run_id}] superseded by request for {run.address!r}")
                    active.cancel()
            self._in_flight = [r for r in self._in_flight if not r.finished and not r.cancelled]
            self._in_flight.append(run)
        return run

    def run(self, address: str) -> AssessmentRun:
        run = self.start(address)
        self.execute(run)
        return run

    # ------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------

    def execute(self, run: AssessmentRun) -> AssessmentRun:
        logger.info(f"[run {run.run_id}] Assessing {run.address!r}")
        try:
            run.transition(PipelineState.RESOLVING)
            try:
                run.point = self.geocoder.resolve(run.address)
            except GeocodingFailure as e:
                run.check_cancelled()
                logger.error(f"[run {run.run_id}] {e}")
                run.error = e
                run.result = geocoding_error_assessment(e)
                run.transition(PipelineState.ERROR)
                return run
            run.check_cancelled()

            assessment = self._assess_point(run)
            run.check_cancelled()

            run.result = assessment
            run.transition(PipelineState.DONE)
            logger.info(
                f"[run {run.run_id}] {assessment.icon} {assessment.status.value}: {assessment.message}"
            )
        except RunCancelled:
            run.result = None
            run.transition(PipelineState.CANCELLED)
            logger.info(f"[run {run.run_id}] cancelled, result discarded")
        finally:
            with self._lock:
                self._in_flight = [r for r in self._in_flight if r is not run]
        return run

    def _assess_point(self, run: AssessmentRun) -> RiskAssessment:
        point = run.point
        assessment = None
        try:
            assessment = self.primary.assess(point, cancel_event=run.cancel_event, on_stage=run.on_stage)
        except SourceUnavailableError as e:
            logger.warning(f"[run {run.run_id}] Authoritative source unavailable: {e}")
        except RunCancelled:
            raise
        except Exception as e:
            logger.exception(f"[run {run.run_id}] Authoritative source failed: {e}")

        needs_fallback = assessment is None or (
            assessment.status == RiskStatus.NO_DATA and self.config.fallback_on_no_data
        )
        if needs_fallback and self.config.enable_fallback:
            logger.info(f"[run {run.run_id}] Using heuristic fallback")
            run.used_fallback = True
            return self.fallback.assess(point, cancel_event=run.cancel_event, on_stage=run.on_stage)

        if assessment is None:
            run.on_stage("interpreting")
            assessment = self.interpreter.interpret([]).model_copy(
                update={"location": point, "source": AssessmentSource.NONE}
            )
        return assessment
