"""
Flood hazard layer query engine

Queries the NIWA extreme coastal flood MapServer for point membership in
each configured sea level rise scenario layer. Two call shapes:

- query: one point-intersection query per layer, issued concurrently
- identify: a single identify call against all layers

Both return one LayerQueryResult per layer that answered, in configured
layer order. Failed layers are logged and omitted.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_COMPLETED
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .arcgis_client import ArcGISAPIClient, ArcGISServiceError
from ..config import get_config, scenario_label, PipelineConfig
from ..errors import LayerQueryFailure, RunCancelled
from ..models import LayerDescriptor, LayerQueryResult, ProjectedPoint


# How often pending queries check for cancellation (seconds)
_CANCEL_POLL_S = 0.1


def configured_layers(config: Optional[PipelineConfig] = None) -> List[LayerDescriptor]:
    """Layer descriptors in configured order"""
    cfg = config or get_config()
    return [LayerDescriptor(id=lid, scenario_label=scenario_label(lid)) for lid in cfg.layers.layer_ids]


class FloodLayerQueryEngine:
    """Query hazard layers for a projected point"""

    def __init__(self, config: Optional[PipelineConfig] = None, client: Optional[ArcGISAPIClient] = None):
        self.config = config or get_config()
        self.client = client or ArcGISAPIClient(config=self.config)
        self.layer_config = self.config.layers

    @property
    def available(self) -> bool:
        return self.client.configured

    def run(
        self,
        point: ProjectedPoint,
        layers: Sequence[LayerDescriptor],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[LayerQueryResult]:
        """Query using the configured mode"""
        if self.layer_config.query_mode == "identify":
            return self.identify(point, layers)
        return self.query_all(point, layers, cancel_event=cancel_event)

    # ------------------------------------------------------------
    # Per-layer point intersection
    # ------------------------------------------------------------

    def query_layer(self, point: ProjectedPoint, layer: LayerDescriptor) -> LayerQueryResult:
        """
        Point-intersection query against one layer

        Raises:
            LayerQueryFailure: on timeout, HTTP error or malformed payload
        """
        params = {
            "where": "1=1",
            "geometry": f"{point.x},{point.y}",
            "geometryType": "esriGeometryPoint",
            "inSR": str(point.wkid),
            "spatialRel": "esriSpatialRelIntersects",
            "outFields": "*",
            "returnGeometry": "false",
        }
        try:
            data = self.client.get(f"{layer.id}/query", params)
        except ArcGISServiceError as e:
            raise LayerQueryFailure(layer.id, str(e)) from e

        features = data.get("features")
        if not isinstance(features, list):
            raise LayerQueryFailure(layer.id, "response has no features array")

        return LayerQueryResult(
            layer_id=layer.id,
            scenario_label=layer.scenario_label,
            in_zone=len(features) > 0,
            raw=data,
        )

    def query_all(
        self,
        point: ProjectedPoint,
        layers: Sequence[LayerDescriptor],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[LayerQueryResult]:
        """
        Query every layer concurrently; results follow the order of `layers`.

        Never raises for layer failures. Raises RunCancelled if `cancel_event`
        is set while queries are pending.
        """
        layers = list(layers)
        if not layers:
            return []

        slots: List[Optional[LayerQueryResult]] = [None] * len(layers)
        workers = self.layer_config.max_workers or len(layers)

        pool = ThreadPoolExecutor(max_workers=min(workers, len(layers)), thread_name_prefix="flood-layer")
        try:
            futures = {
                pool.submit(self.query_layer, point, layer): index
                for index, layer in enumerate(layers)
            }
            pending = set(futures)
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    for future in pending:
                        future.cancel()
                    logger.info(f"Layer queries cancelled with {len(pending)} pending")
                    raise RunCancelled()

                done, pending = wait(pending, timeout=_CANCEL_POLL_S, return_when=FIRST_COMPLETED)
                for future in done:
                    index = futures[future]
                    try:
                        slots[index] = future.result()
                    except LayerQueryFailure as e:
                        logger.warning(f"Omitting layer {e.layer_id}: {e.reason}")
                    except Exception as e:
                        logger.warning(f"Omitting layer {layers[index].id}: unexpected error {e!r}")
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        results = [r for r in slots if r is not None]
        logger.info(
            f"Layer queries: {len(results)}/{len(layers)} answered, "
            f"{sum(r.in_zone for r in results)} in zone"
        )
        return results

    # ------------------------------------------------------------
    # Identify (single call, all layers)
    # ------------------------------------------------------------

    def identify(self, point: ProjectedPoint, layers: Sequence[LayerDescriptor]) -> List[LayerQueryResult]:
        """
        Identify against all layers using a small extent around the point.

        Returns an empty list if the identify call fails, or if the point
        is approximated: the map extent and tolerance are in projected
        metres and mean nothing around a lon/lat point.
        """
        if point.approximated:
            logger.warning(f"Skipping identify for approximated point ({point.reason})")
            return []

        half = self.layer_config.identify_half_extent
        params = {
            "geometry": f"{point.x},{point.y}",
            "geometryType": "esriGeometryPoint",
            "sr": str(point.wkid),
            "mapExtent": f"{point.x - half},{point.y - half},{point.x + half},{point.y + half}",
            "imageDisplay": self.layer_config.identify_image_display,
            "tolerance": self.layer_config.identify_tolerance,
            "layers": "all",
            "returnGeometry": "false",
        }
        try:
            data = self.client.get("identify", params)
        except ArcGISServiceError as e:
            logger.warning(f"Identify request failed: {e}")
            return []

        hits = data.get("results")
        if not isinstance(hits, list):
            logger.warning("Identify response has no results array")
            return []

        by_layer: Dict[str, List[Dict[str, Any]]] = {}
        for hit in hits:
            if isinstance(hit, dict) and "layerId" in hit:
                by_layer.setdefault(str(hit["layerId"]), []).append(hit)

        results = [
            LayerQueryResult(
                layer_id=layer.id,
                scenario_label=layer.scenario_label,
                in_zone=layer.id in by_layer,
                raw={"results": by_layer.get(layer.id, [])},
            )
            for layer in layers
        ]
        logger.info(f"Identify: {len(by_layer)} layers hit out of {len(results)} configured")
        return results
