"""
Coordinate projector (WGS84 -> NZTM2000)

Uses the ArcGIS geometry service by default, or a local pyproj transform.
Any failure yields an APPROXIMATED point holding the unmodified lon/lat.
"""

import json
import math
from typing import Optional

import requests
from loguru import logger
from pyproj import Transformer

from ..config import get_config, PipelineConfig
from ..models import GeoPoint, ProjectedPoint, ProjectionMethod


class CoordinateProjector:
    """Project geographic points into the hazard layers' spatial reference"""

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or get_config()
        self.url = self.config.api.geometry_service_url
        self.source_wkid = self.config.api.source_wkid
        self.target_wkid = self.config.api.target_wkid
        self.backend = self.config.api.projection_backend
        self._transformer: Optional[Transformer] = None

    def project(self, point: GeoPoint) -> ProjectedPoint:
        """
        Project a point. Never raises; degraded results are tagged APPROXIMATED.
        """
        try:
            if self.backend == "pyproj":
                x, y = self._project_local(point)
            else:
                x, y = self._project_service(point)
        except Exception as e:
            logger.warning(
                f"Projection of ({point.latitude}, {point.longitude}) failed, "
                f"using unprojected coordinates: {e}"
            )
            return self._approximate(point, str(e))

        logger.debug(f"Projected ({point.latitude}, {point.longitude}) -> ({x:.2f}, {y:.2f})")
        return ProjectedPoint(x=x, y=y, wkid=self.target_wkid)

    def _approximate(self, point: GeoPoint, reason: str) -> ProjectedPoint:
        return ProjectedPoint(
            x=point.longitude,
            y=point.latitude,
            wkid=self.source_wkid,
            method=ProjectionMethod.APPROXIMATED,
            reason=reason,
        )

    def _project_service(self, point: GeoPoint):
        if not self.url:
            raise RuntimeError("geometry service not configured")

        geometries = {
            "geometryType": "esriGeometryPoint",
            "geometries": [{"x": point.longitude, "y": point.latitude}],
        }
        response = requests.post(
            self.url,
            data={
                "f": "json",
                "inSR": str(self.source_wkid),
                "outSR": str(self.target_wkid),
                "geometries": json.dumps(geometries),
            },
            headers={"User-Agent": self.config.api.user_agent},
            timeout=self.config.api.request_timeout,
        )
        response.raise_for_status()
        data = response.json()

        if "error" in data:
            raise RuntimeError(f"geometry service error: {data['error']}")
        projected = data.get("geometries") or []
        if not projected:
            raise RuntimeError("no geometries in response")
        return self._checked(projected[0]["x"], projected[0]["y"])

    def _project_local(self, point: GeoPoint):
        if self._transformer is None:
            self._transformer = Transformer.from_crs(
                f"EPSG:{self.source_wkid}", f"EPSG:{self.target_wkid}", always_xy=True
            )
        x, y = self._transformer.transform(point.longitude, point.latitude)
        return self._checked(x, y)

    @staticmethod
    def _checked(x, y):
        x, y = float(x), float(y)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise RuntimeError(f"non-finite projected coordinates ({x}, {y})")
        return x, y
