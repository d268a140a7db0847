"""
Network-facing collectors for the flood risk pipeline

- Geocoder: Address -> WGS84 point (Nominatim)
- CoordinateProjector: WGS84 -> NZTM2000 (ArcGIS geometry service or pyproj)
- FloodLayerQueryEngine: Point membership in NIWA coastal flood scenario layers
"""

from .geocoder import Geocoder, normalize_address
from .projector import CoordinateProjector
from .arcgis_client import ArcGISAPIClient, ArcGISServiceError
from .flood_layers import FloodLayerQueryEngine, configured_layers

__all__ = [
    "Geocoder",
    "normalize_address",
    "CoordinateProjector",
    "ArcGISAPIClient",
    "ArcGISServiceError",
    "FloodLayerQueryEngine",
    "configured_layers",
]
