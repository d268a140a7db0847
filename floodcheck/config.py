"""
Configuration settings for the coastal flood risk checker
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import os

from dotenv import load_dotenv
from loguru import logger


# Scenario labels published by the NIWA extreme coastal flood MapServer,
# keyed by layer id
SCENARIO_LABELS: Dict[str, str] = {
    "0": "Current conditions (1% AEP)",
    "1": "1% AEP + 0.1m sea level rise",
    "2": "1% AEP + 0.2m sea level rise",
    "3": "1% AEP + 0.3m sea level rise",
    "4": "1% AEP + 0.4m sea level rise",
    "5": "1% AEP + 0.5m sea level rise",
    "10": "1% AEP + 1.0m sea level rise",
    "15": "1% AEP + 1.5m sea level rise",
    "20": "1% AEP + 2.0m sea level rise",
}

# Modeled sea level rise (meters) per layer id
SEA_LEVEL_RISE_M: Dict[str, float] = {
    "0": 0.0,
    "1": 0.1,
    "2": 0.2,
    "3": 0.3,
    "4": 0.4,
    "5": 0.5,
    "10": 1.0,
    "15": 1.5,
    "20": 2.0,
}


def scenario_label(layer_id: str) -> str:
    """Human-readable scenario for a layer id"""
    return SCENARIO_LABELS.get(layer_id, f"Scenario {layer_id}")


@dataclass(frozen=True)
class CoastalRegion:
    """Named coastal region used by the heuristic fallback"""
    name: str
    latitude: float
    longitude: float
    radius_deg: float


@dataclass
class APIConfig:
    """API endpoints and configuration"""
    # Nominatim (geocoding)
    geocoder_url: str = "https://nominatim.openstreetmap.org/search"
    country_code: str = "nz"
    # Nominatim usage policy: max 1 request per second
    geocoder_min_interval_s: float = 1.0

    # ArcGIS geometry service (WGS84 -> NZTM2000)
    geometry_service_url: str = (
        "https://services.arcgisonline.co.nz/arcgis/rest/services/Utilities/Geometry/GeometryServer/project"
    )
    source_wkid: int = 4326  # WGS84 lat/lon
    target_wkid: int = 2193  # NZTM2000
    # "service" (remote geometry service) or "pyproj" (local transform)
    projection_backend: str = "service"

    # NIWA extreme coastal flood MapServer
    flood_service_url: str = (
        "https://services.arcgisonline.co.nz/arcgis/rest/services/NIWA/FloodMapping/MapServer"
    )

    # Request settings
    request_timeout: float = 8.0

    # User agent for API requests
    user_agent: str = "FloodCheck/1.0"


@dataclass
class HazardLayerConfig:
    """Hazard layers queried for each assessment"""
    layer_ids: List[str] = field(default_factory=lambda: ["0", "1", "10"])

    # Anchor layers driving the classification
    current_anchor_id: str = "0"
    # None resolves to the configured layer with the highest sea level rise
    future_anchor_id: Optional[str] = None

    # "query" (per-layer point intersection) or "identify" (single call)
    query_mode: str = "query"

    # Identify parameters
    identify_half_extent: float = 1000.0
    identify_image_display: str = "400,400,96"
    identify_tolerance: int = 5

    # Concurrency bound for per-layer queries (None = one worker per layer)
    max_workers: Optional[int] = None

    def resolve_future_anchor(self) -> str:
        """Worst-case future anchor: explicit id, else highest modeled sea level rise"""
        if self.future_anchor_id:
            return self.future_anchor_id
        candidates = [lid for lid in self.layer_ids if lid != self.current_anchor_id]
        if not candidates:
            return self.current_anchor_id
        return max(candidates, key=lambda lid: SEA_LEVEL_RISE_M.get(lid, -1.0))


@dataclass
class PipelineConfig:
    """Pipeline configuration"""
    # API config
    api: APIConfig = field(default_factory=APIConfig)

    # Hazard layers
    layers: HazardLayerConfig = field(default_factory=HazardLayerConfig)

    # Fallback policy
    enable_fallback: bool = True
    fallback_on_no_data: bool = True

    # Listing address lookup: one retry after this delay
    address_retry_delay_s: float = 2.0

    # National coverage bounding box (min_lat, min_lon, max_lat, max_lon)
    coverage_bbox: Tuple[float, float, float, float] = (-47.5, 166.0, -34.0, 179.0)

    # Coastal regions for the heuristic fallback (radius in degrees)
    coastal_regions: List[CoastalRegion] = field(default_factory=lambda: [
        CoastalRegion("Auckland", -36.8485, 174.7633, 0.25),
        CoastalRegion("Wellington", -41.2865, 174.7762, 0.15),
        CoastalRegion("Christchurch", -43.5321, 172.6362, 0.20),
        CoastalRegion("Tauranga", -37.6878, 176.1651, 0.15),
        CoastalRegion("Napier", -39.4928, 176.9120, 0.15),
        CoastalRegion("Dunedin", -45.8788, 170.5028, 0.15),
        CoastalRegion("Nelson", -41.2706, 173.2840, 0.12),
        CoastalRegion("Thames", -37.1383, 175.5400, 0.10),
        CoastalRegion("Gisborne", -38.6623, 178.0176, 0.10),
        CoastalRegion("New Plymouth", -39.0556, 174.0752, 0.10),
        CoastalRegion("Invercargill", -46.4132, 168.3538, 0.12),
    ])


# Global config instance
config = PipelineConfig()


def get_config() -> PipelineConfig:
    """Get global configuration"""
    return config


def load_config_from_env(env_file: Optional[str] = None) -> PipelineConfig:
    """
    Build a configuration from FLOODCHECK_* environment variables.

    A .env file is loaded first (existing variables win).
    """
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)
            logger.debug(f"Loaded .env file from {env_path}")

    cfg = PipelineConfig()
    api = cfg.api

    api.geocoder_url = os.getenv("FLOODCHECK_GEOCODER_URL", api.geocoder_url)
    api.country_code = os.getenv("FLOODCHECK_COUNTRY_CODE", api.country_code)
    api.geometry_service_url = os.getenv("FLOODCHECK_GEOMETRY_SERVICE_URL", api.geometry_service_url)
    api.flood_service_url = os.getenv("FLOODCHECK_FLOOD_SERVICE_URL", api.flood_service_url)
    api.projection_backend = os.getenv("FLOODCHECK_PROJECTION_BACKEND", api.projection_backend)
    api.user_agent = os.getenv("FLOODCHECK_USER_AGENT", api.user_agent)

    timeout = os.getenv("FLOODCHECK_REQUEST_TIMEOUT")
    if timeout:
        api.request_timeout = float(timeout)

    cfg.layers.query_mode = os.getenv("FLOODCHECK_QUERY_MODE", cfg.layers.query_mode)

    layer_ids = os.getenv("FLOODCHECK_LAYER_IDS")
    if layer_ids:
        cfg.layers.layer_ids = [lid.strip() for lid in layer_ids.split(",") if lid.strip()]

    return cfg


def validate_config(config: PipelineConfig) -> None:
    """
    Validate that all required configuration values are set.
    Raises ValueError if any required value is missing or invalid.
    """
    errors = []

    api = config.api
    if api is None:
        errors.append("api configuration is required but not set")
    else:
        if not api.geocoder_url:
            errors.append("api.geocoder_url is required but not set")
        if not api.country_code:
            errors.append("api.country_code is required but not set")
        if api.request_timeout is None or not (1.0 <= api.request_timeout <= 30.0):
            errors.append(f"api.request_timeout must be between 1 and 30 seconds, got {api.request_timeout}")
        if api.projection_backend not in ("service", "pyproj"):
            errors.append(f"api.projection_backend must be 'service' or 'pyproj', got {api.projection_backend!r}")
        if api.geocoder_min_interval_s < 0:
            errors.append(f"api.geocoder_min_interval_s must not be negative, got {api.geocoder_min_interval_s}")

    layers = config.layers
    if layers is None or not layers.layer_ids:
        errors.append("layers.layer_ids must list at least one hazard layer")
    else:
        if len(set(layers.layer_ids)) != len(layers.layer_ids):
            errors.append(f"layers.layer_ids contains duplicates: {layers.layer_ids}")
        if layers.query_mode not in ("query", "identify"):
            errors.append(f"layers.query_mode must be 'query' or 'identify', got {layers.query_mode!r}")
        if layers.max_workers is not None and layers.max_workers < 1:
            errors.append(f"layers.max_workers must be positive, got {layers.max_workers}")

    min_lat, min_lon, max_lat, max_lon = config.coverage_bbox
    if min_lat >= max_lat or min_lon >= max_lon:
        errors.append(f"coverage_bbox is empty: {config.coverage_bbox}")

    for region in config.coastal_regions:
        if region.radius_deg <= 0:
            errors.append(f"coastal region {region.name!r} has non-positive radius {region.radius_deg}")

    if config.address_retry_delay_s < 0:
        errors.append(f"address_retry_delay_s must not be negative, got {config.address_retry_delay_s}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)
