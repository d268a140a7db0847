"""
Shared fixtures
"""

import sys
from pathlib import Path

import pytest

# Add project root and tests directory to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from floodcheck.config import PipelineConfig
from floodcheck.models import GeoPoint


@pytest.fixture
def config():
    cfg = PipelineConfig()
    cfg.api.geocoder_min_interval_s = 0.0
    cfg.address_retry_delay_s = 0.0
    return cfg


@pytest.fixture
def auckland():
    return GeoPoint(latitude=-36.8485, longitude=174.7633, display_name="Auckland, New Zealand")
