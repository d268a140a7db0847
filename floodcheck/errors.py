"""
Exceptions raised by the flood risk pipeline stages
"""

from enum import Enum


class GeocodingFailureReason(str, Enum):
    NETWORK_ERROR = "network_error"
    NO_RESULTS = "no_results"
    MALFORMED_RESPONSE = "malformed_response"


class GeocodingFailure(Exception):
    """Address could not be resolved to a point"""

    def __init__(self, reason: GeocodingFailureReason, address: str = "", detail: str = ""):
        self.reason = reason
        self.address = address
        self.detail = detail
        msg = f"Geocoding failed ({reason.value}) for {address!r}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class LayerQueryFailure(Exception):
    """A single hazard layer did not return a usable response"""

    def __init__(self, layer_id: str, reason: str):
        self.layer_id = layer_id
        self.reason = reason
        super().__init__(f"Layer {layer_id} query failed: {reason}")


class SourceUnavailableError(Exception):
    """A flood risk source cannot produce an assessment"""


class AddressUnavailableError(Exception):
    """No address is stored for a listing yet"""

    def __init__(self, listing_id: str):
        self.listing_id = listing_id
        super().__init__(f"No address available for listing {listing_id}")


class RunCancelled(Exception):
    """The run was superseded by a newer request"""
