"""
Test doubles for HTTP responses and layer results
"""

import requests

from floodcheck.models import LayerQueryResult


class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def json(self):
        if self.bad_json:
            raise ValueError("No JSON object could be decoded")
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


def make_result(layer_id, in_zone, label=None):
    return LayerQueryResult(
        layer_id=layer_id,
        scenario_label=label or f"Scenario {layer_id}",
        in_zone=in_zone,
    )
