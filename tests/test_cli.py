"""
Unit tests for the command-line interface.
"""

import json

import pytest

import cli
from floodcheck.errors import GeocodingFailure, GeocodingFailureReason
from floodcheck.models import GeoPoint
from floodcheck.pipeline import FloodRiskPipeline
from floodcheck.sources import AuthoritativeSource

from helpers import make_result


class StubGeocoder:
    def resolve(self, address):
        if "nowhere" in address.lower():
            raise GeocodingFailure(GeocodingFailureReason.NO_RESULTS, address)
        return GeoPoint(latitude=-39.4928, longitude=176.9120)


class StubEngine:
    available = True

    def run(self, point, layers, cancel_event=None):
        return [make_result("0", False, "Current conditions (1% AEP)"),
                make_result("10", True, "1% AEP + 1.0m sea level rise")]


@pytest.fixture
def stub_pipeline(monkeypatch, config):
    config.api.projection_backend = "pyproj"
    primary = AuthoritativeSource(config, engine=StubEngine())
    pipeline = FloodRiskPipeline(config, geocoder=StubGeocoder(), primary=primary)
    monkeypatch.setattr(cli, "build_pipeline", lambda: pipeline)
    return pipeline


def test_assess_text_output(stub_pipeline, capsys):
    assert cli.main(["assess", "--address", "12 Marine Parade, Napier"]) == 0
    out = capsys.readouterr().out
    assert "1m sea level rise" in out
    assert "Risk level: medium" in out
    assert "1% AEP + 1.0m sea level rise: in zone" in out


def test_assess_json_output(stub_pipeline, capsys):
    assert cli.main(["assess", "--address", "12 Marine Parade, Napier", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["status"] == "future_risk"
    assert data["risk_level"] == "medium"
    assert data["scenario_summary"][1] == {"scenario_label": "1% AEP + 1.0m sea level rise", "in_zone": True}


def test_assess_geocoding_failure_exit_code(stub_pipeline, capsys):
    assert cli.main(["assess", "--address", "Nowhere Lane"]) == 1
    assert "Address could not be found" in capsys.readouterr().out


def test_listing_flow(stub_pipeline, tmp_path, capsys):
    store = str(tmp_path / "listings.json")
    assert cli.main([
        "store-address", "--id", "42", "--address", "12 Marine Parade, Bluff Hill, Napier City, Napier", "--store", store
    ]) == 0
    assert cli.main(["note", "--id", "42", "--set", "Flood Zone", "--store", store]) == 0
    capsys.readouterr()

    assert cli.main(["listing", "--id", "42", "--store", store]) == 0
    out = capsys.readouterr().out
    assert "Note: Flood Zone 🌊" in out
    assert "Planning map search: 12 MARINE PARADE BLUFF HILL" in out
    assert "Risk level: medium" in out


def test_listing_json_output(stub_pipeline, tmp_path, capsys):
    store = str(tmp_path / "listings.json")
    cli.main(["store-address", "--id", "7", "--address", "3 Beach Rd, Mission Bay, Auckland City, Auckland", "--store", store])
    cli.main(["note", "--id", "7", "--set", "Bad Area", "--store", store])
    capsys.readouterr()

    assert cli.main(["listing", "--id", "7", "--store", store, "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["note"] == "Bad Area"
    assert data["planning_map_search"] == "3 BEACH RD MISSION BAY"
    assert data["status"] == "future_risk"


def test_listing_without_address(stub_pipeline, tmp_path):
    assert cli.main(["listing", "--id", "404", "--store", str(tmp_path / "listings.json")]) == 1


def test_batch(stub_pipeline, tmp_path):
    csv_path = tmp_path / "addresses.csv"
    csv_path.write_text(
        "name,address\nmarine parade,12 Marine Parade Napier\nbad,Nowhere Lane\nempty,\n",
        encoding="utf-8",
    )
    out_dir = tmp_path / "out"

    code = cli.main(["batch", "--input", str(csv_path), "--output", str(out_dir), "--delay", "0"])

    assert code == 1
    written = json.loads((out_dir / "marine_parade.json").read_text(encoding="utf-8"))
    assert written["status"] == "future_risk"
    assert not (out_dir / "bad.json").exists()


def test_layers_command(capsys, monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FLOODCHECK_LAYER_IDS", raising=False)
    assert cli.main(["layers"]) == 0
    out = capsys.readouterr().out
    assert "[current anchor]" in out
    assert "[future anchor]" in out


def test_no_command_prints_help():
    assert cli.main([]) == 1


def test_batch_names_cannot_escape_output_dir(stub_pipeline, tmp_path):
    csv_path = tmp_path / "addresses.csv"
    csv_path.write_text(
        "name,address\n../evil/x,12 Marine Parade Napier\n/etc/passwd,12 Marine Parade Napier\n..,12 Marine Parade Napier\n",
        encoding="utf-8",
    )
    out_dir = tmp_path / "out"

    assert cli.main(["batch", "--input", str(csv_path), "--output", str(out_dir), "--delay", "0"]) == 0

    assert sorted(p.name for p in out_dir.iterdir()) == ["address_003.json", "etc_passwd.json", "evil_x.json"]
    assert not (tmp_path / "evil").exists()


def test_output_filename():
    assert cli.output_filename("Marine Parade", 1) == "marine_parade.json"
    assert cli.output_filename("../../secret", 4) == "secret.json"
    assert cli.output_filename("???", 12) == "address_012.json"
