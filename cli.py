#!/usr/bin/env python
"""
Command-line interface for the coastal flood risk checker

Usage:
    python cli.py assess --address "123 Beach Rd, Auckland, New Zealand"
    python cli.py listing --id 4512345678 --store listings.json
    python cli.py batch --input addresses.csv --output ./assessments/
"""

import os
import re
import sys
import json
import csv
import time
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from loguru import logger
from floodcheck.config import load_config_from_env, validate_config
from floodcheck.collectors import configured_layers
from floodcheck.errors import AddressUnavailableError
from floodcheck.listing_store import ListingStore, note_badge, planning_map_address
from floodcheck.models import RiskStatus
from floodcheck.pipeline import FloodRiskPipeline


DEFAULT_STORE = "listings.json"


def setup_logging(verbose: bool = False):
    """Configure logging"""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=level
    )


def build_pipeline() -> FloodRiskPipeline:
    config = load_config_from_env()
    validate_config(config)
    return FloodRiskPipeline(config=config)


def format_assessment(assessment) -> str:
    lines = [f"{assessment.icon} {assessment.message}", f"  Risk level: {assessment.risk_level.value}"]
    if assessment.details:
        lines.append(f"  {assessment.details}")
    if assessment.recommendation:
        lines.append(f"  Recommendation: {assessment.recommendation}")
    for scenario in assessment.scenario_summary:
        mark = "in zone" if scenario.in_zone else "clear"
        lines.append(f"    - {scenario.scenario_label}: {mark}")
    if assessment.coordinates_approximated:
        lines.append("  (location could not be projected exactly; result is lower confidence)")
    lines.append("  Advisory only, not an official flood zone determination.")
    return "\n".join(lines)


def output_filename(name: str, index: int) -> str:
    """Safe JSON filename for a batch row, kept inside the output directory"""
    slug = re.sub(r"[^a-z0-9_-]+", "_", name.lower()).strip("_")
    if not slug:
        slug = f"address_{index:03d}"
    return f"{slug}.json"


def print_assessment(assessment, as_json: bool):
    if as_json:
        print(json.dumps(assessment.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        print(format_assessment(assessment))


def cmd_assess(args):
    """Assess flood risk for a single address"""
    setup_logging(args.verbose)

    pipeline = build_pipeline()
    assessment = pipeline.assess(args.address)
    if assessment is None:
        logger.error("Assessment was superseded")
        return 1

    print_assessment(assessment, args.json)
    return 1 if assessment.status == RiskStatus.ERROR else 0


def cmd_listing(args):
    """Assess the address stored for a listing"""
    setup_logging(args.verbose)

    store = ListingStore(args.store)
    pipeline = build_pipeline()
    try:
        assessment = pipeline.assess_listing(args.id, store)
    except AddressUnavailableError as e:
        logger.error(f"{e}. Open the listing page first so its address is recorded.")
        return 1
    if assessment is None:
        logger.error("Assessment was superseded")
        return 1

    note = store.get_note(args.id)
    search = planning_map_address(store.get_address(args.id) or "")
    if args.json:
        data = assessment.model_dump(mode="json")
        data["note"] = note
        data["planning_map_search"] = search
        print(json.dumps(data, indent=2, ensure_ascii=False))
    else:
        if note:
            print(f"Note: {note_badge(note)}")
        print(f"Planning map search: {search}")
        print_assessment(assessment, False)
    return 1 if assessment.status == RiskStatus.ERROR else 0


def cmd_store_address(args):
    """Record the address for a listing"""
    setup_logging(args.verbose)

    ListingStore(args.store).set_address(args.id, args.address)
    logger.info(f"✓ Stored address for listing {args.id}")
    return 0


def cmd_note(args):
    """Show, set or clear the note for a listing"""
    setup_logging(args.verbose)

    store = ListingStore(args.store)
    if args.clear:
        store.delete_note(args.id)
        logger.info(f"✓ Cleared note for listing {args.id}")
    elif args.set is not None:
        store.set_note(args.id, args.set)
        logger.info(f"✓ Saved note for listing {args.id}")
    else:
        note = store.get_note(args.id)
        print(note_badge(note) if note else "(no note)")
    return 0


def cmd_batch(args):
    """Assess multiple addresses from CSV"""
    setup_logging(args.verbose)

    if not os.path.exists(args.input):
        logger.error(f"Input file not found: {args.input}")
        return 1

    rows = []
    with open(args.input, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for row in reader:
            address = (row.get("address") or "").strip()
            if not address:
                logger.warning(f"Skipping row without address: {row}")
                continue
            rows.append({"name": row.get("name", ""), "address": address})

    if not rows:
        logger.error("No valid addresses found in CSV")
        return 1

    logger.info(f"Processing {len(rows)} addresses...")
    os.makedirs(args.output, exist_ok=True)

    pipeline = build_pipeline()
    success = 0
    failed = 0

    for i, row in enumerate(rows, 1):
        name = row["name"] or f"address_{i:03d}"
        logger.info(f"[{i}/{len(rows)}] {name}: {row['address']}")

        assessment = pipeline.assess(row["address"])
        if assessment is None or assessment.status == RiskStatus.ERROR:
            logger.error(f"  ✗ Failed: {assessment.message if assessment else 'superseded'}")
            failed += 1
        else:
            filename = output_filename(name, i)
            with open(os.path.join(args.output, filename), "w", encoding="utf-8") as f:
                json.dump(assessment.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
            logger.info(f"  ✓ {filename}: {assessment.status.value}")
            success += 1

        # Rate limiting
        if i < len(rows):
            time.sleep(args.delay)

    logger.info(f"\nComplete: {success} succeeded, {failed} failed")
    return 0 if failed == 0 else 1


def cmd_layers(args):
    """List configured hazard layers"""
    setup_logging(args.verbose)

    config = load_config_from_env()
    layers = config.layers
    future_anchor = layers.resolve_future_anchor()
    for layer in configured_layers(config):
        role = ""
        if layer.id == layers.current_anchor_id:
            role = " [current anchor]"
        elif layer.id == future_anchor:
            role = " [future anchor]"
        print(f"{layer.id:>3}  {layer.scenario_label}{role}")
    print(f"mode: {layers.query_mode}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Coastal flood risk checker CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Assess one address:
    python cli.py assess --address "123 Beach Rd, Auckland, New Zealand"

  Assess a saved listing:
    python cli.py store-address --id 4512345678 --address "12 Marine Pde, Napier"
    python cli.py listing --id 4512345678

  Batch assess from CSV (columns: name,address):
    python cli.py batch --input addresses.csv --output ./assessments/
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    assess_parser = subparsers.add_parser("assess", help="Assess flood risk for an address")
    assess_parser.add_argument("--address", "-a", required=True, help="Street address")
    assess_parser.add_argument("--json", action="store_true", help="Print JSON")
    assess_parser.set_defaults(func=cmd_assess)

    listing_parser = subparsers.add_parser("listing", help="Assess the stored address of a listing")
    listing_parser.add_argument("--id", required=True, help="Listing ID")
    listing_parser.add_argument("--store", default=DEFAULT_STORE, help="Listing store JSON file")
    listing_parser.add_argument("--json", action="store_true", help="Print JSON")
    listing_parser.set_defaults(func=cmd_listing)

    store_parser = subparsers.add_parser("store-address", help="Record a listing's address")
    store_parser.add_argument("--id", required=True, help="Listing ID")
    store_parser.add_argument("--address", "-a", required=True, help="Street address")
    store_parser.add_argument("--store", default=DEFAULT_STORE, help="Listing store JSON file")
    store_parser.set_defaults(func=cmd_store_address)

    note_parser = subparsers.add_parser("note", help="Show or edit a listing note")
    note_parser.add_argument("--id", required=True, help="Listing ID")
    note_group = note_parser.add_mutually_exclusive_group()
    note_group.add_argument("--set", help="Note text")
    note_group.add_argument("--clear", action="store_true", help="Remove the note")
    note_parser.add_argument("--store", default=DEFAULT_STORE, help="Listing store JSON file")
    note_parser.set_defaults(func=cmd_note)

    batch_parser = subparsers.add_parser("batch", help="Batch assess from CSV file")
    batch_parser.add_argument("--input", "-i", required=True, help="Input CSV file (columns: name,address)")
    batch_parser.add_argument("--output", "-o", default="output", help="Output directory")
    batch_parser.add_argument("--delay", type=float, default=1.0, help="Delay between addresses (seconds)")
    batch_parser.set_defaults(func=cmd_batch)

    layers_parser = subparsers.add_parser("layers", help="List configured hazard layers")
    layers_parser.set_defaults(func=cmd_layers)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
