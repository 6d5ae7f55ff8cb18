#!/usr/bin/env python3
"""
Sentinel-2 Vegetation Index Stack Exporter
Builds a time-stacked GeoTIFF per vegetation index and exports it from GEE.

Usage:
    python main.py                        # Stack and export with default config
    python main.py --info                 # Show collection info without exporting
    python main.py --indices NDVI,kNDVI   # Stack several indices
    python main.py --dry-run              # Build export tasks without starting them
    python main.py --wait                 # Start exports and wait for completion
    python main.py --list-indices         # Show supported indices and formulas
"""

import argparse
import sys

import config
from auth import setup_gee
from export import wait_for_all_tasks
from indices import describe_indices
from pipeline import PipelineError, run_stack_pipeline
from retrieval import create_region_of_interest, get_sentinel2_collection, print_collection_info
from settings import EXPORT_DESTINATIONS, ConfigError, StackConfig


def print_header(settings: StackConfig):
    """Print application header."""
    print("\n" + "=" * 60)
    print("  SENTINEL-2 VEGETATION INDEX STACKS")
    print("  Time-stacked GeoTIFF export from Google Earth Engine")
    print("=" * 60)
    print(f"\n  Location: {settings.latitude}, {settings.longitude}")
    print(f"  Buffer: {settings.buffer_m}m radius")
    print(f"  Date range: {settings.start_date} to {settings.end_date}")
    print(f"  Scene cloud threshold: {settings.max_scene_cloud_percent}%")
    print(f"  Indices: {', '.join(index.value for index in settings.indices)}")
    print("\n" + "-" * 60 + "\n")


def print_indices():
    print("\nSupported indices (case-sensitive):")
    for name, formula in describe_indices().items():
        print(f"  {name:<6} {formula}")


def parse_index_list(value: str):
    return [name.strip() for name in value.split(",") if name.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export time-stacked Sentinel-2 vegetation indices from GEE"
    )
    parser.add_argument("--info", action="store_true",
                        help="Show imagery info without exporting")
    parser.add_argument("--list-indices", action="store_true",
                        help="List supported indices and exit")
    parser.add_argument("--dry-run", action="store_true",
                        help="Create export tasks without starting them")
    parser.add_argument("--wait", action="store_true",
                        help="Wait for exports to complete")
    parser.add_argument("--lat", type=float, help="Override latitude")
    parser.add_argument("--lon", type=float, help="Override longitude")
    parser.add_argument("--buffer", type=float, help="Override buffer radius in meters")
    parser.add_argument("--start", help="Override start date (YYYY-MM-DD)")
    parser.add_argument("--end", help="Override end date (YYYY-MM-DD, exclusive)")
    parser.add_argument("--indices", type=parse_index_list,
                        help=f"Comma separated indices (default: {','.join(config.VI_LIST)})")
    parser.add_argument("--max-cloud", type=float,
                        help="Override maximum scene cloud percentage")
    parser.add_argument("--destination", choices=EXPORT_DESTINATIONS,
                        help="Export destination")
    parser.add_argument("--folder", help="Drive folder or Cloud Storage path prefix")
    parser.add_argument("--bucket", help="Cloud Storage bucket")
    parser.add_argument("--asset-root", help="Asset folder for asset exports")
    parser.add_argument("--scale", type=float, help="Export scale in meters")
    parser.add_argument("--max-pixels", type=float, help="Export pixel ceiling")
    parser.add_argument("--project", help="GEE cloud project ID")
    parser.add_argument("--key-file", help="Service account JSON key file")
    return parser


def settings_from_args(args) -> StackConfig:
    """Apply command line overrides to the config.py defaults."""
    return StackConfig().with_overrides(
        latitude=args.lat,
        longitude=args.lon,
        buffer_m=args.buffer,
        start_date=args.start,
        end_date=args.end,
        indices=args.indices,
        max_scene_cloud_percent=args.max_cloud,
        export_destination=args.destination,
        output_folder=args.folder,
        bucket=args.bucket,
        asset_root=args.asset_root,
        export_scale=args.scale,
        max_pixels=args.max_pixels,
    )


def run_info_mode(settings: StackConfig):
    """Display information about available imagery without exporting."""
    print("\n[INFO MODE] Checking available imagery...\n")

    roi = create_region_of_interest(settings.latitude, settings.longitude, settings.buffer_m)
    collection, count = get_sentinel2_collection(
        roi,
        settings.start_date,
        settings.end_date,
        settings.max_scene_cloud_percent
    )
    print_collection_info(collection, "Sentinel-2")

    if count == 0:
        print("\n  ⚠ No Sentinel-2 images found!")
        print("  Try adjusting date range or cloud threshold.")
    else:
        print(f"\n  ✓ Each index stack will have {count} bands")

    return count


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.list_indices:
        print_indices()
        return 0

    try:
        settings = settings_from_args(args)
    except ConfigError as e:
        print("✗ Invalid configuration:")
        for error in e.errors:
            print(f"  - {error}")
        return 2

    print_header(settings)

    print("[SETUP] Initializing Google Earth Engine...")
    print("-" * 40)

    if not setup_gee(args.project, args.key_file):
        print("\n✗ Failed to initialize GEE. Exiting.")
        return 1

    if args.info:
        run_info_mode(settings)
        return 0

    try:
        jobs = run_stack_pipeline(settings, start_tasks=not args.dry_run)
    except PipelineError as e:
        print(f"\n✗ {e}")
        return 1

    print("\nResults summary:")
    for name, job in jobs.items():
        print(f"  - {name}: {job.acquisition_count} bands -> {job.description}")

    if args.wait and not args.dry_run:
        outcomes = wait_for_all_tasks({name: job.task for name, job in jobs.items()})
        if not all(outcome.succeeded for outcome in outcomes.values()):
            return 1

    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
