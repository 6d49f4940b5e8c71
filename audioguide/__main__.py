#!/usr/bin/env python3
"""
Audio Guide - nearby points of interest with narration

Usage:
    python -m audioguide [options]

Options:
    --catalog FILE    Load points from a JSON point list or GeoJSON file
    --db FILE         Local point database (default: audioguide.db)
    --import FILE     Import a catalog file into the database and exit
    --fetch           Fetch points around --lat/--lon from OpenStreetMap into the database
    --lat LAT         Latitude (nearby query / fixed position without GPS)
    --lon LON         Longitude
    --radius METERS   Search radius for the nearby list
    --category TAG    Only show points of this category
    --max N           Maximum number of results
    --html FILE       Write a map of the nearby points to an HTML file
    --search TEXT     Search points by name or category and exit
    --navigate ID     Open external navigation to a point and exit
    --categories      List categories with point counts and exit
    --track           Track location and announce arrivals
    --record FILE     Record the location trace to a JSON file while tracking
    --playback FILE   Replay a recorded location trace while tracking
    --speed FACTOR    Playback speed multiplier (default: 1.0)
    --narration-url URL  Download missing narration files from this folder URL
    --audio-dir DIR   Directory with bundled narration files (default: audio)
    --preload         Download narration for every point in the catalog and exit
    --log FILE        Log file path
"""

import argparse
import os
import sys
import webbrowser
from typing import Optional

from .app import Guide
from .catalog import Catalog, load_catalog
from .config import CONFIG, CATEGORIES, category_info
from .errors import GuideError
from .geo import format_distance
from .geojson import parse_geojson
from .gps import GPS, FixedLocation, TraceRecorder, TracePlayback
from .logger import Logger
from .models import Location
from .narration import NarrationCache
from .navigation import open_navigation
from .osm import OSMFetcher
from .proximity import ProximityEngine
from .store import PointStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Audio Guide - nearby points of interest with narration"
    )
    parser.add_argument("--catalog", metavar="FILE",
                        help="Load points from a JSON or GeoJSON file instead of the database")
    parser.add_argument("--db", metavar="FILE", default="audioguide.db",
                        help="Local point database (default: audioguide.db)")
    parser.add_argument("--import", dest="import_file", metavar="FILE",
                        help="Import a catalog file into the database and exit")
    parser.add_argument("--fetch", action="store_true",
                        help="Fetch points around --lat/--lon from OpenStreetMap into the database")
    parser.add_argument("--lat", type=float, metavar="LAT",
                        help="Latitude for the nearby query")
    parser.add_argument("--lon", type=float, metavar="LON",
                        help="Longitude for the nearby query")
    parser.add_argument("--radius", type=float, metavar="METERS",
                        help=f"Search radius in meters (default: {CONFIG['nearby_radius']})")
    parser.add_argument("--category", choices=sorted(CATEGORIES),
                        help="Only show points of this category")
    parser.add_argument("--max", type=int, dest="max_results", metavar="N",
                        help="Maximum number of results")
    parser.add_argument("--html", metavar="FILE",
                        help="Write a map of the nearby points to an HTML file")
    parser.add_argument("--search", metavar="TEXT",
                        help="Search points by name or category")
    parser.add_argument("--navigate", metavar="ID",
                        help="Open external navigation to a point")
    parser.add_argument("--categories", action="store_true",
                        help="List categories with point counts")
    parser.add_argument("--track", action="store_true",
                        help="Track location and announce arrivals")
    parser.add_argument("--record", metavar="FILE",
                        help="Record the location trace to a JSON file")
    parser.add_argument("--playback", metavar="FILE",
                        help="Replay a recorded location trace")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Playback speed multiplier (default: 1.0)")
    parser.add_argument("--narration-url", metavar="URL",
                        help="Download missing narration files from this folder URL")
    parser.add_argument("--audio-dir", metavar="DIR",
                        help=f"Directory with bundled narration files (default: {CONFIG['narration_local_dir']})")
    parser.add_argument("--preload", action="store_true",
                        help="Download narration for every point in the catalog")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path")
    return parser


def _print_points(rows):
    if not rows:
        print("No points found.")
        return
    for i, (point, dist) in enumerate(rows, 1):
        label = category_info(point.category).display_name
        print(f"{i:3d}. {point.name} [{label}] {format_distance(dist)}  (id {point.id})")


def _load(args, store: Optional[PointStore]) -> Catalog:
    if args.catalog:
        return load_catalog(args.catalog)
    return store.load_catalog()


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Validate lat/lon - must provide both or neither
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be used together")
    if args.fetch and args.lat is None:
        parser.error("--fetch requires --lat and --lon")
    if args.record and args.playback:
        parser.error("--record and --playback cannot be combined")
    if args.catalog and args.import_file:
        parser.error("--import writes to --db and cannot be combined with --catalog")
    if args.catalog and args.fetch:
        parser.error("--fetch writes to --db and cannot be combined with --catalog")
    if args.preload and not args.narration_url:
        parser.error("--preload requires --narration-url")

    store = None if args.catalog else PointStore(args.db)
    try:
        if args.import_file:
            catalog = load_catalog(args.import_file)
            count = store.replace_points(catalog.points)
            print(f"Imported {count} points into {args.db}")
            return 0

        if args.fetch:
            radius = args.radius or CONFIG["osm_fetch_radius"]
            points = parse_geojson(OSMFetcher.fetch_points(args.lat, args.lon, radius))
            if not points:
                # Failed or empty fetch; keep the existing catalog
                print(f"No points fetched; {args.db} left unchanged", file=sys.stderr)
                return 1
            count = store.replace_points(points)
            print(f"Stored {count} points in {args.db}")
            return 0

        catalog = _load(args, store)

        if args.categories:
            counts = catalog.index.counts()
            for tag, info in CATEGORIES.items():
                if tag in counts:
                    print(f"{info.display_name:<14} {counts[tag]:6d}")
            print(f"{'Total':<14} {len(catalog):6d}")
            return 0

        if args.preload:
            assets = [p.narration or category_info(p.category).narration for p in catalog]
            assets = list(dict.fromkeys(assets))
            available = _narration(args).preload(assets)
            print(f"{available}/{len(assets)} narration files available")
            return 0 if available == len(assets) else 1

        if args.search:
            results = catalog.search(args.search)
            for point in results:
                print(f"{point.id}: {point.name} [{category_info(point.category).display_name}]")
            if not results:
                print("No points found.")
            return 0

        if args.navigate:
            point = catalog.get(args.navigate)
            if point is None:
                print(f"Unknown point: {args.navigate}")
                return 1
            return 0 if open_navigation(point) else 1

        if args.track or args.playback:
            return _track(args, catalog, store)

        if args.lat is None:
            parser.error("a nearby query needs --lat and --lon")

        location = Location(lat=args.lat, lon=args.lon)
        radius = args.radius or CONFIG["nearby_radius"]
        engine = ProximityEngine(catalog)
        rows = engine.query_nearby_with_distance(location, radius, args.category, args.max_results)
        _print_points(rows)

        if args.html:
            from .map_view import save_map
            save_map(args.html, location, [p for p, _ in rows], radius)
            abs_path = os.path.abspath(args.html)
            print(f"\nMap saved to: {abs_path}")
            webbrowser.open(f"file://{abs_path}")
        return 0

    except GuideError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        if store:
            store.close()


def _narration(args) -> Optional[NarrationCache]:
    if not (args.narration_url or args.audio_dir):
        return None
    return NarrationCache(base_url=args.narration_url, local_dir=args.audio_dir)


def _track(args, catalog: Catalog, store: Optional[PointStore]) -> int:
    if args.playback:
        source = TracePlayback.load(args.playback, speed=args.speed)
    elif args.lat is not None:
        source = FixedLocation(args.lat, args.lon)
    else:
        source = GPS()
    if args.record:
        source = TraceRecorder(source, args.record)

    logger = Logger(args.log)
    guide = Guide(catalog, source, logger=logger, store=store,
                  category=args.category, radius=args.radius,
                  narration=_narration(args))
    try:
        guide.run()
    finally:
        logger.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
