"""
Command-line search export: run a faceted search against the marketplace
backend and save the accumulated results to CSV/XLSX.

    python -m catalog --category cat-2 --attr bedrooms=2,3 --out rentals.xlsx
"""
import argparse
import asyncio
import os
import sys
from typing import Any, Dict, List

from .core import describe_filters, run_search
from .export import save_results
from .filters import parse_filter_input
from .models import AttributeKind
from .query import DEFAULT_RADIUS_KM, PAGE_SIZE, SearchFilters, Sort
from .taxonomy import CatalogConfig, CatalogConfigError
from .utils import init_logger, now_iso


def parse_attributes(catalog: CatalogConfig, category_ids: List[str], pairs: List[str]) -> Dict[str, Any]:
    """``key=value`` pairs typed by the facet schema of the selected categories."""
    schema = catalog.schema_for_selection(category_ids)
    attributes: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Attribute must look like key=value, got {pair!r}")
        definition = schema.get(key)
        if definition is not None and definition.kind == AttributeKind.CHECKBOX:
            attributes[key] = parse_filter_input(definition, raw.split(","))
        else:
            attributes[key] = parse_filter_input(definition, raw)
    return attributes


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Marketplace search export (CSV/XLSX)")
    ap.add_argument("--api-url", default=os.getenv("MARKET_API_URL", "http://localhost:8080/api"),
                    help="Backend base URL (default from env MARKET_API_URL)")
    ap.add_argument("--catalog-config", default=os.getenv("CATALOG_CONFIG") or None,
                    help="Catalog JSON (default: bundled catalog)")
    ap.add_argument("--query", type=str, default="", help="Keyword")
    ap.add_argument("--location", type=str, default="", help="Location text")
    ap.add_argument("--radius-km", type=float, default=DEFAULT_RADIUS_KM, help="Radius in km")
    ap.add_argument("--lat", type=float, default=None, help="Latitude")
    ap.add_argument("--lng", type=float, default=None, help="Longitude")
    ap.add_argument("--category", action="append", default=[], help="Category id (repeatable)")
    ap.add_argument("--attr", action="append", default=[],
                    help="Facet filter key=value; checkbox values comma-separated (repeatable)")
    ap.add_argument("--sort", choices=[s.value for s in Sort], default=Sort.RELEVANCE.value)
    ap.add_argument("--max-items", type=int, default=300, help="Maximum items to collect")
    ap.add_argument("--page-size", type=int, default=PAGE_SIZE, help="Listings per request")
    ap.add_argument("--timeout", type=float, default=10.0, help="Request timeout in seconds")
    ap.add_argument("--out", type=str, default="listings_export.xlsx", help="CSV/XLSX output path")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file-path", default=None, help="Also log to this file at DEBUG.")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logger = init_logger(console_level=args.log_console, log_file=args.log_file_path)
    logger.info(f">>> Run started at {now_iso()}")

    try:
        catalog = CatalogConfig.load(args.catalog_config)
        unknown = [c for c in args.category if catalog.find_category(c) is None]
        if unknown:
            raise ValueError(f"Unknown categories: {unknown}")
        filters = SearchFilters(
            keyword=args.query,
            location=args.location,
            radius_km=args.radius_km,
            category_ids=tuple(dict.fromkeys(args.category)),
            sort=Sort(args.sort),
            attributes=parse_attributes(catalog, args.category, args.attr),
            lat=args.lat,
            lng=args.lng,
        )
    except (CatalogConfigError, OSError, ValueError) as e:
        logger.error(f">>> {e}")
        return 2

    logger.info(f">>> Searching {args.api_url}: {describe_filters(filters) or 'all listings'}")
    listings = asyncio.run(run_search(
        args.api_url, filters, args.max_items,
        page_size=args.page_size, timeout=args.timeout, logger=logger
    ))
    save_results(listings, args.out, logger)
    return 0


if __name__ == "__main__":
    sys.exit(main())
