"""covermap-precompute: generate coverage records for catalog datasets.

Intended for a weekly schedule, or a manual run when the catalog changes.

Examples:
  covermap-precompute                          # Preview what would change
  covermap-precompute --write                  # Generate & save coverage data
  covermap-precompute --dataset blm_acec --write
  covermap-precompute --force --write          # Rebuild all coverage data
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from covermap.config import settings
from covermap.engine.errors import BoundaryFetchError
from covermap.precompute.catalog import load_catalog
from covermap.precompute.runner import PrecomputeOptions, PrecomputeReport, run_precomputation
from covermap.precompute.store import CoverageStore

# Dry-run preview length
_PREVIEW = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="covermap-precompute",
        description="Pre-compute state-level coverage for every spatial dataset in the catalog",
    )
    parser.add_argument("--write", action="store_true", help="Persist results (default: dry-run)")
    parser.add_argument("--force", action="store_true", help="Re-process datasets that already have coverage")
    parser.add_argument("--dataset", metavar="ID", help="Process only a specific dataset")
    parser.add_argument("--catalog", default=settings.catalog_path, help="Path to catalog.json")
    parser.add_argument("--store", default=settings.coverage_store_path, help="Path to the coverage store")
    parser.add_argument("--log-level", default=settings.covermap_log_level, help="Logging level")
    return parser


def print_report(report: PrecomputeReport) -> None:
    print("=== Summary ===")
    print(f"  Processed : {report.processed}")
    print(f"  Succeeded : {report.succeeded}")
    print(f"  Errors    : {report.errored}")

    for outcome in report.outcomes:
        if not outcome.ok:
            print(f"    ✗ {outcome.dataset_id}: {outcome.error}")

    if not report.dry_run:
        if report.written:
            print(f"\n  ✓ Written {report.written} record(s)")
        else:
            print("\n  No successful results to write.")
        return

    print("\n  Dry-run complete. Use --write to save results.")
    ok = [o for o in report.outcomes if o.ok and o.record is not None]
    if ok:
        print("\n  Preview of coverage results:")
        for outcome in ok[:_PREVIEW]:
            rec = outcome.record
            print(f"    {outcome.dataset_id}: {rec.states_with_data} states, {rec.total_intersections:,} intersections")
        if len(ok) > _PREVIEW:
            print(f"    ... and {len(ok) - _PREVIEW} more")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    print("=== Coverage Map Generator ===")
    print(f"  Mode: {'WRITE' if args.write else 'DRY-RUN (use --write to save)'}")
    if args.force:
        print("  Force: re-processing all datasets")
    if args.dataset:
        print(f"  Target dataset: {args.dataset}")

    try:
        catalog = load_catalog(args.catalog)
    except (OSError, ValueError) as e:
        print(f"  FATAL: Could not load catalog {args.catalog}: {e}")
        return 1

    options = PrecomputeOptions(force=args.force, dataset_filter=args.dataset, dry_run=not args.write)
    store = CoverageStore(args.store)

    try:
        report = asyncio.run(run_precomputation(catalog.datasets, options, store=store))
    except BoundaryFetchError as e:
        print(f"  FATAL: Could not fetch Census state boundaries: {e}")
        return 1

    if not report.selected:
        print("  Nothing to do.")
        return 0

    print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
