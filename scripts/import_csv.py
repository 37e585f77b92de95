from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rec_league.config import configure_logging, load_settings
from rec_league.pipeline import import_schedule_csv, import_scores_csv
from rec_league.storage import open_storage


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a schedule or scores CSV into league storage")
    parser.add_argument("kind", choices=["schedule", "scores"], help="Type of CSV being imported")
    parser.add_argument("path", type=Path, help="Path to the CSV file")
    parser.add_argument(
        "--allow-unscheduled",
        action="store_true",
        help="Accept scores whose game IDs are not in the stored schedule",
    )
    return parser.parse_args()


def main() -> int:
    configure_logging()
    settings = load_settings()
    args = parse_args()

    try:
        content = args.path.read_text(encoding="utf-8")
        storage = open_storage(settings)
        if args.kind == "schedule":
            result = import_schedule_csv(storage, content, default_location=settings.default_location)
        else:
            require_scheduled = settings.require_scheduled_scores and not args.allow_unscheduled
            result = import_scores_csv(storage, content, require_scheduled=require_scheduled)
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    for message in result.errors:
        print(f"WARNING: {message}", file=sys.stderr)
    if not result.success:
        print(f"ERROR: {result.message}", file=sys.stderr)
        return 1
    print(f"{result.message} ({result.records_processed} records)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
