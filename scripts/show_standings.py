from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rec_league.config import configure_logging, load_settings
from rec_league.pipeline import load_standings, standings_frame
from rec_league.storage import open_storage


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print the current league standings")
    parser.add_argument("--csv", type=Path, default=None, help="Also write the table to this CSV path")
    return parser.parse_args()


def main() -> int:
    configure_logging()
    settings = load_settings()
    args = parse_args()

    try:
        storage = open_storage(settings)
        table = standings_frame(load_standings(storage))
        if args.csv is not None:
            table.to_csv(args.csv, index=False)
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if table.empty:
        print("No standings yet.")
    else:
        print(table.to_string(index=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
