"""Write synthetic per-farm CSV datasets for the solar simulator."""
from __future__ import annotations

import argparse
from pathlib import Path

from solarsim.core.config import get_settings
from solarsim.modules.datasets.generator import generate_all
from solarsim.modules.installations.service import load_catalog


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Generate hourly solar farm datasets in the simulator's CSV format."
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=settings.data_dir,
        help=f"Directory to write CSV files into (default: {settings.data_dir}).",
    )
    parser.add_argument("--days", type=int, default=30, help="Number of days per farm (default: 30).")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible datasets.")
    parser.add_argument(
        "--heatwave-day",
        type=int,
        action="append",
        default=[],
        help="0-based day offset with heatwave temperatures (repeatable).",
    )
    parser.add_argument(
        "--installations-file",
        type=Path,
        default=settings.installations_file,
        help="JSON installation catalog (default: built-in farms).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    catalog = load_catalog(args.installations_file)
    written = generate_all(
        catalog,
        args.output_dir,
        days=args.days,
        seed=args.seed,
        heatwave_days=args.heatwave_day,
    )
    for installation_id, path in written.items():
        print(f"{installation_id}: {path}")


if __name__ == "__main__":
    main()
