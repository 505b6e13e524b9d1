# src/pclmetrics/cli.py

import argparse
import sys
import logging
from pathlib import Path
from typing import List, Optional

from .config import PCLConfig, BelowGroundPolicy
from .errors import ConfigurationError
from .batch import process_batch
from .export import output_frame, write_outputs

log = logging.getLogger(__name__)

def setup_logging(level: int = logging.INFO) -> None:
    """
    Configures the standard logging format and level for the command-line interface.

    Args:
        level (int): The logging threshold level.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pclmetrics",
        description="Canopy structural complexity metrics from PCL transects"
    )
    parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        help="Raw PCL csv files, one transect per file."
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("output"),
        help="Directory receiving the csv outputs. Defaults to ./output."
    )
    parser.add_argument("--user-height", type=float, default=1.0, help="Laser height above ground in metres.")
    parser.add_argument("--marker-spacing", type=float, default=10.0, help="Distance between markers in metres.")
    parser.add_argument("--max-vai", type=float, default=8.0, help="Maximum cumulative VAI of a column.")
    parser.add_argument(
        "--max-return-distance",
        type=float,
        default=None,
        help="Treat returns farther than this as sky hits. Disabled by default."
    )
    parser.add_argument(
        "--below-ground",
        choices=[p.value for p in BelowGroundPolicy],
        default=BelowGroundPolicy.CLAMP.value,
        help="Handling of returns below ground after height adjustment."
    )
    parser.add_argument("--pavd", action="store_true", help="Write the PAVD profile.")
    parser.add_argument("--hist", action="store_true", help="Add a VAI histogram to the PAVD output.")
    parser.add_argument("--workers", type=int, default=None, help="Worker processes for batch runs.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """
    Parses command-line arguments, processes every transect and writes the results.

    Returns:
        int: 0 if every transect succeeded, 1 otherwise.
    """
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = PCLConfig.from_mapping({
            "user_height": args.user_height,
            "marker_spacing": args.marker_spacing,
            "max_vai": args.max_vai,
            "max_return_distance": args.max_return_distance,
            "below_ground": args.below_ground,
            "pavd": args.pavd,
            "hist": args.hist
        })
    except ConfigurationError as e:
        logging.error(f"Invalid configuration: {e}")
        return 1

    results = process_batch(args.files, config, max_workers=args.workers)

    succeeded = [r for r in results if r.ok]
    for r in succeeded:
        write_outputs(r.result, args.output)

    if len(succeeded) > 1:
        combined = args.output / "combined_output.csv"
        output_frame([r.result.record for r in succeeded]).write_csv(combined)
        logging.info(f"Wrote combined output variables to {combined}")

    failed = [r for r in results if not r.ok]
    for r in failed:
        logging.error(f"{r.name}: {r.error}")

    logging.info(f"Processed {len(succeeded)} of {len(results)} transects")
    return 1 if failed else 0

if __name__ == "__main__":
    sys.exit(main())
