"""Command line entry point: build, inspect and query sequence databases."""

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .difference import Metric
from .errors import WarpSearchError
from .matcher import SequenceMatcher
from .template_loader import load_sequence_file

logger = logging.getLogger(__name__)


def _default_db() -> Path:
    return Path(config.DATABASE_DIR) / config.DATABASE_FILENAME


def cmd_build(args) -> int:
    matcher = SequenceMatcher()
    count = matcher.load_templates_from_dir(args.template_dir)
    if count == 0:
        print(f"No sequences found in {args.template_dir}")
        return 1
    path = matcher.save(args.output)
    print(f"Saved {count} sequences to {path}")
    return 0


def cmd_info(args) -> int:
    matcher = SequenceMatcher()
    matcher.load(args.database)
    print(f"Database: {args.database}")
    print(f"Candidates: {matcher.count()}  dims: {matcher.dims}")
    for index in range(matcher.count()):
        name = matcher.candidate_name(index) or "-"
        print(f"  [{index:4d}] {name:<32} frames={matcher.candidate(index).shape[0]}")
    return 0


def cmd_query(args) -> int:
    matcher = SequenceMatcher(band_range=args.band_range, metric=args.metric, z_normalize=args.znorm)
    matcher.load(args.database)

    query = load_sequence_file(Path(args.query))
    if query is None:
        print(f"Unsupported query file type: {args.query}")
        return 1

    if args.euclidean:
        distance, index = matcher.get_nearest_candidate_euclidean(query)
        path_len = None
    else:
        distance, index, path = matcher.get_nearest_candidate(query)
        path_len = len(path)

    name = matcher.candidate_name(index) or "-"
    print(f"Best match: [{index}] {name}")
    print(f"Distance:   {distance:.6g}")
    if path_len is not None:
        print(f"Path:       {path_len} steps")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="warpsearch", description="DTW nearest-neighbor sequence search")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("build", help="build a database from a directory of .npy/audio files")
    p.add_argument("template_dir")
    p.add_argument("-o", "--output", default=str(_default_db()))
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("info", help="list the candidates of a database")
    p.add_argument("database", nargs="?", default=str(_default_db()))
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("query", help="find the nearest candidate to a query file")
    p.add_argument("database")
    p.add_argument("query")
    p.add_argument("--euclidean", action="store_true", help="frame-wise distance, no warping")
    p.add_argument("--band-range", type=float, default=config.DEFAULT_BAND_RANGE)
    p.add_argument("--metric", default=config.DEFAULT_METRIC, choices=[m.value for m in Metric])
    p.add_argument("--znorm", action="store_true", default=None,
                   help="z-normalize with database statistics (default: config.USE_Z_NORMALIZE)")
    p.set_defaults(func=cmd_query)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (WarpSearchError, ValueError) as e:
        logger.error("[cli] %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
