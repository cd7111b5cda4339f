"""
Command-line interface for the CVE normalizer.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .analyzer import FeedAnalyzer, load_valid_versions
from .denylist import INVALID_REPOS, load_denylist
from .repos import RepoResolver
from .reporting import print_summary


logger = logging.getLogger(__name__)


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Normalize CVE records into repositories, commits and affected version ranges"
    )

    parser.add_argument(
        "--feed",
        required=True,
        nargs="+",
        help="NVD JSON feed file(s) to normalize (.json or .json.gz)"
    )

    parser.add_argument(
        "--valid-versions",
        default=None,
        help="File of known versions: a JSON list, a JSON object keyed by CVE ID, or one version per line"
    )

    parser.add_argument(
        "--cve",
        action="append",
        default=None,
        help="Only normalize this CVE ID (repeatable)"
    )

    parser.add_argument(
        "--denylist",
        default=None,
        help="File of extra repository URL prefixes to exclude, one per line"
    )

    parser.add_argument(
        "--get-worksheets",
        action="store_true",
        help="Export the result tables to an Excel file with multiple sheets"
    )

    parser.add_argument(
        "--output-dir",
        default="./output",
        help="Output directory for results. Default: ./output"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    for feed in args.feed:
        if not Path(feed).exists():
            print(f"Error: feed file not found: {feed}", file=sys.stderr)
            sys.exit(1)

    try:
        valid_versions = load_valid_versions(Path(args.valid_versions)) if args.valid_versions else None
        resolver = RepoResolver()
        if args.denylist:
            resolver = RepoResolver(denylist=INVALID_REPOS + load_denylist(Path(args.denylist)))
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    analyzer = FeedAnalyzer(
        feed_paths=[Path(f) for f in args.feed],
        valid_versions=valid_versions,
        cve_ids=args.cve,
        resolver=resolver,
        output_dir=output_dir,
    )

    try:
        results = analyzer.analyze()
    except (OSError, json.JSONDecodeError) as e:
        logger.exception("Error reading feeds")
        print(f"\nError during normalization: {e}", file=sys.stderr)
        sys.exit(1)

    print_summary(results)
    analyzer.export(results, get_worksheets=args.get_worksheets)


if __name__ == "__main__":
    main()
