from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .comparer import Comparer, Options
from .config import Config, load_config
from .errors import (
    AggregateMismatchError,
    DecodeError,
    FileNotFoundInTreeError,
    GlobalChecksumMismatchError,
    UnknownAlgorithmError,
)
from .logging_ import setup_logging
from .models import Status
from .utils.sizes import format_size

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNREADABLE = 2


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="treeseal",
        description="Check a directory tree against a binary manifest",
    )
    parser.add_argument("--config", default=None, help="path to config file")
    parser.add_argument("--log-level", default=None, help="override log level")
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=None, help="one line per file"
    )
    parser.add_argument(
        "-p", "--pretty", action="store_true", default=None, help="human readable sizes"
    )
    parser.add_argument(
        "-a",
        "--added",
        action="store_true",
        default=None,
        help="also report files missing from the manifest",
    )
    parser.add_argument("command", choices=["list", "compare"])
    parser.add_argument("manifest", help="path to the manifest file")
    parser.add_argument("directories", nargs="*", help="candidate root directories")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace, config: Config) -> Options:
    options = Options.from_config(config)
    return Options(
        verbose=options.verbose if args.verbose is None else args.verbose,
        pretty=options.pretty if args.pretty is None else args.pretty,
        report_added=options.report_added if args.added is None else args.added,
        chunk_size=options.chunk_size,
    )


def resolve_directories(args: argparse.Namespace, config: Config) -> List[Path]:
    if args.directories:
        return [Path(item) for item in args.directories]
    if config.directories:
        return list(config.directories)
    return [Path(".")]


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        print(f"treeseal: {exc}", file=sys.stderr)
        return EXIT_UNREADABLE

    setup_logging(
        args.log_level or config.log_level,
        log_dir=config.logging.dir,
        log_file=config.logging.file_name,
        max_mb=config.logging.max_mb,
        backup_count=config.logging.backup_count,
        use_json=config.logging.json,
        to_console=config.logging.to_console,
    )

    options = build_options(args, config)
    directories = resolve_directories(args, config)

    try:
        with Comparer.open(args.manifest, options) as comparer:
            if args.command == "list":
                return _run_list(comparer, directories, options)
            return _run_compare(comparer, directories, options)
    except (UnknownAlgorithmError, DecodeError, OSError) as exc:
        logger.error("manifest unreadable: %s", exc)
        print(f"treeseal: {exc}", file=sys.stderr)
        return EXIT_UNREADABLE


def _run_list(comparer: Comparer, directories: List[Path], options: Options) -> int:
    try:
        cz = comparer.list(directories)
    except FileNotFoundInTreeError as exc:
        print(f"treeseal: {exc}", file=sys.stderr)
        return EXIT_FAILED
    size = format_size(cz.size) if options.pretty else str(cz.size)
    print(f"{cz.count} files, {size}")
    return EXIT_OK


def _run_compare(comparer: Comparer, directories: List[Path], options: Options) -> int:
    status = EXIT_OK
    try:
        comparer.compare(directories)
    except (AggregateMismatchError, GlobalChecksumMismatchError) as exc:
        print(f"treeseal: {exc}", file=sys.stderr)
        status = EXIT_FAILED

    counts = " ".join(
        f"{item.value}={comparer.summary.get(item, 0)}" for item in Status
    )
    print(f"{counts}  {comparer.checksum().hex()}")
    if comparer.summary.get(Status.MODIFIED) or comparer.summary.get(Status.DELETED):
        status = EXIT_FAILED
    return status


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
