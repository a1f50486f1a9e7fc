import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .core import MediaArchiverApp
from .exceptions import ConfigurationError, MediaArchiverError
from . import config

DESCRIPTION = "Splits images and videos into tar-archives based on month and year"


class ArgumentParser(argparse.ArgumentParser):
    """Reports parse errors as ConfigurationError so every bad invocation exits 1."""

    def error(self, message):
        raise ConfigurationError(message)


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def build_parser() -> ArgumentParser:
    p = ArgumentParser(prog="media-archiver", description=DESCRIPTION)

    p.add_argument("-s", "--source-dir", type=Path, default=None,
                   help="Path to read images and videos from")
    p.add_argument("-t", "--target-dir", type=Path, default=None,
                   help="Path to write tar-archives to")
    p.add_argument("-p", "--prefix", default=None,
                   help="Prefix for created archives - will end up as <target-dir>/<prefix>_<year>_<month>.tar "
                        "or <target-dir>/<prefix>_<year>.tar if --by-year-only is specified.")
    p.add_argument("--by-year-only", action="store_true", help="Group by year instead of year and month")

    p.add_argument("--workers", type=int, default=config.DEFAULT_WORKERS,
                   help=f"Concurrent metadata reads and archive writes (default: {config.DEFAULT_WORKERS})")
    p.add_argument("--dry-run", action="store_true", help="Report the archives that would be created without writing")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")

    return p


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses and validates options. Raises ConfigurationError on any problem."""
    args = build_parser().parse_args(argv)

    if not args.source_dir:
        raise ConfigurationError("Must specify source directory")
    if not args.target_dir:
        raise ConfigurationError("Must specify target directory")
    if not args.prefix:
        raise ConfigurationError("Must specify prefix for resulting tar-archives")

    if not args.source_dir.is_dir():
        raise ConfigurationError(f"Source directory {args.source_dir} does not exist")
    if args.target_dir.exists() and not args.target_dir.is_dir():
        raise ConfigurationError(f"Target {args.target_dir} is not a directory")
    if os.sep in args.prefix or (os.altsep and os.altsep in args.prefix):
        raise ConfigurationError("Prefix must not contain a path separator")
    if args.workers < 1:
        raise ConfigurationError("--workers must be at least 1")

    return args


def cli_error(msg: str) -> int:
    print(f"ERROR: {msg}. Use --help for options.")
    return 1


def run(argv: Optional[List[str]] = None) -> int:
    """Runs the tool and returns the process exit status."""
    try:
        args = parse_args(argv)
    except ConfigurationError as e:
        return cli_error(str(e))

    setup_logging(args.verbose, args.log_file)

    source_dir = args.source_dir.resolve()
    target_dir = args.target_dir.resolve()

    logging.info("=== Media Archiver Started ===")
    logging.info(f"Source: {source_dir}")
    logging.info(f"Target: {target_dir}")
    logging.info(f"Mode:   {'year' if args.by_year_only else 'year/month'}")

    app = MediaArchiverApp()

    try:
        summary = app.run(
            source_dir=source_dir,
            target_dir=target_dir,
            prefix=args.prefix,
            by_year_only=args.by_year_only,
            dry_run=args.dry_run,
            max_workers=args.workers,
        )
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1
    except MediaArchiverError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.exception("Fatal error during archiving.")
        return 1

    if not summary.ok:
        return 1

    written = sum(1 for a in summary.archives if a.written)
    logging.info(f"Done. {written} archives created from {summary.files_scanned} files.")
    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
