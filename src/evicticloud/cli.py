"""Command-line interface for evict-icloud."""

import argparse
import asyncio
import os
import sys

from . import __version__
from .evictor import async_main, exit_code


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="evict-icloud",
        description="Evict downloaded iCloud Drive files inside a directory tree using `brctl evict`",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "path",
        help="Target directory to process",
    )

    env_concurrency = os.getenv("EVICTICLOUD_CONCURRENCY")
    parser.add_argument(
        "-c",
        "--concurrency",
        type=_positive_int,
        default=int(env_concurrency) if env_concurrency else os.cpu_count() or 1,
        help="Maximum number of concurrent evictions (defaults to logical CPU count)",
    )

    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        default=_env_flag("EVICTICLOUD_DRY_RUN"),
        help="Print the file paths that would be evicted without running `brctl evict`",
    )

    env_timeout = os.getenv("EVICTICLOUD_TIMEOUT")
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=float(env_timeout) if env_timeout else None,
        help="Seconds to wait for a single `brctl evict` call before counting it as failed",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("EVICTICLOUD_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"evict-icloud {__version__}",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    try:
        summary = asyncio.run(
            async_main(
                path=args.path,
                concurrency=args.concurrency,
                dry_run=args.dry_run,
                timeout=args.timeout,
                log_level=args.log_level,
            )
        )
    except KeyboardInterrupt:
        # The partial summary has already been printed by the evictor
        print("\nOperation cancelled by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(exit_code(summary))


if __name__ == "__main__":
    main()
