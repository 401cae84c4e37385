"""Top-level orchestration: walk the tree, dispatch evictions, report."""

import asyncio
import sys
import time
from pathlib import Path
from typing import IO

from . import __version__
from .dispatcher import EvictionDispatcher
from .invoker import BrctlEvictor, Evictor
from .logging import log_with_context, setup_logging
from .models import DEFAULT_COMMAND, RunConfig, RunSummary
from .report import render_summary
from .walker import iter_files, validate_root


class AsyncCloudEvictor:
    """
    Evict every downloaded file under a directory tree back to the cloud.

    Drives the whole run: validates the root, streams the walker into a
    bounded dispatcher and prints the summary at the end (also after an
    interruption, with the partial counts).
    """

    def __init__(self, config: RunConfig, invoker: Evictor | None = None, out: IO[str] | None = None):
        """
        Args:
            config: Resolved run configuration
            invoker: Evictor to use (defaults to BrctlEvictor built from config)
            out: Stream for the preview listing and summary (defaults to sys.stdout)
        """
        root_path = Path(config.root_path)
        if not root_path.is_absolute():
            root_path = root_path.resolve()

        self.config = config
        self.root_path = root_path
        self.invoker = invoker if invoker is not None else BrctlEvictor(config.command, config.timeout)
        self.out = out
        self.summary = RunSummary(dry_run=config.dry_run)

        self.logger = setup_logging("evicticloud", config.log_level)

    def print_summary(self) -> None:
        out = self.out if self.out is not None else sys.stdout
        print(render_summary(self.summary), file=out, flush=True)

    async def evict(self) -> RunSummary:
        """
        Run the eviction over the whole tree.

        Returns:
            The finished summary

        Raises:
            FileNotFoundError: If the root does not exist
            NotADirectoryError: If the root is not a directory
        """
        start_time = time.time()
        mode = "DRY RUN" if self.config.dry_run else "EVICT"

        log_with_context(
            self.logger,
            "info",
            f"Starting iCloud eviction - {mode} MODE",
            {
                "version": __version__,
                "root_path": str(self.root_path),
                "concurrency": self.config.concurrency,
                "dry_run": self.config.dry_run,
                "timeout_seconds": self.config.timeout,
            },
        )

        try:
            await validate_root(self.root_path)
        except OSError as e:
            log_with_context(self.logger, "error", str(e), {"root_path": str(self.root_path)})
            raise

        dispatcher = EvictionDispatcher(
            self.invoker,
            concurrency=self.config.concurrency,
            dry_run=self.config.dry_run,
            summary=self.summary,
            out=self.out,
        )

        try:
            await dispatcher.dispatch(iter_files(self.root_path, self.summary.traversal_errors))
        except asyncio.CancelledError:
            self.summary.interrupted = True
            log_with_context(self.logger, "warning", "Eviction interrupted", self.summary.as_stats())
            self.print_summary()
            raise

        if self.summary.processed == 0:
            log_with_context(self.logger, "warning", "No files found", {"root_path": str(self.root_path)})

        final_stats = self.summary.as_stats()
        final_stats["duration_seconds"] = round(time.time() - start_time, 2)
        final_stats["max_active_invocations"] = dispatcher.max_active_invocations
        log_with_context(self.logger, "info", "Eviction completed", final_stats)

        self.print_summary()
        return self.summary


def exit_code(summary: RunSummary) -> int:
    """0 when nothing failed, 1 otherwise."""
    return 0 if summary.failed == 0 else 1


async def async_main(
    path: str,
    concurrency: int | None = None,
    dry_run: bool = False,
    timeout: float | None = None,
    log_level: str = "INFO",
    invoker: Evictor | None = None,
    out: IO[str] | None = None,
) -> RunSummary:
    """
    Async entry point for the evictor.

    Args:
        path: Root directory to process
        concurrency: Maximum concurrent evictions (defaults to CPU count)
        dry_run: If True, only list what would be evicted
        timeout: Per-invocation timeout in seconds (None = no timeout)
        log_level: Logging level
        invoker: Evictor override (tests)
        out: Stream for the preview listing and summary

    Returns:
        Run summary
    """
    config_kwargs = {}
    if concurrency is not None:
        config_kwargs["concurrency"] = concurrency

    config = RunConfig(
        root_path=Path(path),
        dry_run=dry_run,
        timeout=timeout,
        log_level=log_level,
        command=DEFAULT_COMMAND,
        **config_kwargs,
    )

    evictor = AsyncCloudEvictor(config, invoker=invoker, out=out)
    return await evictor.evict()
