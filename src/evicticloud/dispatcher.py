"""Bounded-concurrency fan-out of eviction requests."""

import asyncio
import dataclasses
import logging
import sys
import threading
import time
from collections.abc import AsyncIterable, Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import IO

import aiofiles.os

from .invoker import Evictor
from .logging import log_with_context
from .models import EvictionOutcome, RunSummary
from .report import format_size


class EvictionDispatcher:
    """
    Run an Evictor over a stream of paths with at most N invocations in flight.

    A producer task feeds a bounded queue from the path stream and exactly
    ``concurrency`` worker tasks drain it. Each worker hands its path to a
    thread pool of the same size, so the external command runs in parallel
    OS threads while the event loop only waits. Workers report into a shared
    RunSummary under ``stats_lock``.

    In dry-run mode the Evictor is never called: every path gets a printed
    preview line and a synthetic successful outcome.
    """

    def __init__(
        self,
        invoker: Evictor,
        concurrency: int,
        dry_run: bool = False,
        summary: RunSummary | None = None,
        out: IO[str] | None = None,
        progress_interval: float = 30,
    ):
        """
        Args:
            invoker: Evictor used for real evictions
            concurrency: Maximum simultaneous invocations
            dry_run: Preview only, never call the invoker
            summary: Summary to accumulate into (a fresh one if omitted)
            out: Stream for per-file lines (defaults to sys.stdout)
            progress_interval: Seconds between progress log records

        Raises:
            ValueError: If concurrency is below 1
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        self.invoker = invoker
        self.concurrency = concurrency
        self.dry_run = dry_run
        self.summary = summary if summary is not None else RunSummary(dry_run=dry_run)
        self.out = out
        self.progress_interval = progress_interval

        self.outcomes: list[EvictionOutcome] = []
        self.stats_lock = asyncio.Lock()

        # Concurrency utilization metrics, updated from executor threads
        self.active_invocations = 0
        self.max_active_invocations = 0
        self.active_lock = threading.Lock()

        self.logger = logging.getLogger("evicticloud.dispatcher")

    async def update_stats(self, outcome: EvictionOutcome) -> None:
        """Serialized update of the shared summary."""
        async with self.stats_lock:
            self.outcomes.append(outcome)
            self.summary.record(outcome)

    async def _size_of(self, path: Path) -> int | None:
        try:
            stat = await aiofiles.os.stat(path)
        except OSError as e:
            # Still dispatched; the command reports its own failure if the file is gone
            self.logger.debug(f"Could not stat {path}: {e}")
            return None
        return stat.st_size

    def _emit(self, line: str) -> None:
        out = self.out if self.out is not None else sys.stdout
        print(line, file=out, flush=True)

    def _preview(self, path: Path, size: int | None) -> EvictionOutcome:
        self._emit(f"[dry-run] Would evict: {path} ({format_size(size)})")
        return EvictionOutcome(path=path, success=True, size_bytes=size, dry_run=True)

    def _run_invoker(self, path: Path) -> EvictionOutcome:
        # Counted on the executor thread; includes commands still running after cancellation
        with self.active_lock:
            self.active_invocations += 1
            self.max_active_invocations = max(self.max_active_invocations, self.active_invocations)
        try:
            return self.invoker.invoke(path)
        finally:
            with self.active_lock:
                self.active_invocations -= 1

    async def _invoke(self, path: Path, executor: ThreadPoolExecutor) -> EvictionOutcome:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(executor, self._run_invoker, path)
        except Exception as e:
            # Evictor errors become failed outcomes
            log_with_context(
                self.logger,
                "error",
                "Unexpected exception from evictor",
                {"file": str(path), "error": str(e), "error_type": type(e).__name__},
            )
            return EvictionOutcome(path=path, success=False, diagnostic=str(e) or type(e).__name__)

    async def process_file(self, path: Path, executor: ThreadPoolExecutor | None) -> EvictionOutcome:
        """
        Evict (or preview) one file and record the outcome.

        Args:
            path: File to evict
            executor: Thread pool running the invoker (unused in dry-run)

        Returns:
            The recorded outcome
        """
        size = await self._size_of(path)

        if self.dry_run:
            outcome = self._preview(path, size)
        else:
            outcome = await self._invoke(path, executor)
            if outcome.size_bytes is None:
                outcome = dataclasses.replace(outcome, size_bytes=size)

            if outcome.success:
                self._emit(f"Evicted: {path} ({format_size(size)})")
            else:
                log_with_context(
                    self.logger,
                    "warning",
                    "Eviction failed",
                    {
                        "file": str(path),
                        "returncode": outcome.returncode,
                        "diagnostic": outcome.diagnostic,
                    },
                )

        await self.update_stats(outcome)
        return outcome

    async def _worker(self, queue: asyncio.Queue, executor: ThreadPoolExecutor | None) -> None:
        while True:
            path = await queue.get()
            if path is None:
                return
            await self.process_file(path, executor)

    async def _produce(self, paths: AsyncIterable[Path] | Iterable[Path], queue: asyncio.Queue) -> None:
        if isinstance(paths, AsyncIterable):
            async for path in paths:
                await queue.put(path)
        else:
            for path in paths:
                await queue.put(path)

        # One stop marker per worker
        for _ in range(self.concurrency):
            await queue.put(None)

    async def _background_progress_reporter(self, start_time: float) -> None:
        """Log running counts every progress_interval seconds."""
        while True:
            await asyncio.sleep(self.progress_interval)
            async with self.stats_lock:
                progress = self.summary.as_stats()
            progress["elapsed_seconds"] = round(time.time() - start_time, 1)
            progress["active_invocations"] = self.active_invocations
            log_with_context(self.logger, "info", "Progress update", progress)

    async def dispatch(self, paths: AsyncIterable[Path] | Iterable[Path]) -> list[EvictionOutcome]:
        """
        Process every path and return all outcomes (in completion order).

        Args:
            paths: Async or plain iterable of file paths; consumed once

        Returns:
            One outcome per path
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.concurrency * 2)
        executor = None
        if not self.dry_run:
            executor = ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="evict")

        producer = asyncio.create_task(self._produce(paths, queue))
        workers = [asyncio.create_task(self._worker(queue, executor)) for _ in range(self.concurrency)]
        progress_task = asyncio.create_task(self._background_progress_reporter(time.time()))

        completed = False
        try:
            await asyncio.gather(producer, *workers)
            completed = True
        except asyncio.CancelledError:
            self.summary.interrupted = True
            raise
        finally:
            for task in (producer, *workers, progress_task):
                task.cancel()
            await asyncio.gather(producer, *workers, progress_task, return_exceptions=True)

            if executor is not None:
                # On interruption, don't wait for invocations that haven't started
                executor.shutdown(wait=completed, cancel_futures=not completed)

        return self.outcomes
