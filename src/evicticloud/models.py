"""Data model shared by the walker, invoker, dispatcher and report."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_COMMAND: tuple[str, ...] = ("brctl", "evict")


@dataclass(frozen=True)
class EvictionOutcome:
    """Result of one eviction attempt (or dry-run preview) for a single file."""

    path: Path
    success: bool
    diagnostic: str = ""
    size_bytes: int | None = None
    returncode: int | None = None
    dry_run: bool = False


@dataclass(frozen=True)
class TraversalError:
    """A directory that could not be listed during the walk."""

    path: Path
    error: str


@dataclass(frozen=True)
class RunConfig:
    """
    Resolved configuration for one run.

    Raises:
        ValueError: If concurrency is below 1 or timeout is not positive
    """

    root_path: Path
    concurrency: int = field(default_factory=lambda: os.cpu_count() or 1)
    dry_run: bool = False
    timeout: float | None = None
    log_level: str = "INFO"
    command: tuple[str, ...] = DEFAULT_COMMAND

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if not self.command:
            raise ValueError("command must not be empty")


@dataclass
class RunSummary:
    """
    Aggregate counts for a run, built incrementally as outcomes arrive.

    record() is not synchronized on its own; the dispatcher serializes
    calls under its stats lock.
    """

    dry_run: bool = False
    succeeded: int = 0
    failed: int = 0
    attempted_bytes: int = 0
    succeeded_bytes: int = 0
    failed_bytes: int = 0
    failures: list[EvictionOutcome] = field(default_factory=list)
    traversal_errors: list[TraversalError] = field(default_factory=list)
    interrupted: bool = False

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed

    def record(self, outcome: EvictionOutcome) -> None:
        size = outcome.size_bytes or 0
        self.attempted_bytes += size
        if outcome.success:
            self.succeeded += 1
            self.succeeded_bytes += size
        else:
            self.failed += 1
            self.failed_bytes += size
            self.failures.append(outcome)

    def as_stats(self) -> dict:
        """Flat counters for structured log records."""
        return {
            "files_processed": self.processed,
            "files_succeeded": self.succeeded,
            "files_failed": self.failed,
            "dirs_skipped": len(self.traversal_errors),
            "bytes_attempted": self.attempted_bytes,
            "bytes_evicted": self.succeeded_bytes,
        }
