"""Human-readable rendering of a run summary."""

from .models import RunSummary

UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(num_bytes: int) -> str:
    """
    Format a byte count with binary (1024) steps.

    Plain bytes are shown as an integer, larger units with two decimals,
    e.g. ``512 B``, ``1.50 KB``, ``3.00 GB``.
    """
    size = float(num_bytes)
    unit_index = 0
    while size >= 1024.0 and unit_index < len(UNITS) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{num_bytes} {UNITS[0]}"
    return f"{size:.2f} {UNITS[unit_index]}"


def format_size(num_bytes: int | None) -> str:
    if num_bytes is None:
        return "unknown size"
    return format_bytes(num_bytes)


def render_summary(summary: RunSummary) -> str:
    """Build the end-of-run report printed to stdout."""
    lines = [
        "",
        "=== Summary ===",
        f"Files processed: {summary.processed} ({format_bytes(summary.attempted_bytes)})",
        f"Files succeeded: {summary.succeeded} ({format_bytes(summary.succeeded_bytes)})",
        f"Files failed: {summary.failed} ({format_bytes(summary.failed_bytes)})",
    ]

    if summary.traversal_errors:
        lines.append(f"Directories skipped: {len(summary.traversal_errors)}")
        for error in summary.traversal_errors:
            lines.append(f"  {error.path}: {error.error}")

    if summary.failures:
        lines.append("Failures:")
        for outcome in sorted(summary.failures, key=lambda o: str(o.path)):
            # Diagnostic text is shown verbatim, only the trailing newline is dropped
            diagnostic = outcome.diagnostic.rstrip("\n") or "(no diagnostic output)"
            lines.append(f"  {outcome.path}: {diagnostic}")

    if summary.interrupted:
        lines.append("Eviction interrupted.")
    elif summary.dry_run:
        lines.append("Dry run complete.")
    else:
        lines.append("Eviction complete.")

    return "\n".join(lines)
