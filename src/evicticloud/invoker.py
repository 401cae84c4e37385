"""Single-file eviction through the external brctl utility."""

import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from .models import DEFAULT_COMMAND, EvictionOutcome


@runtime_checkable
class Evictor(Protocol):
    """Anything that can evict one file and report how it went."""

    def invoke(self, path: Path) -> EvictionOutcome:
        """Attempt eviction of ``path`` exactly once."""
        ...


def _decode(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output


class BrctlEvictor:
    """
    Run ``brctl evict <path>`` as a subprocess and wait for it.

    Exit status zero is success. A nonzero status, a failure to spawn the
    command or a timeout all become failed outcomes carrying the captured
    diagnostic text verbatim. No retries are attempted.
    """

    def __init__(self, command: tuple[str, ...] = DEFAULT_COMMAND, timeout: float | None = None):
        """
        Args:
            command: Argument vector prefix; the file path is appended
            timeout: Seconds to wait for one invocation (None waits forever)

        Raises:
            ValueError: If command is empty or timeout is not positive
        """
        if not command:
            raise ValueError("command must not be empty")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")

        self.command = tuple(command)
        self.timeout = timeout

    def invoke(self, path: Path) -> EvictionOutcome:
        argv = [*self.command, str(path)]
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            captured = _decode(e.stderr) or _decode(e.stdout)
            message = f"timed out after {self.timeout}s"
            return EvictionOutcome(
                path=path,
                success=False,
                diagnostic=f"{message}: {captured}" if captured else message,
            )
        except OSError as e:
            # Command missing, not executable, etc.
            return EvictionOutcome(path=path, success=False, diagnostic=str(e))

        if completed.returncode == 0:
            return EvictionOutcome(path=path, success=True, returncode=0)

        return EvictionOutcome(
            path=path,
            success=False,
            diagnostic=completed.stderr or completed.stdout,
            returncode=completed.returncode,
        )
