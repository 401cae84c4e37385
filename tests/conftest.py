"""Pytest configuration and shared fakes for the evict-icloud test suite."""

import sys
import tempfile
import threading
import time
from pathlib import Path

import pytest

# Add src directory to Python path to ensure tests use local source code
# instead of installed package
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from evicticloud.models import EvictionOutcome  # noqa: E402


class FakeEvictor:
    """
    Instrumented stand-in for BrctlEvictor.

    Files whose name appears in ``failures`` fail with the mapped diagnostic;
    everything else succeeds. Tracks every call and the peak number of
    simultaneous invocations.
    """

    def __init__(self, failures: dict[str, str] | None = None, delay: float = 0.0):
        self.failures = failures or {}
        self.delay = delay
        self.calls: list[Path] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def invoke(self, path: Path) -> EvictionOutcome:
        with self._lock:
            self.calls.append(path)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            diagnostic = self.failures.get(path.name)
            if diagnostic is not None:
                return EvictionOutcome(path=path, success=False, diagnostic=diagnostic, returncode=1)
            return EvictionOutcome(path=path, success=True, returncode=0)
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_evictor_cls():
    """Expose FakeEvictor to test modules."""
    return FakeEvictor


@pytest.fixture
def scenario_tree(temp_dir):
    """a.txt, b.txt and sub/c.txt under a fresh root."""
    (temp_dir / "a.txt").write_text("alpha")
    (temp_dir / "b.txt").write_text("bravo")
    (temp_dir / "sub").mkdir()
    (temp_dir / "sub" / "c.txt").write_text("charlie")
    return temp_dir
