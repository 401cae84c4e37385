"""Basic tests for evict-icloud."""

import os
from pathlib import Path

import pytest


def test_version():
    """Test that version is defined and looks like a version string."""
    from evicticloud import __version__

    # Either read from the installed distribution or from pyproject.toml
    assert __version__.count(".") >= 1, f"Invalid version format: {__version__}"


def test_imports():
    """Test that all modules can be imported."""
    from evicticloud import cli, dispatcher, evictor, invoker, logging, models, report, walker

    for module in (cli, dispatcher, evictor, invoker, logging, models, report, walker):
        assert module is not None


def test_run_config_defaults():
    from evicticloud.models import DEFAULT_COMMAND, RunConfig

    config = RunConfig(root_path=Path("/tmp/test"))

    assert config.concurrency == (os.cpu_count() or 1)
    assert config.dry_run is False
    assert config.timeout is None
    assert config.command == DEFAULT_COMMAND == ("brctl", "evict")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"concurrency": 0},
        {"concurrency": -4},
        {"timeout": 0},
        {"timeout": -1.5},
        {"command": ()},
    ],
)
def test_run_config_rejects_invalid_values(kwargs):
    from evicticloud.models import RunConfig

    with pytest.raises(ValueError):
        RunConfig(root_path=Path("/tmp/test"), **kwargs)


def test_evictor_initialization():
    """Relative roots are resolved and the default invoker is brctl."""
    from evicticloud.evictor import AsyncCloudEvictor
    from evicticloud.invoker import BrctlEvictor
    from evicticloud.models import RunConfig

    evictor = AsyncCloudEvictor(RunConfig(root_path=Path("."), concurrency=3, dry_run=True, timeout=10))

    assert evictor.root_path.is_absolute()
    assert isinstance(evictor.invoker, BrctlEvictor)
    assert evictor.invoker.command == ("brctl", "evict")
    assert evictor.invoker.timeout == 10
    assert evictor.summary.dry_run is True
