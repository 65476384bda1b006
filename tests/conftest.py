from __future__ import annotations

from pathlib import Path

import pytest

from emg.reporting import SilentReporter, set_reporter, set_verbosity

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture(autouse=True)
def _silent_reporter():
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_reporter(SilentReporter())


@pytest.fixture
def blocks_plugin_path() -> Path:
    return EXAMPLES_DIR / "blocks.py"
