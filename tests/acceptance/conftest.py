"""Fixtures shared by the acceptance scenarios."""

from dataclasses import dataclass
from pathlib import Path

import pytest
from scenario_runner import RunResult


@dataclass
class RunContext:
    """State carried between the steps of one scenario."""

    anchor: Path | None = None
    result: RunResult | None = None
    error: Exception | None = None


@pytest.fixture
def run_context() -> RunContext:
    return RunContext()
