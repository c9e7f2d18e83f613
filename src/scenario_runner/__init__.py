"""Run behave feature files from tests and the command line."""

from scenario_runner.harness import feature_test
from scenario_runner.runner import FeatureNotFoundError, FeatureRun, RunResult, run

__all__ = [
    "FeatureNotFoundError",
    "FeatureRun",
    "RunResult",
    "feature_test",
    "run",
]
