"""
pytest glue for feature runs.

A test returns a :class:`~scenario_runner.runner.FeatureRun`; the
:func:`feature_test` decorator executes it and fails the test if any scenario
did not pass::

    @feature_test
    def test_auth() -> FeatureRun:
        return run("features/auth.feature").relative_to(__file__)
"""

import functools
from collections.abc import Callable

import pytest

from scenario_runner.runner import FeatureRun


def feature_test(func: Callable[[], FeatureRun]) -> Callable[[], None]:
    """
    Turn a function returning a :class:`FeatureRun` into a pytest test.

    :param func: Zero-argument function building the run request.
    :returns: A test function that executes the run and calls
        :func:`pytest.fail` with the run summary when it did not pass.
    """

    @functools.wraps(func)
    def wrapper() -> None:
        result = func().execute()
        if not result.passed:
            pytest.fail(result.summary(), pytrace=False)

    return wrapper
