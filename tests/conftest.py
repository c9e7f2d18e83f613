"""Pytest configuration and shared fixtures for the scenario runner tests."""

import os
import socket
import textwrap
import threading
import time
from collections.abc import Callable, Generator
from pathlib import Path
from unittest import mock

import pytest
import requests
from scenario_runner.auth_client import AuthClient
from stubs.stub_auth import AuthApiStub, create_app

PASSING_FEATURE = """\
Feature: Arithmetic
  Scenario: Adding two numbers
    Given the number 2
    When I add 3
    Then the result should be 5
"""

FAILING_FEATURE = """\
Feature: Arithmetic
  Scenario: Adding two numbers
    Given the number 2
    When I add 3
    Then the result should be 5

  Scenario: Adding with a wrong expectation
    Given the number 2
    When I add 2
    Then the result should be 5
"""

ARITHMETIC_STEPS = '''\
from behave import given, then, when


@given("the number {value:d}")
def step_number(context, value):
    context.result = value


@when("I add {value:d}")
def step_add(context, value):
    context.result += value


@then("the result should be {expected:d}")
def step_check(context, expected):
    assert context.result == expected, f"expected {expected}, got {context.result}"
'''

type FeatureProject = Callable[[str], Path]


@pytest.fixture
def feature_project(tmp_path: Path) -> FeatureProject:
    """
    Factory writing ``<tmp>/project/features/<name>.feature`` with step
    definitions next to it.

    :return: A callable taking the feature text and returning the path of the
        test module that anchors the project (``<tmp>/project/test_module.py``).
    """

    def make(feature_text: str, name: str = "arithmetic") -> Path:
        project = tmp_path / "project"
        steps = project / "features" / "steps"
        steps.mkdir(parents=True, exist_ok=True)
        (steps / "arithmetic_steps.py").write_text(ARITHMETIC_STEPS)
        (project / "features" / f"{name}.feature").write_text(
            textwrap.dedent(feature_text)
        )
        anchor = project / "test_module.py"
        anchor.write_text("")
        return anchor

    return make


@pytest.fixture
def report_dir(tmp_path: Path) -> Path:
    return tmp_path / "reports"


def _free_port() -> int:
    # Use port 0 to let the OS assign a free port
    sock = socket.socket()
    sock.bind(("", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture(scope="module")
def stub_auth_api() -> Generator[str, None, None]:
    """Start the auth API stub in a separate thread and return its URL.

    ``API_BASE_URL`` points at the stub while the fixture is active, so behave
    processes started by the runner talk to it too.
    """
    app = create_app(AuthApiStub())
    port = _free_port()

    def run_app() -> None:
        app.run(host="127.0.0.1", port=port, debug=False, use_reloader=False)

    # Daemon threads terminate with the test process, so no explicit cleanup
    thread = threading.Thread(target=run_app, daemon=True)
    thread.start()

    url = f"http://127.0.0.1:{port}"
    max_retries = 20
    retry_delay = 0.1

    for _ in range(max_retries):
        try:
            response = requests.get(f"{url}/health", timeout=1)
            if response.status_code == 200:
                break
        except requests.exceptions.RequestException:
            # Server not ready yet, wait and retry
            time.sleep(retry_delay)
    else:
        raise RuntimeError(f"Auth API stub failed to start on {url}")

    with mock.patch.dict(os.environ, {"API_BASE_URL": url}):
        yield url


@pytest.fixture
def auth_client(stub_auth_api: str) -> AuthClient:
    return AuthClient(base_url=stub_auth_api)
