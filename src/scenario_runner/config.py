"""
Runtime configuration for the authentication scenarios.

Values come from environment variables, optionally overridden by behave user
data (``behave -D env=staging -D base_url=http://...``):

- ``SCENARIO_ENV``: target environment, one of :data:`ENVIRONMENTS`.
- ``API_BASE_URL``: explicit base URL, wins over the environment's URL.
- ``SCENARIO_TIMEOUT``: HTTP timeout in seconds.
- ``SCENARIO_REPORT_DIR``: where run reports are written.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_ENV = "dev"

ENVIRONMENTS: dict[str, str] = {
    "dev": "http://localhost:3000",
    "staging": "https://staging-api.vitefait.com",
    "prod": "https://api.vitefait.com",
}

DEFAULT_API_PATH = "/api"
DEFAULT_TIMEOUT = 10
DEFAULT_REPORT_DIR = "reports"


def default_headers() -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


@dataclass(frozen=True)
class RetryPolicy:
    """
    How often, and how far apart, a readiness check is attempted.

    :param count: Number of attempts.
    :param interval: Seconds to wait between attempts.
    """

    count: int = 3
    interval: float = 1.0


@dataclass(frozen=True)
class Settings:
    """
    Settings shared by the step definitions of a scenario run.

    :param env: Name of the selected environment.
    :param base_url: Root URL of the API server, without the API path.
    :param api_path: Path prefix of every API route.
    :param timeout: Timeout in seconds for each HTTP call.
    :param retry: Readiness retry policy.
    :param headers: Headers sent with every request.
    """

    env: str
    base_url: str
    api_path: str = DEFAULT_API_PATH
    timeout: int = DEFAULT_TIMEOUT
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    headers: dict[str, str] = field(default_factory=default_headers)

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.api_path}"


def get_scenario_env(userdata: Mapping[str, str] | None = None) -> str:
    """
    Return the selected environment name.

    :param userdata: Behave user data. Its ``env`` entry wins over
        ``SCENARIO_ENV``.
    """
    if userdata and userdata.get("env"):
        return userdata["env"]
    return os.getenv("SCENARIO_ENV") or DEFAULT_ENV


def get_timeout() -> int:
    value = os.getenv("SCENARIO_TIMEOUT")
    if value is None:
        return DEFAULT_TIMEOUT
    try:
        return int(value)
    except ValueError as err:
        raise RuntimeError(
            f"SCENARIO_TIMEOUT must be a whole number of seconds, got {value!r}"
        ) from err


def get_report_dir() -> Path:
    return Path(os.getenv("SCENARIO_REPORT_DIR") or DEFAULT_REPORT_DIR)


def load_settings(userdata: Mapping[str, str] | None = None) -> Settings:
    """
    Build :class:`Settings` for the selected environment.

    Unknown environment names keep the ``dev`` base URL.

    :param userdata: Behave user data (``env`` and ``base_url`` are read).
    :returns: The resolved settings.
    :raises RuntimeError: If a numeric environment variable is malformed.
    """
    env = get_scenario_env(userdata)

    base_url = (
        (userdata or {}).get("base_url")
        or os.getenv("API_BASE_URL")
        or ENVIRONMENTS.get(env, ENVIRONMENTS[DEFAULT_ENV])
    )

    return Settings(env=env, base_url=base_url, timeout=get_timeout())
