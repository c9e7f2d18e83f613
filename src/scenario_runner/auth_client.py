"""
Client for the authentication API, used by the auth step definitions.

Usage:

    client = AuthClient(base_url="http://localhost:3000")
    client.wait_until_ready(RetryPolicy())

    session = client.create_user_and_get_token(role="client")
    response = client.me(session.token)
    client.cleanup_test_data(session.user_id, session.token)
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import cast

import requests
from auth_api import AuthResponse, SignupRequest

from scenario_runner.config import (
    DEFAULT_API_PATH,
    DEFAULT_TIMEOUT,
    RetryPolicy,
    default_headers,
)

logger = logging.getLogger(__name__)

TEST_PASSWORD = "TestPassword123!"


class ExternalServiceError(Exception):
    """
    Raised when the auth API does not behave as a helper flow requires.

    Wraps requests exceptions so callers are not coupled to requests types.
    """


@dataclass(frozen=True)
class AuthSession:
    """
    A signed-up, logged-in test user.

    :param user: The signup body that created the user.
    :param token: Access token returned by login.
    :param user_id: Server-side id of the user.
    :param refresh_token: Refresh token returned by login.
    """

    user: SignupRequest
    token: str
    user_id: str
    refresh_token: str | None = None


def generate_test_user(role: str = "client") -> SignupRequest:
    """
    Build a unique signup body.

    The email embeds a millisecond timestamp and a random suffix so repeated
    calls never collide.
    """
    timestamp = int(time.time() * 1000)
    return {
        "email": f"test-{timestamp}-{uuid.uuid4().hex[:8]}@example.com",
        "password": TEST_PASSWORD,
        "firstName": "Test",
        "lastName": "User",
        "phone": "+33123456789",
        "role": role,
        "latitude": 48.8566,
        "longitude": 2.3522,
        "address": "123 Test Street",
        "city": "Paris",
        "postalCode": "75001",
    }


class AuthClient:
    """
    Thin wrapper over the auth API routes.

    Every route method returns the raw :class:`requests.Response`; scenarios
    assert on status codes and bodies themselves.
    """

    DEV_URL = "http://localhost:3000"

    def __init__(
        self,
        base_url: str = DEV_URL,
        api_path: str = DEFAULT_API_PATH,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
    ) -> None:
        """
        :param base_url: Root URL of the API server. Trailing slashes are stripped.
        :param api_path: Path prefix of the API routes.
        :param timeout: Default timeout in seconds for HTTP calls.
        :param headers: Headers sent with every request.
        """
        self.base_url = base_url.rstrip("/")
        self.api_path = api_path
        self.timeout = timeout
        self.headers = headers or default_headers()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{self.api_path}{path}"

    def _build_headers(self, token: str | None = None) -> dict[str, str]:
        headers = dict(self.headers)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def health(self) -> requests.Response:
        return requests.get(
            f"{self.base_url}/health",
            headers=self._build_headers(),
            timeout=self.timeout,
        )

    def post(
        self, path: str, body: object, token: str | None = None
    ) -> requests.Response:
        """
        POST a JSON body to any API path.

        :param path: Path below the API prefix, e.g. ``/auth/signup``.
        :param body: JSON-serialisable request body.
        :param token: Optional bearer token.
        """
        return requests.post(
            self._url(path),
            headers=self._build_headers(token),
            json=body,
            timeout=self.timeout,
        )

    def signup(self, user: SignupRequest | dict[str, object]) -> requests.Response:
        return self.post("/auth/signup", user)

    def login(self, email: str, password: str) -> requests.Response:
        return self.post("/auth/login", {"email": email, "password": password})

    def me(self, token: str | None = None) -> requests.Response:
        return requests.get(
            self._url("/auth/me"),
            headers=self._build_headers(token),
            timeout=self.timeout,
        )

    def refresh(self, refresh_token: str) -> requests.Response:
        return self.post("/auth/refresh", {"refreshToken": refresh_token})

    def delete_user(self, user_id: str, token: str) -> requests.Response:
        return requests.delete(
            self._url(f"/users/{user_id}"),
            headers=self._build_headers(token),
            timeout=self.timeout,
        )

    def wait_until_ready(self, retry: RetryPolicy) -> None:
        """
        Poll ``/health`` until it answers 200.

        :param retry: Number of attempts and the pause between them.
        :raises ExternalServiceError: If the API never becomes healthy.
        """
        for attempt in range(1, retry.count + 1):
            try:
                response = self.health()
                if response.status_code == 200:
                    return
                logger.debug(
                    "Health check attempt %d returned %d",
                    attempt,
                    response.status_code,
                )
            except requests.exceptions.RequestException as err:
                logger.debug("Health check attempt %d failed: %s", attempt, err)

            if attempt < retry.count:
                time.sleep(retry.interval)

        raise ExternalServiceError(
            f"Auth API at {self.base_url} not healthy after {retry.count} attempts"
        )

    def create_user_and_get_token(self, role: str = "client") -> AuthSession:
        """
        Sign up a generated user, then log in with it.

        :param role: Role of the new user.
        :returns: The :class:`AuthSession` of the logged-in user.
        :raises ExternalServiceError: If signup does not return 201 or login
            does not return 200.
        """
        user = generate_test_user(role)

        signup_response = self.signup(user)
        if signup_response.status_code != 201:
            raise ExternalServiceError(
                f"Signup failed with {signup_response.status_code}: "
                f"{signup_response.text}"
            )

        login_response = self.login(user["email"], user["password"])
        if login_response.status_code != 200:
            raise ExternalServiceError(
                f"Login failed with {login_response.status_code}: "
                f"{login_response.text}"
            )

        body = cast("AuthResponse", login_response.json())
        return AuthSession(
            user=user,
            token=body["token"],
            user_id=body["user"]["id"],
            refresh_token=body.get("refreshToken"),
        )

    def cleanup_test_data(self, user_id: str | None, token: str) -> None:
        """
        Delete a test user. Does nothing when ``user_id`` is empty.

        A failed deletion is logged, not raised, so one leftover user does
        not fail the scenario that created it.
        """
        if not user_id:
            return

        response = self.delete_user(user_id, token)
        if response.status_code not in (200, 204, 404):
            logger.warning(
                "Could not delete test user %s: %d %s",
                user_id,
                response.status_code,
                response.text,
            )
