"""Consumer contract tests using Pact for the authentication API.

This test suite acts as a consumer (the scenario steps' ``AuthClient``) that
defines the interactions it expects from the provider (the auth API).
"""

from pact import Pact
from scenario_runner.auth_client import AuthClient

SIGNUP_BODY = {
    "email": "contract@example.com",
    "password": "TestPassword123!",
    "firstName": "Test",
    "lastName": "User",
    "role": "client",
}

USER = {
    "id": "test-user-id",
    "email": "contract@example.com",
    "firstName": "Test",
    "lastName": "User",
    "role": "client",
}


class TestConsumerContract:
    """Consumer contract tests to define expected auth API behavior."""

    def test_signup(self) -> None:
        """Test the consumer's expectation of the signup endpoint.

        This test defines the contract: when the consumer POSTs a complete
        signup body to /api/auth/signup, a 201 response containing the user and
        a token pair is returned.
        """
        pact = Pact(consumer="ScenarioRunner", provider="AuthAPI")

        # Define the expected interaction
        (
            pact.upon_receiving("a signup request for a new client")
            .with_body(SIGNUP_BODY, content_type="application/json")
            .with_request(method="POST", path="/api/auth/signup")
            .will_respond_with(status=201)
            .with_body(
                {
                    "message": "User created",
                    "user": USER,
                    "token": "test-jwt-token",
                    "refreshToken": "test-refresh-token",
                },
                content_type="application/json",
            )
        )

        # Start the mock server and execute the test
        with pact.serve() as server:
            client = AuthClient(base_url=str(server.url))
            response = client.signup(SIGNUP_BODY)

            assert response.status_code == 201
            body = response.json()
            assert body["user"]["email"] == "contract@example.com"
            assert body["token"] == "test-jwt-token"
            assert body["refreshToken"] == "test-refresh-token"

        # Write the pact file after the test
        pact.write_file("tests/contract/pacts")

    def test_login(self) -> None:
        """Test the consumer's expectation of the login endpoint.

        This test defines the contract: when the consumer POSTs valid
        credentials to /api/auth/login, a 200 response with a token is
        returned.
        """
        pact = Pact(consumer="ScenarioRunner", provider="AuthAPI")

        (
            pact.upon_receiving("a login request with valid credentials")
            .with_body(
                {"email": "contract@example.com", "password": "TestPassword123!"},
                content_type="application/json",
            )
            .with_request(method="POST", path="/api/auth/login")
            .will_respond_with(status=200)
            .with_body(
                {
                    "message": "Logged in",
                    "user": USER,
                    "token": "test-jwt-token",
                    "refreshToken": "test-refresh-token",
                },
                content_type="application/json",
            )
        )

        with pact.serve() as server:
            client = AuthClient(base_url=str(server.url))
            response = client.login("contract@example.com", "TestPassword123!")

            assert response.status_code == 200
            assert response.json()["user"]["id"] == "test-user-id"

        pact.write_file("tests/contract/pacts")

    def test_me_without_token(self) -> None:
        """Test the consumer's expectation when no bearer token is sent.

        This test defines the contract: GET /api/auth/me without a token
        returns 401 with an error body.
        """
        pact = Pact(consumer="ScenarioRunner", provider="AuthAPI")

        (
            pact.upon_receiving("a current user request without a token")
            .with_request(method="GET", path="/api/auth/me")
            .will_respond_with(status=401)
            .with_body(
                {
                    "error": "Not authenticated",
                    "message": "Authentication token required",
                },
                content_type="application/json",
            )
        )

        with pact.serve() as server:
            client = AuthClient(base_url=str(server.url))
            response = client.me()

            assert response.status_code == 401
            assert response.json()["error"] == "Not authenticated"

        pact.write_file("tests/contract/pacts")
