"""
In-memory stub of the authentication API.

Implements the routes exercised by ``auth.feature``:

* ``GET /health``
* ``POST /api/auth/signup``
* ``POST /api/auth/login``
* ``POST /api/auth/refresh``
* ``GET /api/auth/me``
* ``DELETE /api/users/<id>``

Tokens are HS256 JWTs carrying ``userId``, ``email`` and ``role``. The stub
does not implement the rest of the API (missions, payments, reviews).
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from auth_api import AuthResponse, ErrorResponse, User
from flask import Flask, request
from werkzeug.security import check_password_hash, generate_password_hash

JWT_SECRET = "stub-jwt-secret"  # noqa: S105 - stub only
JWT_REFRESH_SECRET = "stub-jwt-refresh-secret"  # noqa: S105 - stub only
TOKEN_LIFETIME = timedelta(days=7)
REFRESH_TOKEN_LIFETIME = timedelta(days=30)

ROLES = ("client", "assistant")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

type StubResult = tuple[dict[str, Any], int]


@dataclass
class StoredUser:
    """
    A user record held by :class:`AuthApiStub`.

    :param user: Public user representation, returned by the API.
    :param password_hash: Hash of the user's password.
    :param active: Inactive users cannot log in.
    """

    user: User
    password_hash: str
    active: bool = True


def _error(error: str, message: str, status_code: int) -> StubResult:
    body: ErrorResponse = {"error": error, "message": message}
    return dict(body), status_code


@dataclass
class AuthApiStub:
    """
    Holds users in memory and implements the route logic.

    Route methods take the decoded JSON body (or bearer token) and return a
    ``(body, status_code)`` pair, so they can be tested without Flask.
    """

    _users: dict[str, StoredUser] = field(default_factory=dict)

    # ---------------------------
    # Public API for tests
    # ---------------------------

    def upsert_user(
        self,
        email: str,
        password: str,
        *,
        first_name: str = "Test",
        last_name: str = "User",
        role: str = "client",
        active: bool = True,
    ) -> User:
        """
        Insert or replace a user directly in the store.

        :returns: The public user representation.
        """
        existing = self.find_by_email(email)
        user_id = existing.user["id"] if existing else str(uuid.uuid4())
        user: User = {
            "id": user_id,
            "email": email.lower(),
            "firstName": first_name,
            "lastName": last_name,
            "role": role,
        }
        self._users[user_id] = StoredUser(
            user=user,
            password_hash=generate_password_hash(password),
            active=active,
        )
        return user

    def find_by_email(self, email: str) -> StoredUser | None:
        email = email.lower()
        for stored in self._users.values():
            if stored.user["email"] == email:
                return stored
        return None

    # ---------------------------
    # Routes
    # ---------------------------

    def signup(self, body: dict[str, Any]) -> StubResult:
        problem = self._validate_signup(body)
        if problem:
            return _error("Invalid data", problem, 400)

        if self.find_by_email(body["email"]):
            return _error(
                "Email already used", "An account with this email already exists", 409
            )

        user: User = {
            "id": str(uuid.uuid4()),
            "email": body["email"].lower(),
            "firstName": body["firstName"],
            "lastName": body["lastName"],
            "role": body.get("role") or "client",
        }
        if body.get("phone"):
            user["phone"] = body["phone"]
        if body.get("city"):
            user["city"] = body["city"]

        self._users[user["id"]] = StoredUser(
            user=user, password_hash=generate_password_hash(body["password"])
        )

        response = self._auth_response(user)
        response["message"] = "User created"
        return dict(response), 201

    def login(self, body: dict[str, Any]) -> StubResult:
        email = body.get("email")
        password = body.get("password")
        if not isinstance(email, str) or not isinstance(password, str):
            return _error("Missing data", "Email and password are required", 400)

        stored = self.find_by_email(email)
        if stored is None or not check_password_hash(stored.password_hash, password):
            return _error("Invalid credentials", "Wrong email or password", 401)

        if not stored.active:
            return _error("Account disabled", "This account has been suspended", 403)

        response = self._auth_response(stored.user)
        response["message"] = "Logged in"
        return dict(response), 200

    def refresh(self, body: dict[str, Any]) -> StubResult:
        refresh_token = body.get("refreshToken")
        if not isinstance(refresh_token, str) or not refresh_token:
            return _error("Missing data", "refreshToken is required", 400)

        stored = self._user_from_token(refresh_token, JWT_REFRESH_SECRET)
        if stored is None or not stored.active:
            return _error("Invalid refresh token", "Refresh token is invalid", 401)

        return dict(self._auth_response(stored.user)), 200

    def me(self, token: str | None) -> StubResult:
        stored = self._user_from_token(token, JWT_SECRET) if token else None
        if stored is None:
            return _error("Not authenticated", "Authentication token required", 401)
        return {"user": dict(stored.user)}, 200

    def delete_user(self, user_id: str, token: str | None) -> StubResult:
        caller = self._user_from_token(token, JWT_SECRET) if token else None
        if caller is None:
            return _error("Not authenticated", "Authentication token required", 401)

        if user_id not in self._users:
            return _error("Not found", f"No user with id {user_id}", 404)

        if caller.user["id"] != user_id:
            return _error("Forbidden", "Users can only delete themselves", 403)

        del self._users[user_id]
        return {}, 204

    # ---------------------------
    # Internal helpers
    # ---------------------------

    @staticmethod
    def _validate_signup(body: dict[str, Any]) -> str | None:
        email = body.get("email")
        if not isinstance(email, str) or not EMAIL_PATTERN.match(email):
            return "A valid email is required"

        password = body.get("password")
        if not isinstance(password, str) or len(password) < 6:
            return "Password must be at least 6 characters"

        for name in ("firstName", "lastName"):
            value = body.get(name)
            if not isinstance(value, str) or not 2 <= len(value) <= 100:
                return f"{name} must be between 2 and 100 characters"

        role = body.get("role")
        if role not in (None, *ROLES):
            return f"role must be one of {', '.join(ROLES)}"

        return None

    def _auth_response(self, user: User) -> AuthResponse:
        return {
            "user": user,
            "token": self._sign(user, JWT_SECRET, TOKEN_LIFETIME),
            "refreshToken": self._sign(user, JWT_REFRESH_SECRET, REFRESH_TOKEN_LIFETIME),
        }

    @staticmethod
    def _sign(user: User, secret: str, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "userId": user["id"],
            "email": user["email"],
            "role": user["role"],
            # Distinguishes tokens issued within the same second.
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(claims, secret, algorithm="HS256")

    def _user_from_token(self, token: str, secret: str) -> StoredUser | None:
        try:
            claims = jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError:
            return None
        return self._users.get(str(claims.get("userId")))


def _bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header.removeprefix("Bearer ").strip() or None


def _json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def create_app(stub: AuthApiStub | None = None) -> Flask:
    """
    Build a Flask app serving ``stub``.

    :param stub: Backing store. A fresh, empty one is created if omitted.
    """
    app = Flask(__name__)
    auth_stub = stub if stub is not None else AuthApiStub()
    app.config["AUTH_STUB"] = auth_stub

    @app.route("/health", methods=["GET"])
    def health_check() -> dict[str, str]:
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": "stub",
        }

    @app.route("/api/auth/signup", methods=["POST"])
    def signup() -> StubResult:
        return auth_stub.signup(_json_body())

    @app.route("/api/auth/login", methods=["POST"])
    def login() -> StubResult:
        return auth_stub.login(_json_body())

    @app.route("/api/auth/refresh", methods=["POST"])
    def refresh() -> StubResult:
        return auth_stub.refresh(_json_body())

    @app.route("/api/auth/me", methods=["GET"])
    def me() -> StubResult:
        return auth_stub.me(_bearer_token())

    @app.route("/api/users/<user_id>", methods=["DELETE"])
    def delete_user(user_id: str) -> StubResult:
        return auth_stub.delete_user(user_id, _bearer_token())

    return app
