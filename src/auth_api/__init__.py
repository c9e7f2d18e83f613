"""Authentication API request and response bodies."""

from auth_api.auth_response import AuthResponse
from auth_api.error import ErrorResponse
from auth_api.user import SignupRequest, User

__all__ = [
    "AuthResponse",
    "ErrorResponse",
    "SignupRequest",
    "User",
]
