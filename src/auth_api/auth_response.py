"""Body returned by signup, login and refresh."""

from typing import NotRequired, TypedDict

from auth_api.user import User


class AuthResponse(TypedDict):
    user: User
    token: str
    refreshToken: str
    message: NotRequired[str]
