"""User resources."""

from typing import NotRequired, TypedDict


class SignupRequest(TypedDict):
    email: str
    password: str
    firstName: str
    lastName: str
    phone: NotRequired[str]
    role: NotRequired[str]
    latitude: NotRequired[float]
    longitude: NotRequired[float]
    address: NotRequired[str]
    city: NotRequired[str]
    postalCode: NotRequired[str]


class User(TypedDict):
    id: str
    email: str
    firstName: str
    lastName: str
    role: str
    phone: NotRequired[str]
    city: NotRequired[str]
