from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from authcore.core.errors import InfrastructureFailure


@dataclass(frozen=True)
class UserRecord:
    """A user as read from the credential store"""
    id: int
    username: str
    password_hash: str


class RejectReason(str, Enum):
    INCORRECT_USERNAME = "incorrect_username"
    INCORRECT_PASSWORD = "incorrect_password"
    INVALID_INPUT = "invalid_input"


class SignUpErrorReason(str, Enum):
    USERNAME_TAKEN = "username_taken"
    INVALID_INPUT = "invalid_input"
    INTERNAL = "internal"


class LogInErrorReason(str, Enum):
    INCORRECT_USERNAME = "incorrect_username"
    INCORRECT_PASSWORD = "incorrect_password"
    INVALID_INPUT = "invalid_input"
    INTERNAL = "internal"


# Authenticator outcomes

@dataclass(frozen=True)
class Accept:
    user: UserRecord


@dataclass(frozen=True)
class Reject:
    reason: RejectReason
    detail: str = ""


@dataclass(frozen=True)
class Fail:
    error: InfrastructureFailure


AuthOutcome = Union[Accept, Reject, Fail]


# Boundary operation outcomes

@dataclass(frozen=True)
class SignUpOk:
    id: int
    username: str


@dataclass(frozen=True)
class SignUpError:
    reason: SignUpErrorReason
    detail: str = ""


SignUpResult = Union[SignUpOk, SignUpError]


@dataclass(frozen=True)
class LogInOk:
    user: UserRecord
    token: str


@dataclass(frozen=True)
class LogInError:
    reason: LogInErrorReason
    detail: str = ""


LogInResult = Union[LogInOk, LogInError]
