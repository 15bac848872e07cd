"""
Error taxonomy for the authentication core.

Only InfrastructureFailure subclasses are allowed to cross the service
boundary as exceptions. Everything else is turned into a typed result.
"""


class AuthError(Exception):
    """Base class for all authcore errors"""


class ValidationError(AuthError):
    """Malformed input, e.g. an empty username. Never reaches the store."""


class UsernameTakenError(AuthError):
    """The store's unique constraint rejected the username"""

    def __init__(self, username: str):
        super().__init__(f"Username already taken: {username}")
        self.username = username


class InfrastructureFailure(AuthError):
    """Store unreachable or hasher failure - fatal for the current request"""


class StoreUnavailableError(InfrastructureFailure):
    pass


class HasherError(InfrastructureFailure):
    pass
