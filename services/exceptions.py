"""Domain exceptions raised by the ranking engine and the token rotation guard."""


class ConfigurationError(Exception):
    """Unknown subscription tier or a weight set that does not sum to 1.0."""


class TokenError(Exception):
    """Base class for refresh token failures surfaced to the auth flow."""

    code = "INVALID_TOKEN"


class TokenNotFound(TokenError):
    """The presented value matches no refresh token record."""

    code = "INVALID_TOKEN"


class TokenExpired(TokenError):
    """The refresh token is past its expiry; the user must log in again."""

    code = "TOKEN_EXPIRED"


class SecurityAlert(TokenError):
    """
    An already consumed or revoked refresh token was presented again.
    Every token of the owning user has been revoked by the time this is raised.
    """

    code = "TOKEN_REUSE_DETECTED"

    def __init__(self, user_id: str, revoked: int = 0):
        super().__init__(f"Refresh token reuse detected for user {user_id}")
        self.user_id = user_id
        self.revoked = revoked
