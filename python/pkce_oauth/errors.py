"""Exception hierarchy for the authorization code + PKCE flow."""

from __future__ import annotations


class OAuthFlowError(Exception):
    """Base exception for all flow errors."""


class ConfigurationError(OAuthFlowError):
    """Raised when required client or endpoint options are missing."""


class MissingVerifierError(OAuthFlowError):
    """Raised when no pending code verifier is stored.

    The flow cannot recover from this; it has to be restarted by requesting
    a new authorization code.
    """

    def __init__(self, message: str = "No Code Verifier found"):
        super().__init__(message)


class StateDecodeError(OAuthFlowError):
    """Raised when the returned ``state`` parameter is not valid JSON."""

    def __init__(self, message: str, raw_state: str | None = None):
        super().__init__(message)
        self.raw_state = raw_state


class AuthorizationError(OAuthFlowError):
    """Raised when the callback carries an error or no authorization code."""

    def __init__(self, message: str, error_code: str | None = None, description: str | None = None):
        super().__init__(message)
        self.error_code = error_code
        self.description = description


class TokenExchangeError(OAuthFlowError):
    """Raised when exchanging the authorization code for a token fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        description: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.description = description
