"""OAuth 2.0 Authorization Code flow with PKCE (RFC 7636)."""

from .client import OAuthClient, OAuthClientOptions, OAuthToken, TokenRequest, create_oauth_client
from .errors import (
    AuthorizationError,
    ConfigurationError,
    MissingVerifierError,
    OAuthFlowError,
    StateDecodeError,
    TokenExchangeError,
)
from .flow import (
    AuthorizationCodeCallback,
    AuthorizationOutcome,
    Failed,
    Processing,
    RequestAuthorizationCode,
    Success,
)
from .pkce import PKCEPair, base64url_decode, base64url_encode, derive_code_challenge, generate_pkce
from .storage import (
    FileStorage,
    MemoryStorage,
    Storage,
    VerifierStore,
    generate_code_challenge,
    get_code_verifier,
)

__all__ = [
    "AuthorizationCodeCallback",
    "AuthorizationError",
    "AuthorizationOutcome",
    "ConfigurationError",
    "Failed",
    "FileStorage",
    "MemoryStorage",
    "MissingVerifierError",
    "OAuthClient",
    "OAuthClientOptions",
    "OAuthFlowError",
    "OAuthToken",
    "PKCEPair",
    "Processing",
    "RequestAuthorizationCode",
    "StateDecodeError",
    "Storage",
    "Success",
    "TokenExchangeError",
    "TokenRequest",
    "VerifierStore",
    "base64url_decode",
    "base64url_encode",
    "create_oauth_client",
    "derive_code_challenge",
    "generate_code_challenge",
    "generate_pkce",
    "get_code_verifier",
]
