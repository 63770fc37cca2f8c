from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from .constants import (
    CODE_CHALLENGE_METHOD,
    DEFAULT_TIMEOUT,
    ENV_AUTHORIZATION_URI,
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
    ENV_REDIRECT_URI,
    ENV_SCOPES,
    ENV_TOKEN_URI,
)
from .errors import ConfigurationError, TokenExchangeError

logger = logging.getLogger(__name__)

Scopes = str | Sequence[str]


@dataclass
class OAuthClientOptions:
    client_id: str | None = None
    authorization_uri: str | None = None
    access_token_uri: str | None = None
    redirect_uri: str | None = None
    client_secret: str | None = None
    scopes: tuple[str, ...] = ()
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OAuthClientOptions:
        env = os.environ if environ is None else environ
        return cls(
            client_id=env.get(ENV_CLIENT_ID) or None,
            authorization_uri=env.get(ENV_AUTHORIZATION_URI) or None,
            access_token_uri=env.get(ENV_TOKEN_URI) or None,
            redirect_uri=env.get(ENV_REDIRECT_URI) or None,
            client_secret=env.get(ENV_CLIENT_SECRET) or None,
            scopes=tuple(env.get(ENV_SCOPES, "").split()),
        )

    def missing(self, *fields: str) -> list[str]:
        return [name for name in fields if not getattr(self, name)]

    def require(self, *fields: str) -> None:
        missing = self.missing(*fields)
        if missing:
            raise ConfigurationError(f"Missing required OAuth client options: {', '.join(missing)}")


@dataclass
class TokenRequest:
    authorization_code: str
    code_verifier: str
    token_endpoint: str
    client_id: str
    redirect_uri: str
    client_secret: str | None = None


@dataclass
class OAuthToken:
    """Token endpoint response, passed through to the caller as-is."""

    data: dict[str, Any] = field(default_factory=dict)

    @property
    def access_token(self) -> str:
        return self.data["access_token"]

    @property
    def token_type(self) -> str | None:
        return self.data.get("token_type")

    @property
    def refresh_token(self) -> str | None:
        return self.data.get("refresh_token")

    @property
    def expires_in(self) -> int | None:
        return self.data.get("expires_in")

    @property
    def scope(self) -> str | None:
        return self.data.get("scope")


def format_scopes(scopes: Scopes | None) -> str | None:
    if not scopes:
        return None
    if isinstance(scopes, str):
        return scopes
    return " ".join(scopes)


class OAuthClient:
    """Builds authorization URLs and exchanges authorization codes for tokens.

    Shared by the request and callback halves of the flow; both receive the
    same instance rather than constructing their own.
    """

    def __init__(self, options: OAuthClientOptions) -> None:
        self.options = options

    def authorization_url(
        self,
        code_challenge: str,
        scope: Scopes | None = None,
        state: str | None = None,
        args: Mapping[str, str] | None = None,
    ) -> str:
        """Build an RFC 6749 section 4.1.1 authorization request URL with PKCE parameters.

        ``args`` are merged last and take precedence over the generated
        parameters.
        """
        self.options.require("client_id", "authorization_uri", "redirect_uri")

        params: dict[str, str] = {
            "response_type": "code",
            "client_id": self.options.client_id,
            "redirect_uri": self.options.redirect_uri,
        }
        scope_value = format_scopes(scope if scope is not None else self.options.scopes)
        if scope_value:
            params["scope"] = scope_value
        params["code_challenge"] = code_challenge
        params["code_challenge_method"] = CODE_CHALLENGE_METHOD
        if state is not None:
            params["state"] = state
        if args:
            params.update(args)

        separator = "&" if "?" in self.options.authorization_uri else "?"
        url = f"{self.options.authorization_uri}{separator}{urlencode(params)}"
        logger.debug("Built authorization URL for client %s", self.options.client_id)
        return url

    def token_request(self, authorization_code: str, code_verifier: str) -> TokenRequest:
        self.options.require("client_id", "access_token_uri", "redirect_uri")
        return TokenRequest(
            authorization_code=authorization_code,
            code_verifier=code_verifier,
            token_endpoint=self.options.access_token_uri,
            client_id=self.options.client_id,
            redirect_uri=self.options.redirect_uri,
            client_secret=self.options.client_secret,
        )

    async def get_token(self, request: TokenRequest) -> OAuthToken:
        data = {
            "grant_type": "authorization_code",
            "code": request.authorization_code,
            "redirect_uri": request.redirect_uri,
            "code_verifier": request.code_verifier,
        }
        auth = None
        if request.client_secret:
            # RFC 6749 section 2.3.1: credentials are form-encoded before Basic auth
            auth = httpx.BasicAuth(quote(request.client_id, safe=""), quote(request.client_secret, safe=""))
        else:
            data["client_id"] = request.client_id

        try:
            async with httpx.AsyncClient(timeout=self.options.timeout) as client:
                response = await client.post(
                    request.token_endpoint,
                    data=data,
                    auth=auth,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"Token exchange failed: {e}") from e

        if not response.is_success:
            raise _error_from_response(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise TokenExchangeError(
                "Token endpoint returned a non-JSON response", status_code=response.status_code
            ) from e

        if not isinstance(payload, dict) or "access_token" not in payload:
            raise TokenExchangeError(
                "Token response missing 'access_token' field", status_code=response.status_code
            )

        logger.info("Exchanged authorization code for token at %s", request.token_endpoint)
        return OAuthToken(data=payload)


def _error_from_response(response: httpx.Response) -> TokenExchangeError:
    error_code = None
    description = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error_code = body.get("error")
        description = body.get("error_description")

    detail = error_code or response.text
    if description:
        detail = f"{detail} - {description}"
    return TokenExchangeError(
        f"Token exchange failed: {response.status_code} - {detail}",
        status_code=response.status_code,
        error_code=error_code,
        description=description,
    )


def create_oauth_client(options: OAuthClientOptions) -> OAuthClient:
    options.require("client_id", "redirect_uri")
    return OAuthClient(options)
