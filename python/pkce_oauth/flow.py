"""Two-phase authorization code flow: request an authorization code, then complete it on return."""

from __future__ import annotations

import json
import logging
import webbrowser
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, urlparse

from .client import OAuthClient, Scopes, TokenRequest
from .errors import (
    AuthorizationError,
    OAuthFlowError,
    StateDecodeError,
    TokenExchangeError,
)
from .storage import VerifierStore

logger = logging.getLogger(__name__)

Navigate = Callable[[str], Any]
TokenFn = Callable[[TokenRequest], Awaitable[Any]]


@dataclass
class Processing:
    processing: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"processing": self.processing}


@dataclass
class Success:
    state: Any
    token: Any
    state_error: StateDecodeError | None = None
    processing: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        result = {"processing": self.processing, "state": self.state, "token": self.token}
        if self.state_error is not None:
            result["state_error"] = self.state_error
        return result


@dataclass
class Failed:
    error: Exception
    state: Any = None
    state_error: StateDecodeError | None = None
    processing: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        result = {"processing": self.processing, "error": self.error}
        if self.state_error is not None:
            result["state_error"] = self.state_error
        return result


AuthorizationOutcome = Processing | Success | Failed


def open_browser(url: str) -> None:
    webbrowser.open(url)


def encode_state(state: Any) -> str:
    return json.dumps(state, separators=(",", ":"))


def decode_state(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise StateDecodeError(f"Could not decode state parameter: {e}", raw_state=raw) from e


@dataclass
class CallbackParams:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None


def parse_callback(location: str) -> CallbackParams:
    """Extract the authorization response parameters from a callback URL or query string."""
    parsed = urlparse(location)
    query = parsed.query
    if not query and not parsed.scheme and not parsed.netloc:
        # bare query string, e.g. "?code=abc" or "code=abc"
        query = location.split("#", 1)[0].lstrip("?")
    params = parse_qs(query, keep_blank_values=True)

    def single(key: str) -> str | None:
        values = params.get(key)
        return values[0] if values else None

    return CallbackParams(
        code=single("code") or None,
        state=single("state"),
        error=single("error"),
        error_description=single("error_description"),
    )


class RequestAuthorizationCode:
    """Starts the flow: stores a fresh verifier and sends the user to the authorization server."""

    def __init__(
        self,
        client: OAuthClient,
        store: VerifierStore,
        navigate: Navigate | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.navigate = navigate or open_browser

    def authorization_url(
        self,
        scope: Scopes | None = None,
        state: Any = None,
        args: Mapping[str, str] | None = None,
    ) -> str:
        # fail before the verifier slot is touched
        self.client.options.require("client_id", "authorization_uri", "redirect_uri")
        encoded_state = encode_state(state) if state is not None else None

        challenge = self.store.generate_code_challenge()
        return self.client.authorization_url(challenge, scope=scope, state=encoded_state, args=args)

    def request(
        self,
        scope: Scopes | None = None,
        state: Any = None,
        args: Mapping[str, str] | None = None,
        navigate: Navigate | None = None,
    ) -> str:
        url = self.authorization_url(scope=scope, state=state, args=args)
        logger.info("Requesting authorization code for client %s", self.client.options.client_id)
        (navigate or self.navigate)(url)
        return url


class AuthorizationCodeCallback:
    """Completes the flow on return from the authorization server.

    Every ``run`` moves through Processing to exactly one of Success or
    Failed. A success callback that raises turns the run into Failed. Once
    :meth:`deactivate` is called the callbacks are no longer invoked, though a
    running exchange still finishes.
    """

    def __init__(
        self,
        client: OAuthClient,
        store: VerifierStore,
        on_auth_success: Callable[[Any, Any], Any] | None = None,
        on_auth_error: Callable[[Exception], Any] | None = None,
        render: Callable[[AuthorizationOutcome], Any] | None = None,
        token_fn: TokenFn | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.on_auth_success = on_auth_success
        self.on_auth_error = on_auth_error
        self.render = render
        self.token_fn = token_fn or client.get_token
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def deactivate(self) -> None:
        self._active = False

    def _notify(self, outcome: AuthorizationOutcome) -> None:
        if self._active and self.render is not None:
            self.render(outcome)

    def _fail(self, error: Exception, state: Any, state_error: StateDecodeError | None) -> Failed:
        logger.warning("Authorization failed: %s", error)
        outcome = Failed(error=error, state=state, state_error=state_error)
        # render first so a raising on_auth_error cannot hide the outcome
        self._notify(outcome)
        if self._active and self.on_auth_error is not None:
            self.on_auth_error(error)
        return outcome

    async def run(self, location: str) -> AuthorizationOutcome:
        """Exchange the authorization code in ``location`` for a token.

        Raises:
            MissingVerifierError: If no verifier was stored by a preceding
                authorization request. No exchange is attempted.
        """
        self._notify(Processing())

        code_verifier = self.store.get_code_verifier()
        params = parse_callback(location)

        state = None
        state_error = None
        if params.state is not None:
            try:
                state = decode_state(params.state)
            except StateDecodeError as e:
                logger.warning("Ignoring undecodable state parameter: %s", e)
                state_error = e

        if params.error:
            message = f"Authorization failed: {params.error}"
            if params.error_description:
                message += f" - {params.error_description}"
            error = AuthorizationError(message, error_code=params.error, description=params.error_description)
            return self._fail(error, state, state_error)
        if not params.code:
            return self._fail(AuthorizationError("No authorization code in callback"), state, state_error)

        request = self.client.token_request(params.code, code_verifier)
        try:
            token = await self.token_fn(request)
        except OAuthFlowError as e:
            return self._fail(e, state, state_error)
        except Exception as e:
            wrapped = TokenExchangeError(f"Token exchange failed: {e}")
            wrapped.__cause__ = e
            return self._fail(wrapped, state, state_error)

        if self._active and self.on_auth_success is not None:
            try:
                self.on_auth_success(token, state)
            except Exception as e:
                return self._fail(e, state, state_error)

        outcome = Success(state=state, token=token, state_error=state_error)
        self._notify(outcome)
        return outcome
