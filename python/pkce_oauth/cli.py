#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .client import OAuthClientOptions, OAuthToken, create_oauth_client
from .constants import SESSION_FILE
from .errors import OAuthFlowError
from .flow import (
    AuthorizationCodeCallback,
    AuthorizationOutcome,
    Failed,
    RequestAuthorizationCode,
    Success,
)
from .storage import FileStorage, VerifierStore


def build_options(args: argparse.Namespace) -> OAuthClientOptions:
    options = OAuthClientOptions.from_env()
    overrides = {
        "client_id": args.client_id,
        "client_secret": args.client_secret,
        "authorization_uri": args.authorize_url,
        "access_token_uri": args.token_url,
        "redirect_uri": args.redirect_uri,
    }
    for name, value in overrides.items():
        if value:
            setattr(options, name, value)
    return options


def build_store(args: argparse.Namespace) -> VerifierStore:
    return VerifierStore(FileStorage(Path(args.session_file)))


def parse_state(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        print(f"\033[31m--state must be valid JSON: {raw}\033[0m")
        sys.exit(2)


def print_outcome(outcome: AuthorizationOutcome, as_json: bool = False) -> None:
    if isinstance(outcome, Failed):
        print(f"\nAuthentication failed: {outcome.error}")
        sys.exit(1)
    if not isinstance(outcome, Success):
        return

    if outcome.state_error is not None:
        print(f"\033[33mWarning: {outcome.state_error}\033[0m")

    token = outcome.token
    if as_json:
        data = token.data if isinstance(token, OAuthToken) else token
        print(json.dumps({"state": outcome.state, "token": data}, indent=2))
        return

    print("\nSuccess! Authorization code exchanged for a token.")
    if isinstance(token, OAuthToken):
        print(f"Access token: {token.access_token}")
        if token.token_type:
            print(f"Token type: {token.token_type}")
        if token.expires_in is not None:
            print(f"Expires in: {token.expires_in}s")
        if token.scope:
            print(f"Scope: {token.scope}")
    if outcome.state is not None:
        print(f"State: {json.dumps(outcome.state)}")


def complete(args: argparse.Namespace, location: str) -> None:
    client = create_oauth_client(build_options(args))
    callback = AuthorizationCodeCallback(client, build_store(args))
    outcome = asyncio.run(callback.run(location))
    print_outcome(outcome, as_json=args.json)


def cmd_url(args: argparse.Namespace) -> None:
    client = create_oauth_client(build_options(args))
    requester = RequestAuthorizationCode(client, build_store(args))
    print(requester.authorization_url(scope=args.scope, state=parse_state(args.state)))


def cmd_login(args: argparse.Namespace) -> None:
    print("Starting OAuth flow...\n")

    client = create_oauth_client(build_options(args))
    requester = RequestAuthorizationCode(client, build_store(args))
    state = parse_state(args.state)

    if args.no_browser:
        url = requester.authorization_url(scope=args.scope, state=state)
    else:
        print("Opening browser...\n")
        url = requester.request(scope=args.scope, state=state)

    print("If browser did not open, visit this URL:\n")
    print(url)
    print("\nAfter authorizing, you will be redirected to your redirect URI.")
    print("Copy the full URL from the browser address bar.\n")

    location = input("Paste the callback URL here: ").strip()
    complete(args, location)


def cmd_callback(args: argparse.Namespace) -> None:
    complete(args, args.location)


def cmd_clear(args: argparse.Namespace) -> None:
    build_store(args).clear()
    print("Pending code verifier cleared.")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="OAuth 2.0 Authorization Code + PKCE client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pkce-oauth url --scope "openid profile"
  pkce-oauth login --state '{"next": "/home"}'
  pkce-oauth callback "http://localhost:8080/callback?code=abc123"
  pkce-oauth clear

Client options may also be set with PKCE_OAUTH_CLIENT_ID, PKCE_OAUTH_CLIENT_SECRET,
PKCE_OAUTH_AUTHORIZATION_URI, PKCE_OAUTH_TOKEN_URI, PKCE_OAUTH_REDIRECT_URI
and PKCE_OAUTH_SCOPES.
""",
    )
    parser.add_argument("--client-id", help="OAuth client identifier")
    parser.add_argument("--client-secret", help="OAuth client secret (confidential clients only)")
    parser.add_argument("--authorize-url", help="Authorization endpoint")
    parser.add_argument("--token-url", help="Token endpoint")
    parser.add_argument("--redirect-uri", help="Registered redirect URI")
    parser.add_argument("--session-file", default=str(SESSION_FILE), help="Where the pending code verifier is kept")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    url_parser = subparsers.add_parser("url", help="Print an authorization URL without opening a browser")
    login_parser = subparsers.add_parser("login", help="Run the full authorization code flow")
    for sub in (url_parser, login_parser):
        sub.add_argument("--scope", help="Space separated scopes to request")
        sub.add_argument("--state", help="JSON value round-tripped through the state parameter")
    login_parser.add_argument("--no-browser", action="store_true", help="Only print the authorization URL")
    login_parser.add_argument("--json", action="store_true", help="Print the token response as JSON")

    callback_parser = subparsers.add_parser("callback", help="Complete a pending flow from a callback URL")
    callback_parser.add_argument("location", help="Callback URL or query string")
    callback_parser.add_argument("--json", action="store_true", help="Print the token response as JSON")

    subparsers.add_parser("clear", help="Forget the pending code verifier")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "url": cmd_url,
        "login": cmd_login,
        "callback": cmd_callback,
        "clear": cmd_clear,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return

    try:
        command(args)
    except OAuthFlowError as e:
        print(f"\nAuthentication failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
