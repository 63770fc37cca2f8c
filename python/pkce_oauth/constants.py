"""
pkce-oauth constants
Well-known storage keys, environment variable names and default locations
"""

import os
from pathlib import Path

# PKCE
CODE_CHALLENGE_METHOD = "S256"
CODE_VERIFIER_KEY = "code_verifier"

# Local persistence for the pending authorization
CONFIG_DIR = Path(os.environ.get("PKCE_OAUTH_CONFIG_DIR", Path.home() / ".pkce-oauth"))
SESSION_FILE = CONFIG_DIR / "session.json"

# Environment configuration
ENV_PREFIX = "PKCE_OAUTH_"
ENV_CLIENT_ID = f"{ENV_PREFIX}CLIENT_ID"
ENV_CLIENT_SECRET = f"{ENV_PREFIX}CLIENT_SECRET"
ENV_AUTHORIZATION_URI = f"{ENV_PREFIX}AUTHORIZATION_URI"
ENV_TOKEN_URI = f"{ENV_PREFIX}TOKEN_URI"
ENV_REDIRECT_URI = f"{ENV_PREFIX}REDIRECT_URI"
ENV_SCOPES = f"{ENV_PREFIX}SCOPES"

# Token endpoint request timeout in seconds
DEFAULT_TIMEOUT = 30.0
