# =============================================================================
# core/settings.py  —  Environment Configuration
# =============================================================================
#
# The server authenticates as exactly one X account.  Its four OAuth 1.0a
# credentials come from the environment (a .env file is loaded by main.py
# via python-dotenv before anything here runs).
#
#   X_API_KEY              API Key (Consumer Key) from the X Developer Portal
#   X_API_SECRET           API Secret (Consumer Secret)
#   X_ACCESS_TOKEN         Access Token for the account
#   X_ACCESS_TOKEN_SECRET  Access Token Secret
#   X_MCP_LOG_LEVEL        Optional, defaults to INFO
#
# Values are stripped; an empty value counts as missing.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_CREDENTIAL_VARS = {
    "api_key": "X_API_KEY",
    "api_secret": "X_API_SECRET",
    "access_token": "X_ACCESS_TOKEN",
    "access_token_secret": "X_ACCESS_TOKEN_SECRET",
}


class ConfigurationError(RuntimeError):
    """Required configuration is missing or invalid."""


@dataclass(frozen=True)
class XCredentials:
    """OAuth 1.0a user-context credentials for the configured account."""

    api_key: str
    api_secret: str
    access_token: str
    access_token_secret: str

    def __repr__(self) -> str:
        return "XCredentials(api_key=***, api_secret=***, access_token=***, access_token_secret=***)"


def load_credentials(environ: Optional[Mapping[str, str]] = None) -> XCredentials:
    """Read X credentials from `environ` (default: os.environ).

    Raises:
        ConfigurationError: naming every variable that is unset or blank.
    """
    env = os.environ if environ is None else environ

    values = {}
    missing = []
    for field_name, var in _CREDENTIAL_VARS.items():
        value = (env.get(var) or "").strip()
        if not value:
            missing.append(var)
        values[field_name] = value

    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    return XCredentials(**values)


def get_log_level(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return (env.get("X_MCP_LOG_LEVEL") or "INFO").strip().upper()
