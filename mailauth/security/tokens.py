"""Opaque bearer token generation."""

from __future__ import annotations

import secrets

TOKEN_BYTES = 32


def generate_token() -> str:
    """Return a URL-safe token drawn from the OS CSPRNG.

    Returns
    -------
    str
        Base64url text (no padding) encoding ``TOKEN_BYTES`` random bytes, i.e.
        256 bits of entropy. The value carries no information about the account.
    """
    return secrets.token_urlsafe(TOKEN_BYTES)
