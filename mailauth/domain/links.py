from __future__ import annotations


def build_verification_link(site_base: str, token: str) -> str:
    """Join the public site base and a token into the emailed verification link."""
    return f"{site_base.rstrip('/')}/{token}"
