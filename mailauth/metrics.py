"""Prometheus counters for registration and verification outcomes."""

from __future__ import annotations

from prometheus_client import Counter

REGISTRATIONS = Counter(
    "mailauth_registrations_total",
    "Registration requests that reached the account store.",
    ["outcome"],
)

AUTH_ATTEMPTS = Counter(
    "mailauth_auth_attempts_total",
    "Token verification attempts.",
    ["outcome"],
)
