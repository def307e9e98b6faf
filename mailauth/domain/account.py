from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True, frozen=True)
class Account:
    """Email-keyed identity holding its single, immutable bearer token."""

    email: str
    token: str
    created_at: datetime
