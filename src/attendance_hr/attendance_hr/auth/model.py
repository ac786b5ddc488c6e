from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True)
class Identity:
    """Authentication identity (login account), independent of the employee row."""

    identity_id: str
    email: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthSession:
    identity: Identity
    issued_at: datetime
