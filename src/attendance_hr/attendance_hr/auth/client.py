from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from .model import AuthSession, Identity


class AuthClient(Protocol):
    """Authentication collaborator.

    Services depend on this interface, not on a concrete identity store.
    """

    def sign_in(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    def get_current_session(self) -> Optional[Identity]:
        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError

    def create_identity(self, email: str, password: str, metadata: Optional[Mapping[str, Any]] = None) -> Identity:
        raise NotImplementedError
