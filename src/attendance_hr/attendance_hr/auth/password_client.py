from __future__ import annotations

import json
import logging
from typing import Any, Mapping, MutableMapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_utc
from ..common.validators import require_email, require_min_length
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.exceptions import AuthenticationError, ConflictError
from ..database.client import DataClient, Entity, eq
from .model import AuthSession, Identity

logger = logging.getLogger(__name__)

SESSION_IDENTITY_KEY = "identity_id"
SESSION_EMAIL_KEY = "identity_email"


def _identity_from_row(row: Mapping[str, Any]) -> Identity:
    metadata = row.get("metadata") or {}
    if isinstance(metadata, (str, bytes)):
        metadata = json.loads(metadata)
    return Identity(identity_id=str(row["id"]), email=str(row["email"]), metadata=dict(metadata))


class PasswordAuthClient:
    """AuthClient storing identities through the data client.

    The session lives in a mutable mapping: the Flask session in the web app,
    a plain dict in tests and scripts.
    """

    def __init__(self, data: DataClient, session_store: MutableMapping):
        self._data = data
        self._session = session_store

    def _find_by_email(self, email: str) -> Optional[dict]:
        rows = self._data.query(Entity.IDENTITIES, filters=[eq("email", email)], limit=1)
        return rows[0] if rows else None

    def sign_in(self, email: str, password: str) -> AuthSession:
        row = self._find_by_email((email or "").strip().lower())
        if not row:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(row["password_hash"], password or "")
        except (TypeError, ValueError):
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        identity = _identity_from_row(row)
        self._session[SESSION_IDENTITY_KEY] = identity.identity_id
        self._session[SESSION_EMAIL_KEY] = identity.email
        logger.info("identity %s signed in", identity.identity_id)
        return AuthSession(identity=identity, issued_at=now_utc())

    def get_current_session(self) -> Optional[Identity]:
        identity_id = self._session.get(SESSION_IDENTITY_KEY)
        if not identity_id:
            return None
        return Identity(identity_id=str(identity_id), email=str(self._session.get(SESSION_EMAIL_KEY) or ""))

    def sign_out(self) -> None:
        self._session.clear()

    def create_identity(self, email: str, password: str, metadata: Optional[Mapping[str, Any]] = None) -> Identity:
        email = require_email(email)
        require_min_length(password, "password", MIN_PASSWORD_LENGTH)

        if self._find_by_email(email):
            raise ConflictError("An account with this email already exists")

        row = self._data.insert(
            Entity.IDENTITIES,
            {
                "email": email,
                "password_hash": generate_password_hash(password),
                "metadata": json.dumps(dict(metadata or {}), default=str),
                "created_at": now_utc(),
            },
        )
        logger.info("identity %s created for %s", row["id"], email)
        return _identity_from_row(row)
