"""Access gate for layout editing.

A single shared secret, unrelated to employee identity, decides who may
reshape a rack layout. The secret lives in a small key-value file under the
data directory, never in the relational store.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from jose import JWTError, jwt
from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher

from rackbox.config import settings
from rackbox.config.loader import parse_env_file
from rackbox.exceptions import UnauthorizedLayoutEdit

# Security event logger
security_logger = logging.getLogger("rackbox.security")

password_hash = PasswordHash((Argon2Hasher(),))

SECRET_KEY_NAME = "EDIT_SECRET_HASH"
EDIT_SCOPE = "layout:edit"
ALGORITHM = "HS256"


@dataclass(frozen=True)
class EditAuthorization:
    """Proof that the edit secret was presented for a rack."""

    rack_id: str
    expires_at: datetime

    @property
    def expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_at

    def check(self, rack_id: str) -> None:
        """Raise unless this authorization covers ``rack_id`` and is still valid."""
        if self.rack_id != rack_id:
            raise UnauthorizedLayoutEdit(
                f"Edit authorization is for rack '{self.rack_id}', not '{rack_id}'"
            )
        if self.expired:
            raise UnauthorizedLayoutEdit("Edit authorization has expired")


class AccessGate:
    """Shared edit secret store and checker."""

    def __init__(
        self,
        secret_file: Path | None = None,
        default_secret: str | None = None,
        token_minutes: int | None = None,
    ) -> None:
        self.secret_file = secret_file or settings.edit_secret_file
        self.default_secret = default_secret or settings.default_edit_secret
        self.token_minutes = token_minutes or settings.edit_token_minutes

    def _read_hash(self) -> str:
        if self.secret_file.exists():
            stored = parse_env_file(self.secret_file).get(SECRET_KEY_NAME)
            if stored:
                return stored

        # Never set: persist the default on first use
        self._write_hash(password_hash.hash(self.default_secret))
        security_logger.warning(
            "Edit secret not set, using the default. Change it with 'rackbox-admin secret'."
        )
        return parse_env_file(self.secret_file)[SECRET_KEY_NAME]

    def _write_hash(self, hashed: str) -> None:
        self.secret_file.parent.mkdir(parents=True, exist_ok=True)
        self.secret_file.write_text(f'{SECRET_KEY_NAME}="{hashed}"\n')

    def set_secret(self, new_secret: str) -> None:
        """Replace the shared edit secret."""
        if not new_secret:
            raise ValueError("Edit secret cannot be empty")
        self._write_hash(password_hash.hash(new_secret))
        security_logger.info("Edit secret changed")

    def check_secret(self, candidate: str) -> bool:
        """Return True if ``candidate`` matches the shared edit secret."""
        return password_hash.verify(candidate, self._read_hash())

    def authorize(self, candidate: str, rack_id: str) -> EditAuthorization:
        """Grant layout edit rights on a rack.

        Raises:
            UnauthorizedLayoutEdit: If the secret does not match.
        """
        if not self.check_secret(candidate):
            security_logger.warning("Layout edit denied: rack_id=%s", rack_id)
            raise UnauthorizedLayoutEdit(details={"rack_id": rack_id})

        security_logger.info("Layout edit granted: rack_id=%s", rack_id)
        return EditAuthorization(
            rack_id=rack_id,
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=self.token_minutes),
        )

    def issue_edit_token(self, authorization: EditAuthorization) -> str:
        """Encode an authorization as a signed bearer token."""
        claims = {
            "sub": authorization.rack_id,
            "scope": EDIT_SCOPE,
            "exp": authorization.expires_at,
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)

    def verify_edit_token(self, token: str, rack_id: str) -> EditAuthorization:
        """Decode a bearer token back into an authorization for ``rack_id``.

        Raises:
            UnauthorizedLayoutEdit: If the token is invalid, expired or for another rack.
        """
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        except JWTError as e:
            security_logger.warning("Rejected edit token for rack %s: %s", rack_id, e)
            raise UnauthorizedLayoutEdit("Invalid or expired edit token") from e

        if payload.get("scope") != EDIT_SCOPE:
            raise UnauthorizedLayoutEdit("Token does not grant layout editing")

        authorization = EditAuthorization(
            rack_id=payload["sub"],
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
        authorization.check(rack_id)
        return authorization
