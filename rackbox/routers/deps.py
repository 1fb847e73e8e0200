"""Shared router dependencies."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from rackbox.database import get_db
from rackbox.exceptions import UnauthorizedLayoutEdit
from rackbox.services.access_gate import AccessGate

edit_bearer = HTTPBearer(auto_error=False)


def get_access_gate() -> AccessGate:
    """Access gate bound to the configured secret file."""
    return AccessGate()


DbSession = Annotated[AsyncSession, Depends(get_db)]
Gate = Annotated[AccessGate, Depends(get_access_gate)]
EditCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(edit_bearer)]


def require_edit_token(credentials: EditCredentials) -> str:
    """Extract the layout edit bearer token."""
    if credentials is None:
        raise UnauthorizedLayoutEdit("Layout edit token required")
    return credentials.credentials
