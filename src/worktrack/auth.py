"""Caller identity for authenticated routes.

The bearer token sent by the client is resolved to an identity by the
external auth service (see adapters/auth_client.py). Routes that mutate
state depend on get_current_user; scope checks go through the same service.
"""

import uuid
from typing import TYPE_CHECKING, Annotated

from fastapi import Header, Request
from pydantic import BaseModel, ConfigDict

from worktrack.errors import UnauthorizedError

if TYPE_CHECKING:
    from worktrack.core.interfaces import IAuthService

SCOPE_CONTRIBUTE = "contribute"


class UserContext(BaseModel):
    """The authenticated caller of a request.

    Attributes:
        identity_id: The caller's identity UUID.
        username: The caller's username, when the auth service reports it.
        token: The bearer token the caller presented.
    """

    model_config = ConfigDict(frozen=True)

    identity_id: uuid.UUID
    username: str | None = None
    token: str


def get_auth_service(request: Request) -> "IAuthService":
    """Return the application's auth service client."""
    return request.app.state.auth_service


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> UserContext:
    """FastAPI dependency resolving the Authorization header to a UserContext.

    Raises:
        UnauthorizedError: If the header is missing, malformed, or rejected.
    """
    if not authorization:
        raise UnauthorizedError("missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Authorization header must carry a bearer token")
    return await get_auth_service(request).get_identity(token.strip())
