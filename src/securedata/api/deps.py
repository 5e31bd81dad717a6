"""FastAPI dependencies for the SecureData API.

The identity layer in front of this service authenticates the caller and
forwards the result as X-User-ID / X-User-Role headers. Nothing here
verifies credentials; it only turns those headers into a Principal.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from securedata.core.service import CredentialService, get_service
from securedata.core.types import Principal, Role
from securedata.storage.db import ConnectionSupervisor, get_supervisor


async def get_principal(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Principal:
    """
    Build the acting principal from identity headers.

    Args:
        x_user_id: X-User-ID header value
        x_user_role: X-User-Role header value (defaults to "user")

    Returns:
        Principal for the request

    Raises:
        HTTPException: If the user ID header is missing
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )
    return Principal(id=x_user_id, role=(x_user_role or Role.USER).lower())


async def get_service_instance() -> CredentialService:
    """Get the credential service for request processing."""
    return get_service()


async def get_supervisor_instance() -> ConnectionSupervisor:
    """Get the connection supervisor for status reporting."""
    return get_supervisor()


# Type aliases for dependency injection
PrincipalDep = Annotated[Principal, Depends(get_principal)]
ServiceDep = Annotated[CredentialService, Depends(get_service_instance)]
SupervisorDep = Annotated[ConnectionSupervisor, Depends(get_supervisor_instance)]
