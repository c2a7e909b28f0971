# Auth Feature - Dependencies

from typing import Optional
from uuid import UUID

from fastapi import Header

from clinicdesk.core.logging import logger
from clinicdesk.shared.exceptions import CredentialsException


async def get_acting_user_id(x_user_id: Optional[str] = Header(default=None)) -> UUID:
    """
    Identify the acting user.
    
    Authentication happens upstream; the gateway forwards the authenticated
    user's id in the ``X-User-Id`` header.
    
    Raises:
        CredentialsException: If the header is missing or not a UUID
    """
    if not x_user_id:
        raise CredentialsException("Missing X-User-Id header")
    try:
        return UUID(x_user_id)
    except ValueError:
        logger.warning(f"Malformed X-User-Id header: {x_user_id!r}")
        raise CredentialsException("Invalid X-User-Id header")
