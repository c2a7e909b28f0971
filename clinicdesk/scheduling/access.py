"""Access Gate: clinic membership check for acting users."""

from uuid import UUID

from clinicdesk.core.logging import logger
from clinicdesk.shared.errors import UnauthorizedError
from clinicdesk.store.base import EntityStore


class AccessGate:
    """
    Resolves whether a user may act on a clinic's resources.

    Membership is read from the store on every call, so grants and
    revocations take effect on the next request.
    """

    def __init__(self, store: EntityStore):
        self.store = store

    async def authorize(self, user_id: UUID, clinic_id: UUID) -> bool:
        return await self.store.is_member(user_id, clinic_id)

    async def require(self, user_id: UUID, clinic_id: UUID) -> None:
        """Raise ``UnauthorizedError`` unless the user is a member of the clinic."""
        if not await self.authorize(user_id, clinic_id):
            logger.warning(f"User {user_id} denied access to clinic {clinic_id}")
            raise UnauthorizedError(f"User {user_id} is not a member of clinic {clinic_id}")
