# Users and clinic membership - Models

from uuid import UUID

from clinicdesk.shared.models import Record, TimestampMixin


class User(Record):
    """Identity known to the service. Profile data lives with the auth provider."""


class Membership(TimestampMixin):
    """Grants a user access to one clinic's resources."""
    
    user_id: UUID
    clinic_id: UUID
