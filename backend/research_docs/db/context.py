"""Request context for tenancy enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the caller's identity.

    Used to enforce project ownership before any document operation.
    """

    user_id: UUID
