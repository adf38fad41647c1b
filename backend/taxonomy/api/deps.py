"""Shared API dependencies."""

from uuid import UUID

from fastapi import Header

from taxonomy.core.database import get_db


async def get_actor_id(x_actor_id: UUID | None = Header(default=None)) -> UUID | None:
    """Id of the admin performing the request, as forwarded by the gateway."""
    return x_actor_id


__all__ = ["get_db", "get_actor_id"]
