"""FastAPI dependencies for actor identity.

The board does not issue or verify tokens. The acting user is named by the
``X-Actor-Id`` header, set by the gateway in front of the service, and
resolved against the user directory by the operations that need it.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from campusboard.core.context import set_actor_id


ACTOR_HEADER = "X-Actor-Id"


async def get_actor_id_from_header(request: Request) -> UUID | None:
    """Extract the actor id from the request headers.

    Returns:
        Actor UUID or None if not present

    Raises:
        HTTPException(401): If the header is not a valid UUID
    """
    raw = request.headers.get(ACTOR_HEADER)
    if not raw:
        return None

    try:
        actor_id = UUID(raw)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor id",
        ) from e

    # Set actor_id in context for logging (only sticks from an async dependency)
    set_actor_id(actor_id)
    return actor_id


async def get_current_actor(
    actor_id: Annotated[UUID | None, Depends(get_actor_id_from_header)],
) -> UUID:
    """Actor id of an identified request.

    Raises:
        HTTPException(401): If no actor is given
    """
    if actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Actor identity required",
        )
    return actor_id


async def get_current_actor_optional(
    actor_id: Annotated[UUID | None, Depends(get_actor_id_from_header)],
) -> UUID | None:
    """Actor id if given, None for anonymous reads."""
    return actor_id


# Type aliases for cleaner dependency injection
CurrentActor = Annotated[UUID, Depends(get_current_actor)]
OptionalActor = Annotated[UUID | None, Depends(get_current_actor_optional)]
