"""FastAPI dependencies for board posts."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import PostService


async def get_post_service(request: Request) -> PostService:
    """Get post service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "post_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Board service not available",
        )
    return app_state.post_service


PostServiceDep = Annotated[PostService, Depends(get_post_service)]
