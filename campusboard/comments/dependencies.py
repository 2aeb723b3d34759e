"""FastAPI dependencies for the comment system."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CommentService


async def get_comment_service(request: Request) -> CommentService:
    """Get comment service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "comment_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment service not available",
        )
    return app_state.comment_service


CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
