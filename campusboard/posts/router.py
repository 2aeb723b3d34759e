"""Board API endpoints.

Provides routes for:
- Board listing with keyword/category/department filters and sorting
- Category catalogue
- Post CRUD
- Like/dislike reactions
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from campusboard.users.dependencies import CurrentActor, OptionalActor

from .dependencies import PostServiceDep
from .models import BoardCategory
from .schemas import (
    CategoryResponse,
    CreatePostRequest,
    PostDetailResponse,
    PostPageResponse,
    PostReactionResponse,
    PostResponse,
    ReactToPostRequest,
    UpdatePostRequest,
)


router = APIRouter(prefix="/v1/boards", tags=["boards"])


@router.get(
    "",
    response_model=PostPageResponse,
    summary="List board posts",
)
async def list_posts(
    post_service: PostServiceDep,
    keyword: str | None = Query(None, description="Substring of title or body"),
    category: BoardCategory | None = Query(None, description="Board category"),
    department: str | None = Query(None, description="Author department"),
    sort: str | None = Query(None, description="created | views | likes"),
    page: int = Query(0, description="Zero-based page number"),
    size: int | None = Query(None, description="Page size"),
) -> PostPageResponse:
    """List active posts.

    Only one filter applies, in order of precedence: keyword, category,
    department. The sort key is honored only when no filter is given.
    """
    result = await post_service.list_posts(
        keyword=keyword,
        category=category,
        department=department,
        sort=sort,
        page=page,
        size=size,
    )
    return PostPageResponse(
        items=[PostResponse.from_post(p) for p in result.items],
        total_pages=result.total_pages,
        total_elements=result.total_elements,
        current_page=result.current_page,
        size=result.size,
    )


@router.get(
    "/categories",
    response_model=list[CategoryResponse],
    summary="List board categories",
)
async def list_categories(post_service: PostServiceDep) -> list[CategoryResponse]:
    """Category catalogue with display names and groups."""
    return [CategoryResponse.from_category(c) for c in post_service.list_categories()]


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
)
async def create_post(
    data: CreatePostRequest,
    post_service: PostServiceDep,
    actor_id: CurrentActor,
) -> PostResponse:
    """Create a post. Requires a department-verified actor."""
    post = await post_service.create_post(
        actor_id=actor_id,
        title=data.title,
        body=data.body,
        category=data.category,
    )
    return PostResponse.from_post(post)


@router.get(
    "/{post_id}",
    response_model=PostDetailResponse,
    summary="Get post",
)
async def get_post(
    post_id: UUID,
    post_service: PostServiceDep,
    actor_id: OptionalActor,
) -> PostDetailResponse:
    """Open a post. Each call counts one view."""
    post, state = await post_service.get_post_detail(post_id, actor_id)
    return PostDetailResponse.from_post_with_state(post, state)


@router.put(
    "/{post_id}",
    response_model=PostResponse,
    summary="Update post",
)
async def update_post(
    post_id: UUID,
    data: UpdatePostRequest,
    post_service: PostServiceDep,
    actor_id: CurrentActor,
) -> PostResponse:
    """Replace title, body, and category of the actor's own post."""
    post = await post_service.update_post(
        post_id=post_id,
        actor_id=actor_id,
        title=data.title,
        body=data.body,
        category=data.category,
    )
    return PostResponse.from_post(post)


@router.delete(
    "/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete post",
)
async def delete_post(
    post_id: UUID,
    post_service: PostServiceDep,
    actor_id: CurrentActor,
) -> None:
    """Soft delete the actor's own post."""
    await post_service.delete_post(post_id, actor_id)


@router.post(
    "/{post_id}/reactions",
    response_model=PostReactionResponse,
    summary="Like or dislike post",
)
async def react_to_post(
    post_id: UUID,
    data: ReactToPostRequest,
    post_service: PostServiceDep,
    actor_id: CurrentActor,
) -> PostReactionResponse:
    """Cast a reaction. Repeating the current reaction cancels it."""
    result = await post_service.react_to_post(post_id, actor_id, data.reaction_kind)
    return PostReactionResponse(
        like_count=result.like_count,
        dislike_count=result.dislike_count,
        reaction_state=result.state,
    )
