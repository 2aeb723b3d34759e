"""Campus board API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from campusboard.comments.router import router as comments_router
from campusboard.comments.service import CommentService
from campusboard.comments.tree import CommentTreeAssembler
from campusboard.config import Settings, get_settings
from campusboard.core.context import get_request_id
from campusboard.core.exceptions import CommunityError
from campusboard.core.logging import configure_structlog, get_logger
from campusboard.core.middleware import RequestContextMiddleware
from campusboard.core.redis import init_redis, shutdown_redis
from campusboard.health import router as health_router
from campusboard.posts.router import router as posts_router
from campusboard.posts.service import PostService
from campusboard.reactions.engine import ReactionEngine
from campusboard.store.base import EntityStore
from campusboard.store.memory import InMemoryEntityStore
from campusboard.users.directory import InMemoryUserDirectory, UserDirectory


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


# Domain error code -> HTTP status. Unknown codes are internal errors.
ERROR_STATUS_MAP: dict[str, int] = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "post_not_found": status.HTTP_404_NOT_FOUND,
    "comment_not_found": status.HTTP_404_NOT_FOUND,
    "user_not_found": status.HTTP_404_NOT_FOUND,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "department_not_verified": status.HTTP_403_FORBIDDEN,
    "invalid_request": status.HTTP_400_BAD_REQUEST,
}


def wire_services(
    app: FastAPI,
    settings: Settings,
    store: EntityStore,
    users: UserDirectory,
    redis=None,
) -> None:
    """Build the board services and publish them on ``app.state``."""
    reactions = ReactionEngine(
        store=store,
        users=users,
        max_retries=settings.reaction_max_retries,
        backoff_ms=settings.reaction_retry_backoff_ms,
    )
    tree = CommentTreeAssembler(
        store=store,
        reactions=reactions,
        redis=redis,
        cache_ttl_seconds=settings.comment_tree_cache_ttl_seconds,
    )

    app.state.store = store
    app.state.users = users
    app.state.redis = redis
    app.state.reactions = reactions
    app.state.post_service = PostService(
        store=store,
        users=users,
        reactions=reactions,
        default_page_size=settings.board_default_page_size,
        max_page_size=settings.board_max_page_size,
    )
    app.state.comment_service = CommentService(
        store=store,
        users=users,
        reactions=reactions,
        tree=tree,
    )
    logger.info(
        "board_services_initialized",
        store=type(store).__name__,
        users=type(users).__name__,
        cache_enabled=redis is not None,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        storage_backend=settings.storage_backend,
    )

    # Redis is non-critical - the comment tree is served uncached without it
    redis_client = None
    if settings.redis_enabled:
        try:
            redis_client = await init_redis()
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running without comment tree cache",
            )

    if settings.uses_cassandra:
        # Imported lazily so the in-memory backend never loads the driver
        from campusboard.core.database import init_async_cassandra
        from campusboard.store.cassandra import CassandraEntityStore
        from campusboard.users.directory import CassandraUserDirectory

        session = await init_async_cassandra()
        store: EntityStore = CassandraEntityStore(session, settings.cassandra_keyspace)
        users: UserDirectory = CassandraUserDirectory(
            session, settings.cassandra_keyspace
        )
    else:
        store = InMemoryEntityStore()
        users = getattr(app.state, "users", None) or InMemoryUserDirectory()

    wire_services(app, settings, store, users, redis=redis_client)

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    if settings.uses_cassandra:
        from campusboard.core.database import shutdown_async_cassandra

        await shutdown_async_cassandra()


def create_app(users: UserDirectory | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        users: User directory to use with the in-memory backend. Defaults to
            an empty in-process directory.
    """
    settings = get_settings()

    # Never expose stack traces; handlers below log details and return safe bodies
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Campus community board - API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )
    if users is not None:
        app.state.users = users

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(CommunityError)
    async def community_exception_handler(
        request: Request, exc: CommunityError
    ) -> ORJSONResponse:
        """Map domain errors to status codes."""
        request_id = _get_request_id_safe(request)
        status_code = ERROR_STATUS_MAP.get(
            exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )

        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "community_error",
                code=exc.code,
                error_message=exc.message,
                path=request.url.path,
                method=request.method,
            )
            message = "An unexpected error occurred. Please try again later."
        else:
            logger.warning(
                "community_error",
                code=exc.code,
                status_code=status_code,
                path=request.url.path,
                method=request.method,
            )
            message = exc.message

        return ORJSONResponse(
            status_code=status_code,
            content={
                "error": True,
                "code": exc.code
                if status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "internal_error",
                "message": message,
                "status_code": status_code,
                "request_id": request_id,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions."""
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    app.include_router(health_router)
    app.include_router(posts_router)
    app.include_router(comments_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Campus board API",
            "version": settings.app_version,
        }

    return app


app = create_app()
