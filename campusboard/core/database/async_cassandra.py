"""Async Cassandra database connection using cassandra-asyncio-driver.

Provides:
- Connection lifecycle for the cluster and its session
- Session with aexecute() for non-blocking queries
- Keyspace and board table initialization

Only imported when ``storage_backend`` is ``cassandra``.
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from campusboard.comments.models import COMMENTS_TABLES_CQL
from campusboard.config import get_settings
from campusboard.posts.models import POSTS_TABLES_CQL
from campusboard.users.models import USERS_TABLES_CQL


logger = structlog.get_logger(__name__)


class AsyncCassandraConnection:
    """Async Cassandra connection manager.

    Connecting is synchronous; queries go through ``session.aexecute()``.
    """

    _cluster: Cluster | None = None
    _session = None

    @classmethod
    def connect(cls):
        """Establish connection to the Cassandra cluster.

        Raises:
            ConnectionError: If connection fails
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
            cls._session.default_timeout = settings.cassandra_request_timeout
            logger.info(
                "cassandra_connected",
                hosts=settings.cassandra_hosts,
                port=settings.cassandra_port,
                protocol_version=settings.cassandra_protocol_version,
            )
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close connection to Cassandra."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
            logger.info("cassandra_session_closed")

        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_cluster_closed")


async def init_async_keyspace(session, keyspace: str) -> None:
    """Create keyspace if not exists."""
    settings = get_settings()

    if settings.is_production:
        replication = """
            'class': 'NetworkTopologyStrategy',
            'datacenter1': 3
        """
    else:
        replication = """
            'class': 'SimpleStrategy',
            'replication_factor': 1
        """

    cql = f"""
        CREATE KEYSPACE IF NOT EXISTS {keyspace}
        WITH replication = {{{replication}}}
        AND durable_writes = true
    """

    await session.aexecute(cql)
    logger.info("keyspace_created", keyspace=keyspace)


async def init_async_tables(session, keyspace: str) -> None:
    """Create user, post, and comment tables."""
    for cql_template in USERS_TABLES_CQL + POSTS_TABLES_CQL + COMMENTS_TABLES_CQL:
        await session.aexecute(cql_template.format(keyspace=keyspace))
    logger.info("board_tables_created", keyspace=keyspace)


async def init_async_cassandra():
    """Connect and create keyspace and tables if they don't exist.

    Returns:
        Configured Cassandra session with aexecute() support
    """
    settings = get_settings()

    session = AsyncCassandraConnection.connect()
    await init_async_keyspace(session, settings.cassandra_keyspace)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_async_tables(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    """Shutdown Cassandra connection."""
    AsyncCassandraConnection.disconnect()
