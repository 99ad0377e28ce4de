"""
Snowflake connections for the videos table.

get_snowflake_connection opens a real connection for one unit of work;
MockSnowflakeConnection keeps rows in memory for local development and
tests. VideoRepository is the only caller of either.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Generator, Optional
from uuid import UUID

from .repositories.videos import SnowflakeConfig, SnowflakeConnection

logger = logging.getLogger(__name__)

APPLICATION_NAME = "tubely"


class SnowflakeConnectionError(Exception):
    """Raised when a Snowflake connection can't be opened."""
    pass


def _load_private_key(key_path: str) -> bytes:
    """Read a PEM private key and return it as unencrypted PKCS8 DER bytes."""
    from cryptography.hazmat.primitives import serialization

    with open(key_path, 'rb') as key_file:
        private_key = serialization.load_pem_private_key(key_file.read(), password=None)

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _connect_params(config: SnowflakeConfig) -> dict[str, Any]:
    """Key-pair auth wins over password auth when both are configured."""
    params: dict[str, Any] = {
        'account': config.account,
        'user': config.user,
        'database': config.database,
        'schema': config.schema,
        'warehouse': config.warehouse,
        'role': config.role,
        'application': APPLICATION_NAME,
    }

    if config.private_key_path:
        params['private_key'] = _load_private_key(config.private_key_path)
    elif config.password:
        params['password'] = config.password
    else:
        raise SnowflakeConnectionError(
            "Either password or private_key_path must be provided"
        )

    return params


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Open a connection, yield it, and close it afterwards.

    Usage:
        with get_snowflake_connection(config) as conn:
            VideoRepository(conn).get_video(video_id)
    """
    try:
        import snowflake.connector
    except ImportError:
        raise ImportError(
            "snowflake-connector-python is required. "
            "Install with: pip install snowflake-connector-python"
        )

    params = _connect_params(config)

    try:
        conn = snowflake.connector.connect(**params)
    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}") from e

    logger.debug(
        "Opened Snowflake connection",
        extra={
            "account": config.account,
            "database": config.database,
            "key_pair_auth": 'private_key' in params,
        }
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
        except Exception as e:
            logger.warning(
                "Error closing Snowflake connection",
                extra={"error": str(e)}
            )


# ---------------------------------------------------------------------------
# Mock Connection for Local Development
# ---------------------------------------------------------------------------

class MockSnowflakeCursor:
    """
    Mock Snowflake cursor for testing.

    Implements just enough of the cursor interface to support
    VideoRepository: INSERT, SELECT by id and UPDATE by id on the
    videos table. Rows are stored as tuples in VIDEO_COLUMNS order.
    """

    def __init__(self, connection: 'MockSnowflakeConnection') -> None:
        self._connection = connection
        self._results: list = []
        self._rowcount: int = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        logger.debug(
            "Mock cursor execute",
            extra={"query": query.strip()[:100]}
        )

        query_upper = query.upper().strip()
        params = params or ()
        videos = self._connection._storage['videos']

        if query_upper.startswith('INSERT INTO VIDEOS'):
            with self._connection._lock:
                videos[str(params[0])] = tuple(params)
            self._rowcount = 1

        elif query_upper.startswith('SELECT') and 'FROM VIDEOS' in query_upper:
            with self._connection._lock:
                row = videos.get(str(params[0]))
            self._results = [row] if row else []

        elif query_upper.startswith('UPDATE VIDEOS'):
            if self._connection.fail_updates:
                raise RuntimeError("Mock Snowflake update failure")

            title, description, thumbnail_url, video_url, updated_at, video_id = params
            with self._connection._lock:
                row = videos.get(str(video_id))
                if row is None:
                    self._rowcount = 0
                else:
                    videos[str(video_id)] = (
                        row[0], row[1], title, description,
                        thumbnail_url, video_url, row[6], updated_at,
                    )
                    self._rowcount = 1

        return self

    def fetchone(self):
        """Fetch one row from results."""
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        """Fetch all rows from results."""
        return self._results

    def close(self) -> None:
        """Close cursor (no-op for mock)."""
        pass

    @property
    def rowcount(self) -> int:
        """Return number of rows affected."""
        return self._rowcount


class MockSnowflakeConnection:
    """
    Mock Snowflake connection for local development.

    Stores data in memory using a simple dictionary structure.
    Set fail_updates to make every UPDATE raise, to exercise the
    persistence failure path.
    """

    def __init__(self) -> None:
        # In-memory storage: {table_name: {id: row_tuple}}
        self._storage: dict[str, dict[str, tuple]] = {
            'videos': {},
        }
        self._lock = threading.Lock()
        self.fail_updates = False

        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        """Create a mock cursor."""
        return MockSnowflakeCursor(self)

    def commit(self) -> None:
        """Commit transaction (no-op for mock, always auto-commits)."""
        logger.debug("Mock connection commit")

    def rollback(self) -> None:
        """Rollback transaction (no-op for mock)."""
        logger.debug("Mock connection rollback")

    def close(self) -> None:
        """Close connection (no-op for mock)."""
        logger.debug("Mock connection close")

    # Helper methods for testing
    def _get_video_row(self, video_id: UUID) -> Optional[tuple]:
        """Get raw video row from mock storage (for test assertions)."""
        return self._storage['videos'].get(str(video_id))

    def _clear(self) -> None:
        """Clear all mock storage (for test cleanup)."""
        for table in self._storage.values():
            table.clear()

