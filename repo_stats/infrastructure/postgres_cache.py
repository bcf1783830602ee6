"""PostgreSQL cache backend for sharing entries between hosts."""
import logging
from typing import Optional
import psycopg2
from repo_stats.domain.cache_interface import ICacheBackend


logger = logging.getLogger(__name__)


class PostgresCacheBackend(ICacheBackend):
    """PostgreSQL implementation of cache storage.

    One row per cache key in ``cache_entries`` (see ``setup_postgres.py``).
    Writes are upserts, so an entry is always replaced as a whole.
    """

    def __init__(self, connection_string: str):
        """Initialize PostgreSQL connection.

        Args:
            connection_string: PostgreSQL connection string
        """
        self._connection_string = connection_string
        self._conn = psycopg2.connect(connection_string)
        self._conn.autocommit = False
        logger.info("Connected to PostgreSQL cache database")

    def read(self, key: str) -> Optional[bytes]:
        cursor = self._conn.cursor()
        try:
            cursor.execute("SELECT payload FROM cache_entries WHERE cache_key = %s", (key,))
            row = cursor.fetchone()
            self._conn.commit()
            return bytes(row[0]) if row else None
        except Exception:
            self._conn.rollback()
            raise
        finally:
            cursor.close()

    def write(self, key: str, payload: bytes) -> None:
        """Insert or replace the entry for ``key``.

        Uses PostgreSQL's ON CONFLICT clause so concurrent writers simply
        overwrite each other (last write wins).
        """
        cursor = self._conn.cursor()
        try:
            cursor.execute(
                """
                INSERT INTO cache_entries (cache_key, payload, updated_at)
                VALUES (%s, %s, CURRENT_TIMESTAMP)
                ON CONFLICT (cache_key)
                DO UPDATE SET
                    payload = EXCLUDED.payload,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, psycopg2.Binary(payload))
            )
            self._conn.commit()
        except Exception as e:
            self._conn.rollback()
            logger.error(f"Error saving cache entry {key}: {e}")
            raise
        finally:
            cursor.close()

    def delete(self, key: str) -> None:
        cursor = self._conn.cursor()
        try:
            cursor.execute("DELETE FROM cache_entries WHERE cache_key = %s", (key,))
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise
        finally:
            cursor.close()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            logger.info("Closed PostgreSQL connection")
