"""Cache database initialization script.

Creates the table used by the PostgreSQL cache backend.
"""
import sys
import psycopg2
import logging
from dotenv import load_dotenv
from repo_stats.config import get_connection_string

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_schema(conn) -> None:
    """Create database schema.

    Schema design considerations:
    - one row per cache key, e.g. ``github-owner-name-stats``
    - payload holds the serialized ``{data, timestamp}`` entry as bytes;
      freshness is decided by the client from the embedded timestamp
    - updated_at mirrors the last write and is indexed for housekeeping
    """
    cursor = conn.cursor()

    try:
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS cache_entries (
                cache_key VARCHAR(511) PRIMARY KEY,
                payload BYTEA NOT NULL,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Index for finding old entries to purge
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_cache_entries_updated_at
            ON cache_entries(updated_at DESC)
        """)

        conn.commit()
        logger.info("Database schema created successfully")

    except Exception as e:
        conn.rollback()
        logger.error(f"Error creating schema: {e}")
        raise
    finally:
        cursor.close()


def main():
    """Initialize the database."""
    try:
        conn_string = get_connection_string()
        logger.info("Connecting to database...")

        conn = psycopg2.connect(conn_string)
        conn.autocommit = False

        create_schema(conn)

        conn.close()
        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
