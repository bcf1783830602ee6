"""Query and display the entries held by the PostgreSQL cache backend."""
import os
import sys
import time
import psycopg2
from dotenv import load_dotenv
from repo_stats.config import get_connection_string
from repo_stats.domain.models import CacheEntry

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


def print_section(title: str):
    """Print a section header."""
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


def describe_entry(payload: bytes, now_ms: int, ttl_ms: int) -> tuple:
    """Return (age in seconds, freshness label) for a stored payload."""
    try:
        entry = CacheEntry.from_bytes(payload)
    except (TypeError, ValueError):
        return None, "corrupt"
    age_seconds = (now_ms - entry.timestamp) / 1000
    return age_seconds, "fresh" if entry.is_valid(now_ms, ttl_ms) else "stale"


def display_cache(prefix: str = ""):
    """Display every cache entry, optionally filtered by key prefix."""
    ttl_seconds = float(os.getenv("STATS_CACHE_TTL_SECONDS", "600"))
    ttl_ms = int(ttl_seconds * 1000)
    now_ms = int(time.time() * 1000)

    conn = psycopg2.connect(get_connection_string())
    cursor = conn.cursor()

    print_section("Overall Statistics")
    cursor.execute("SELECT COUNT(*), COALESCE(SUM(LENGTH(payload)), 0) FROM cache_entries")
    total, total_bytes = cursor.fetchone()
    print(f"Total entries: {total:,}")
    print(f"Total payload size: {total_bytes:,} bytes")
    print(f"TTL: {ttl_seconds:.0f} seconds")

    print_section("Entries")
    cursor.execute(
        """
        SELECT cache_key, payload, updated_at
        FROM cache_entries
        WHERE cache_key LIKE %s
        ORDER BY cache_key
        """,
        (f"{prefix}%",)
    )

    print(f"{'Key':<45} {'Age (s)':>10} {'State':>8}")
    print("-" * 70)
    counts = {"fresh": 0, "stale": 0, "corrupt": 0}
    for cache_key, payload, _updated_at in cursor:
        age, state = describe_entry(bytes(payload), now_ms, ttl_ms)
        counts[state] += 1
        age_text = f"{age:,.0f}" if age is not None else "-"
        print(f"{cache_key:<45} {age_text:>10} {state:>8}")

    print_section("Freshness")
    for state, count in counts.items():
        print(f"{state:<10} {count:>10,}")

    cursor.close()
    conn.close()


if __name__ == "__main__":
    try:
        display_cache(sys.argv[1] if len(sys.argv) > 1 else "")
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)
