"""Verify that the setup is correct before running the stats client."""
import os
import sys
import psycopg2
from dotenv import load_dotenv
from repo_stats.config import Settings, build_cache_backend, get_connection_string

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


def check_environment_variables():
    """Check required environment variables."""
    print("Checking environment variables...")

    required_vars = ["GITHUB_REPOSITORY"]
    optional_vars = [
        "GITHUB_API_BASE", "STATS_CACHE_BACKEND", "STATS_CACHE_DIR", "STATS_CACHE_TTL_SECONDS",
        "STATS_MAX_RETRIES", "STATS_RETRY_DELAY_SECONDS", "STATS_REQUEST_TIMEOUT_SECONDS",
    ]

    missing = [var for var in required_vars if not os.getenv(var)]
    if missing:
        print(f"❌ Missing required environment variables: {', '.join(missing)}")
        return False

    print("✅ Required environment variables set")

    for var in optional_vars:
        if os.getenv(var):
            print(f"   {var}: {os.getenv(var)}")

    return True


def check_settings():
    """Check that every variable parses."""
    print("\nChecking settings...")

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"❌ Invalid settings: {e}")
        return False

    print(f"✅ Repository: {settings.repository.full_name}")
    print(f"   Cache backend: {settings.cache_backend} (TTL {settings.cache_ttl_seconds:.0f}s)")
    print(f"   Retries: {settings.max_retries} x {settings.retry_delay_seconds}s linear backoff")
    return True


def check_cache_backend():
    """Round-trip a probe entry through the configured backend."""
    print("\nChecking cache backend...")

    try:
        settings = Settings.from_env()
        backend = build_cache_backend(settings)
    except Exception as e:
        print(f"❌ Could not open cache backend: {e}")
        return False

    probe_key = "verify-setup-probe"
    try:
        backend.write(probe_key, b"ok")
        readable = backend.read(probe_key) == b"ok"
        backend.delete(probe_key)
    except Exception as e:
        print(f"❌ Cache backend is not writable: {e}")
        return False
    finally:
        backend.close()

    if not readable:
        print("❌ Cache backend returned a different value than was written")
        return False

    print(f"✅ Cache backend '{settings.cache_backend}' is readable and writable")
    return True


def check_database_schema():
    """Check if the cache table exists (PostgreSQL backend only)."""
    print("\nChecking database schema...")

    if os.getenv("STATS_CACHE_BACKEND", "file").strip().lower() != "postgres":
        print("   Skipped: PostgreSQL backend not selected")
        return True

    try:
        conn = psycopg2.connect(get_connection_string())
        cursor = conn.cursor()

        cursor.execute("""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = 'public' AND table_name = 'cache_entries'
        """)

        if cursor.fetchone():
            cursor.execute("SELECT COUNT(*) FROM cache_entries")
            count = cursor.fetchone()[0]
            print("✅ Database schema exists")
            print(f"   Current cache entry count: {count}")
            result = True
        else:
            print("❌ Database schema not found. Run 'python setup_postgres.py' first.")
            result = False

        cursor.close()
        conn.close()
        return result

    except Exception as e:
        print(f"❌ Failed to check schema: {e}")
        return False


def main():
    """Run all verification checks."""
    print("=" * 60)
    print("Repository Stats - Setup Verification")
    print("=" * 60)

    checks = [
        ("Environment Variables", check_environment_variables),
        ("Settings", check_settings),
        ("Cache Backend", check_cache_backend),
        ("Database Schema", check_database_schema),
    ]

    results = {}
    for name, check_func in checks:
        try:
            results[name] = check_func()
        except Exception as e:
            print(f"❌ {name} check failed with exception: {e}")
            results[name] = False

    print("\n" + "=" * 60)
    print("Verification Summary")
    print("=" * 60)

    for name, passed in results.items():
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"{status}: {name}")

    if all(results.values()):
        print("\n✅ All checks passed! Ready to fetch stats.")
        print("\nNext steps:")
        print("  python fetch_stats.py")
        sys.exit(0)
    else:
        print("\n❌ Some checks failed. Please fix the issues above.")
        print("\nCommon solutions:")
        print("  - Set GITHUB_REPOSITORY: export GITHUB_REPOSITORY=owner/name")
        print("  - Pick a backend: export STATS_CACHE_BACKEND=file")
        print("  - Create schema: python setup_postgres.py")
        sys.exit(1)


if __name__ == "__main__":
    main()
