"""Main entry point for the repository stats client.

This script fetches one statistics snapshot using the application service.
Pass ``--refresh`` to bypass and rebuild the cache.
"""
import argparse
import asyncio
import sys
import logging
from dotenv import load_dotenv
from repo_stats.application.formatting import format_date
from repo_stats.application.stats_service import FetchStatus, StatsService
from repo_stats.config import Settings, open_cache_backend
from repo_stats.infrastructure.cache_store import CacheStore
from repo_stats.infrastructure.github_client import GitHubRestClient

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Fetch and print the stats snapshot."""
    parser = argparse.ArgumentParser(description="Fetch GitHub repository statistics.")
    parser.add_argument("--refresh", action="store_true", help="clear cached entries and fetch fresh data")
    args = parser.parse_args()

    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    repo_id = settings.repository

    # Initialize infrastructure components
    cache = CacheStore(open_cache_backend(settings), ttl_seconds=settings.cache_ttl_seconds)
    github_client = GitHubRestClient(
        api_base=settings.api_base,
        retry_policy=settings.retry_policy(),
        timeout_seconds=settings.request_timeout_seconds
    )

    # Initialize application service
    service = StatsService(github_client=github_client, cache=cache)

    try:
        if args.refresh:
            snapshot = await service.refresh(repo_id)
        else:
            snapshot = await service.get_stats(repo_id)
    finally:
        await github_client.close()
        cache.close()

    logger.info("=" * 50)
    logger.info(f"Stats for {repo_id.full_name}:")
    logger.info(f"  Stars: {snapshot.stars}")
    logger.info(f"  Forks: {snapshot.forks}")
    logger.info(f"  Contributors: {snapshot.contributors}")
    logger.info(f"  Releases: {snapshot.releases}")
    logger.info(f"  Version: {snapshot.version}")
    logger.info(f"  Last update: {format_date(snapshot.last_update)}")
    logger.info("=" * 50)

    if service.status is FetchStatus.ERROR:
        logger.error(f"Showing fallback stats: {service.error}. Run again with --refresh to retry.")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
