"""Warm the cache with core framework documents."""

import asyncio
import logging
from typing import Iterable, List, Optional

from client.docs_client import DocsClient
from sources.loader import load_prefetch_config

logger = logging.getLogger(__name__)


async def prefetch_core_frameworks(client: DocsClient,
                                   frameworks: Optional[Iterable[str]] = None) -> List[str]:
    """Fetch framework documents concurrently through the cache.

    Args:
        client: Cache-through documentation client
        frameworks: Names to fetch; defaults to the prefetch configuration

    Returns:
        Names of the frameworks that are now cached
    """
    if frameworks is None:
        config = load_prefetch_config()
        if not config.enabled:
            logger.info("Framework prefetch disabled by configuration")
            return []
        frameworks = config.frameworks

    names = list(frameworks)
    results = await asyncio.gather(
        *(client.get_framework(name) for name in names),
        return_exceptions=True
    )

    succeeded = []
    for name, result in zip(names, results):
        if isinstance(result, Exception):
            logger.warning(f"Failed to prefetch {name}: {result}")
        else:
            succeeded.append(name)

    logger.info(f"Prefetched {len(succeeded)}/{len(names)} frameworks")
    return succeeded
