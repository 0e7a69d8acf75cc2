"""Session telemetry for DevDocs Cache.

Counters live in a private Prometheus registry per session so that several
sessions (and test cases) never share state.
"""

import logging
from typing import Dict, Optional

from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.core import CollectorRegistry

logger = logging.getLogger(__name__)

SEARCH_SCOPES = ("technology", "global")


class SessionTelemetry:
    """Search, indexing, crawl and cache counters for one session."""

    def __init__(self, enabled: bool = False, registry: Optional[CollectorRegistry] = None):
        self.enabled = enabled
        self.registry = registry or CollectorRegistry()

        self.search_requests = Counter(
            'devdocs_search_requests',
            'Total number of symbol searches',
            ['scope'],
            registry=self.registry
        )
        self.search_duration = Histogram(
            'devdocs_search_duration_seconds',
            'Symbol search duration in seconds',
            ['scope'],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=self.registry
        )
        self.index_builds = Counter(
            'devdocs_index_builds',
            'Number of symbol index builds from cache',
            registry=self.registry
        )
        self.background_crawls = Counter(
            'devdocs_background_crawls',
            'Number of background symbol crawls started',
            registry=self.registry
        )
        self.cache_evictions = Counter(
            'devdocs_cache_evictions',
            'Number of cached documents evicted',
            registry=self.registry
        )
        self.crawl_failures = Counter(
            'devdocs_crawl_failures',
            'Identifiers dropped after exhausting retries',
            registry=self.registry
        )

        # Pre-create labelled series so snapshots report zeros
        for scope in SEARCH_SCOPES:
            self.search_requests.labels(scope=scope)
            self.search_duration.labels(scope=scope)

    def record_search(self, duration_seconds: float, scope: str = "technology") -> None:
        """Record a completed search."""
        self.search_requests.labels(scope=scope).inc()
        self.search_duration.labels(scope=scope).observe(duration_seconds)

    def record_index_build(self) -> None:
        self.index_builds.inc()

    def record_background_crawl(self) -> None:
        self.background_crawls.inc()

    def record_cache_eviction(self, count: int = 1) -> None:
        if count > 0:
            self.cache_evictions.inc(count)

    def record_crawl_failure(self, count: int = 1) -> None:
        if count > 0:
            self.crawl_failures.inc(count)

    def _value(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        return self.registry.get_sample_value(name, labels) or 0.0

    def snapshot(self) -> Dict[str, float]:
        """Return current counter values as plain numbers."""
        searches = sum(
            self._value('devdocs_search_requests_total', {'scope': scope})
            for scope in SEARCH_SCOPES
        )
        duration = sum(
            self._value('devdocs_search_duration_seconds_sum', {'scope': scope})
            for scope in SEARCH_SCOPES
        )
        return {
            'enabled': self.enabled,
            'search_requests': int(searches),
            'search_duration_ms': round(duration * 1000, 3),
            'index_builds': int(self._value('devdocs_index_builds_total')),
            'background_crawls': int(self._value('devdocs_background_crawls_total')),
            'cache_evictions': int(self._value('devdocs_cache_evictions_total')),
            'crawl_failures': int(self._value('devdocs_crawl_failures_total')),
        }

    def export(self) -> bytes:
        """Prometheus text exposition of this session's metrics."""
        return generate_latest(self.registry)
