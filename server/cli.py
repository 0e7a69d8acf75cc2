"""Command line interface for DevDocs Cache.

Every command prints a JSON document on stdout; logs go to stderr.
"""

import sys
import json
import asyncio
import logging
import argparse
from pathlib import Path
from typing import Any, List, Optional

from config.settings import Settings
from client.errors import DevDocsError, InvalidRequestError
from observability.logging import setup_logging
from pipelines.prefetch import prefetch_core_frameworks
from .session import DocsSession
from . import search

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devdocs-cache",
        description="Cache and search Apple developer documentation locally"
    )
    parser.add_argument("--cache-dir", help="Cache directory (overrides DEVDOCS_CACHE_DIR)")
    parser.add_argument("--log-level", help="Log level (overrides DEVDOCS_LOG_LEVEL)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("technologies", help="List available technologies")

    search_parser = commands.add_parser("search", help="Search symbols of a technology")
    search_parser.add_argument("technology", help="Technology identifier, path or title")
    search_parser.add_argument("query", help="Keywords or a wildcard pattern such as Grid*")
    search_parser.add_argument("--scope", choices=search.SEARCH_SCOPES, default="technology")
    search_parser.add_argument("--max-results", type=positive_int, default=20)
    search_parser.add_argument("--platform", help="Only symbols available on this platform")
    search_parser.add_argument("--symbol-type", help="Only symbols of this kind")
    search_parser.add_argument("--wait", action="store_true",
                               help="Wait for a background crawl started by the search")

    crawl_parser = commands.add_parser("crawl", help="Download every reachable symbol")
    crawl_parser.add_argument("technology")

    explain_parser = commands.add_parser("explain", help="Explain how a symbol scores for a query")
    explain_parser.add_argument("technology")
    explain_parser.add_argument("query")
    explain_parser.add_argument("symbol")

    status_parser = commands.add_parser("status", help="Show index, cache and crawl status")
    status_parser.add_argument("technology", nargs="?")

    refresh_parser = commands.add_parser(
        "refresh", help="Refetch a framework document, or the technology catalog when omitted"
    )
    refresh_parser.add_argument("technology", nargs="?")

    semantic_parser = commands.add_parser("semantic", help="Re-rank keyword matches by token similarity")
    semantic_parser.add_argument("technology")
    semantic_parser.add_argument("query")
    semantic_parser.add_argument("--scope", choices=search.SEARCH_SCOPES, default="technology")
    semantic_parser.add_argument("--max-results", type=positive_int, default=10)

    multi_parser = commands.add_parser("multi-search", help="Search several framework documents at once")
    multi_parser.add_argument("query")
    multi_parser.add_argument("frameworks", nargs="+")
    multi_parser.add_argument("--max-results", type=positive_int, default=10)

    diff_parser = commands.add_parser("diff", help="List cached files written since a point in time")
    diff_parser.add_argument("--since", help="ISO-8601 date or timestamp (default: 24 hours ago)")

    commands.add_parser("bundles", help="List cache bundles")

    export_parser = commands.add_parser("export-bundle", help="Copy matching cached files into a bundle")
    export_parser.add_argument("name")
    export_parser.add_argument("filters", nargs="+", help="Substrings of cache file names")

    import_parser = commands.add_parser("import-bundle", help="Restore a bundle into the cache")
    import_parser.add_argument("name")

    commands.add_parser("health", help="Check that the documentation API is reachable")
    commands.add_parser("prefetch", help="Warm the cache with core frameworks")
    commands.add_parser("clear-cache", help="Delete all cached documents")

    return parser


async def run_command(args: argparse.Namespace, session: DocsSession) -> Any:
    """Execute one parsed command against a session and return its JSON payload."""
    command = args.command

    if command == "technologies":
        technologies = await session.client.get_technologies()
        return sorted(
            ({'identifier': tech.identifier, 'title': tech.title} for tech in technologies.values() if tech.title),
            key=lambda item: item['title'].lower()
        )

    if command == "prefetch":
        return {'prefetched': await prefetch_core_frameworks(session.client)}

    if command == "clear-cache":
        return {'files_removed': await search.clear_cache(session)}

    if command == "multi-search":
        outcome = await search.search_multi_framework(
            session, args.query, args.frameworks, max_results=args.max_results
        )
        return outcome.to_dict()

    if command == "diff":
        return search.cache_diff(session, args.since)

    if command == "bundles":
        return {'bundles': search.list_bundles(session)}

    if command == "export-bundle":
        return search.export_bundle(session, args.name, args.filters).to_dict()

    if command == "import-bundle":
        return {'name': args.name, 'files': search.import_bundle(session, args.name)}

    if command == "health":
        return await search.api_health(session)

    technology_name = getattr(args, 'technology', None)
    if command == "refresh" and not technology_name:
        technologies = await search.refresh_technologies(session)
        return {'technologies': len(technologies)}

    if technology_name:
        await search.choose_technology(session, technology_name)

    if command == "search":
        outcome = await search.search_symbols(
            session,
            args.query,
            max_results=args.max_results,
            platform=args.platform,
            symbol_type=args.symbol_type,
            scope=args.scope
        )
        payload = outcome.to_dict()
        if args.wait and outcome.crawl_started:
            stats = await session.wait_for_background_crawl()
            payload['crawl'] = stats.to_dict() if stats else None
        return payload

    if command == "crawl":
        session.start_background_crawl()
        stats = await session.wait_for_background_crawl()
        return {
            'crawl': stats.to_dict() if stats else None,
            'indexed_symbols': session.local_index.get_symbol_count()
        }

    if command == "semantic":
        results = search.semantic_search(session, args.query, max_results=args.max_results, scope=args.scope)
        return {
            'query': args.query,
            'scope': args.scope,
            'matches': len(results),
            'results': [entry.to_dict() for entry in results]
        }

    if command == "explain":
        explanation = search.explain_search(session, args.query, args.symbol)
        if explanation is None:
            raise InvalidRequestError(f"Symbol not indexed: {args.symbol}")
        return explanation.to_dict()

    if command == "status":
        return search.index_status(session)

    if command == "refresh":
        document = await search.refresh_framework(session)
        return {'framework': document.title, 'references': len(document.references)}

    raise InvalidRequestError(f"Unknown command: {command}")


async def _run(args: argparse.Namespace, settings: Settings) -> Any:
    session = DocsSession(settings)
    try:
        return await run_command(args, session)
    finally:
        await session.close()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    settings = Settings.from_env()
    if args.cache_dir:
        settings.cache.cache_dir = Path(args.cache_dir)
    setup_logging(level=args.log_level or settings.log_level, use_json=args.json_logs)

    try:
        result = asyncio.run(_run(args, settings))
    except InvalidRequestError as e:
        print(json.dumps({'error': str(e)}, indent=2))
        return 2
    except DevDocsError as e:
        logger.error(f"Command {args.command} failed: {e}")
        print(json.dumps({'error': str(e)}, indent=2))
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
