"""Command-line interface for knowledge-search."""

import argparse
import asyncio
import logging
import sys

import structlog
import uvicorn

from knowledge_search.config import get_settings
from knowledge_search.indexing import get_index_manager
from knowledge_search.ingestion import ConfigError


def configure_logging(verbose: bool = False):
    """Configure structured console logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def _load_manager():
    manager = get_index_manager()
    asyncio.run(manager.initialize())
    return manager


def cmd_serve(args):
    """Start the API server."""
    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port

    logger.info("starting_server", host=host, port=port)

    uvicorn.run(
        "knowledge_search.api.app:app",
        host=host,
        port=port,
        reload=args.reload,
    )


def cmd_build(args):
    """Crawl all enabled sources and rebuild the index."""
    manager = _load_manager()
    index = asyncio.run(manager.build_index())

    for s in manager.orchestrator.last_stats:
        logger.info(
            "source_summary",
            source=s.source_id,
            documents=s.documents,
            reused=s.reused,
            skipped=s.skipped,
            failed=s.failed,
            error=s.error,
            duration=f"{s.duration_seconds:.2f}s",
        )
    logger.info("index_built", total_pages=index.total_pages, path=str(manager.store.index_path))


def cmd_search(args):
    """Search the index from the command line."""
    manager = _load_manager()
    results = manager.search(args.query, fuzzy=not args.no_fuzzy)

    print(f'\n Results for "{args.query}":\n')
    if not results:
        print(" No results found.\n")
        return

    for i, result in enumerate(results[: args.limit], 1):
        print(f"{i}. {result.title} ({result.page_name})")
        print(f"    {result.source_name}")
        print(f"    {result.url}")
        print(f"    Score: {result.score} ({result.match_type})")
        snippet = result.snippet
        if snippet.text:
            start = snippet.highlight_start
            end = start + snippet.highlight_length
            text = (
                snippet.text[:start]
                + "\033[1;33m"
                + snippet.text[start:end]
                + "\033[0m"
                + snippet.text[end:]
            )
            print(f"   {text}")
        print()
    print(f" {len(results)} results in total.\n")


def cmd_info(args):
    """Show index information."""
    manager = _load_manager()
    info = manager.get_index_info()

    print("\n Index information:")
    print(f" Total pages: {info['total_pages']}")
    print(f" Last updated: {info['last_updated'] or 'never'}")
    print(f" Sources: {len(info['sources'])}\n")
    for s in info["sources"]:
        kind = "local" if s.is_local else s.type
        print(f"   - {s.name} [{kind}]: {s.page_count} pages")

    metadata = manager.store.read_metadata()
    if metadata:
        print(f"\n Index size: {metadata['size_kb']} KB (saved {metadata['last_saved']})")
    print()


def cmd_update_file(args):
    """Re-index a single local file."""
    manager = _load_manager()
    ok = asyncio.run(manager.update_local_file(args.path))
    if not ok:
        logger.error("update_failed", path=args.path)
        sys.exit(1)
    logger.info("file_updated", path=args.path, total_pages=len(manager.index.pages))


def cmd_remove_file(args):
    """Remove a single local file from the index."""
    manager = _load_manager()
    ok = asyncio.run(manager.remove_local_file(args.path))
    if not ok:
        logger.error("file_not_in_index", path=args.path)
        sys.exit(1)
    logger.info("file_removed", path=args.path, total_pages=len(manager.index.pages))


def cmd_cache(args):
    """Cache pages of cache_offline sources for offline reading."""
    manager = _load_manager()
    result = asyncio.run(manager.cache_sources(args.sources or None))
    if result.rejected:
        logger.error("cache_rejected", reason=result.message)
        sys.exit(1)

    for report in result.reports:
        logger.info(
            "source_cached",
            source=report.source_id,
            cached=report.cached,
            failed=report.failed,
            size_mb=report.size_mb,
        )
    logger.info("cache_complete", message=result.message)


def cmd_cache_status(args):
    """Show offline cache summaries."""
    manager = get_index_manager()
    summaries = manager.get_cache_status()
    if not summaries:
        print("\n No cached sources.\n")
        return

    print()
    for s in summaries:
        print(
            f" {s.get('source_name', s.get('source_id'))}: "
            f"{s.get('cached_pages', 0)}/{s.get('total_pages', 0)} pages, "
            f"{s.get('size_mb', 0)} MB (cached {s.get('cached_at', '?')})"
        )
    print()


def main():
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="knowledge-search",
        description="Search across crawled documentation sites and local notes",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", type=str, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    # build command
    build_parser = subparsers.add_parser("build", help="Crawl all sources and rebuild the index")
    build_parser.set_defaults(func=cmd_build)

    # search command
    search_parser = subparsers.add_parser("search", help="Search the index")
    search_parser.add_argument("query", nargs="+", help="Search query")
    search_parser.add_argument("--limit", "-k", type=int, default=10, help="Number of results")
    search_parser.add_argument("--no-fuzzy", action="store_true", help="Disable fuzzy fallback")
    search_parser.set_defaults(func=cmd_search)

    # info command
    info_parser = subparsers.add_parser("info", help="Show index information")
    info_parser.set_defaults(func=cmd_info)

    # update-file / remove-file commands
    update_parser = subparsers.add_parser("update-file", help="Re-index one local file")
    update_parser.add_argument("path", help="Path of the file")
    update_parser.set_defaults(func=cmd_update_file)

    remove_parser = subparsers.add_parser("remove-file", help="Remove one local file from the index")
    remove_parser.add_argument("path", help="Path of the file")
    remove_parser.set_defaults(func=cmd_remove_file)

    # cache commands
    cache_parser = subparsers.add_parser("cache", help="Cache cache_offline sources locally")
    cache_parser.add_argument("sources", nargs="*", help="Source ids (default: all cacheable)")
    cache_parser.set_defaults(func=cmd_cache)

    cache_status_parser = subparsers.add_parser("cache-status", help="Show offline cache status")
    cache_status_parser.set_defaults(func=cmd_cache_status)

    args = parser.parse_args()
    if args.command == "search":
        args.query = " ".join(args.query)

    configure_logging(args.verbose)
    try:
        args.func(args)
    except ConfigError as e:
        logger.error("configuration_error", error=str(e))
        sys.exit(2)


if __name__ == "__main__":
    main()
