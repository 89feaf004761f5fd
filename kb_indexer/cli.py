"""Command line interface for knowledge-base source indexing."""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Tuple

import click

logger = logging.getLogger(__name__)

SOURCE_TYPES = ["trending", "tool", "suggestion", "archive"]


def _make_client(settings):
    from kb_indexer.clients.rag import RagClient

    return RagClient(settings=settings)


def _parse_meta(pairs: Tuple[str, ...]) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--meta")
        metadata[key.strip()] = value.strip()
    return metadata


def _load_sources(path: str) -> List[Dict[str, Any]]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("sources", [])
    if not isinstance(data, list):
        raise click.BadParameter("Expected a JSON list of sources", param_hint="FILE")
    return data


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Knowledge-base source indexing CLI.

    Tracks which newsletter sources are already in the knowledge base and
    indexes new ones without duplicate work.
    """
    from kb_indexer.models.settings import Settings

    ctx.ensure_object(dict)
    settings = Settings(debug=debug) if debug else Settings()
    ctx.obj["debug"] = settings.debug
    ctx.obj["settings"] = settings
    log_level = logging.DEBUG if settings.debug else settings.log_level
    logging.basicConfig(level=log_level, force=True)
    logger.debug("Debug mode enabled")


@cli.command("clean-url")
@click.argument("raw")
def clean_url(raw: str) -> None:
    """Show the valid URLs contained in a raw source string."""
    from kb_indexer.core.urls import extract_valid_urls, get_clean_url

    urls, _ = extract_valid_urls(raw)
    click.echo(f"Primary: {get_clean_url(raw)}")
    for url in urls:
        click.echo(f"  - {url}")
    if not urls:
        click.echo("No valid URLs found")
        sys.exit(1)


@cli.command()
@click.pass_context
def indexed(ctx: click.Context) -> None:
    """List the URLs already indexed in the knowledge base."""
    from kb_indexer.core.tracker import IndexStateTracker

    async def _indexed():
        async with _make_client(ctx.obj["settings"]) as client:
            tracker = IndexStateTracker(client)
            error = await tracker.refresh()
            return tracker, error

    tracker, error = asyncio.run(_indexed())
    if error:
        logger.error(f"❌ Could not load indexed URLs: {error}")
        sys.exit(1)
    click.echo(f"📚 {len(tracker.indexed_urls)} indexed URL(s)")
    for url in sorted(tracker.indexed_urls):
        click.echo(f"  - {url}")


@cli.command()
@click.argument("url")
@click.pass_context
def status(ctx: click.Context, url: str) -> None:
    """Check whether a source URL is already indexed."""
    from kb_indexer.core.tracker import IndexStateTracker

    async def _status():
        async with _make_client(ctx.obj["settings"]) as client:
            tracker = IndexStateTracker(client)
            error = await tracker.refresh()
            if error:
                logger.warning(f"⚠️  Using an empty snapshot: {error}")
            if tracker.is_indexed(url):
                click.echo(f"✅ Indexed: {url}")
            else:
                click.echo(f"❌ Not indexed: {url}")

    asyncio.run(_status())


@cli.command()
@click.argument("url")
@click.option("--title", default="", help="Title for the indexed document")
@click.option(
    "--source-type",
    type=click.Choice(SOURCE_TYPES),
    default=None,
    help="Source category (defaults to the configured default)",
)
@click.option("--meta", multiple=True, help="Metadata entry as key=value")
@click.pass_context
def index(
    ctx: click.Context, url: str, title: str, source_type: str, meta: Tuple[str, ...]
) -> None:
    """Index a single source, which may contain several URLs."""
    from kb_indexer.core.indexer import SourceIndexer
    from kb_indexer.models.indexing import SourceRequest

    settings = ctx.obj["settings"]
    request = SourceRequest(
        url=url,
        title=title,
        source_type=source_type or settings.default_source_type,
        metadata=_parse_meta(meta),
    )

    async def _index():
        async with _make_client(settings) as client:
            indexer = SourceIndexer(client)
            refresh_error = await indexer.refresh()
            if refresh_error:
                logger.warning(f"⚠️  Indexed URL list unavailable: {refresh_error}")
            return await indexer.index_source(request)

    result = asyncio.run(_index())
    if result.success:
        label = "Already indexed" if result.was_already_indexed else "Indexed"
        click.echo(f"✅ {label}: {result.url}")
        if result.error:
            click.echo(f"⚠️  {result.error}")
    else:
        click.echo(f"❌ Failed: {result.url} - {result.error}")
        sys.exit(1)


@cli.command("index-batch")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def index_batch(ctx: click.Context, file: str) -> None:
    """Index every source listed in a JSON file."""
    from pydantic import ValidationError

    from kb_indexer.core.indexer import SourceIndexer
    from kb_indexer.models.indexing import BatchProgress, SourceRequest

    settings = ctx.obj["settings"]
    try:
        requests = [
            SourceRequest.model_validate(
                {"sourceType": settings.default_source_type, **source}
            )
            for source in _load_sources(file)
        ]
    except (TypeError, ValueError, ValidationError) as e:
        logger.error(f"❌ Invalid sources file: {e}")
        sys.exit(1)

    def _report(progress: BatchProgress) -> None:
        if progress.is_running and progress.completed:
            logger.info(
                f"   {progress.completed} processed "
                f"({progress.indexed} new, {progress.already_indexed} existing, "
                f"{progress.failed} failed)"
            )

    async def _index_batch():
        async with _make_client(settings) as client:
            indexer = SourceIndexer(client)
            refresh_error = await indexer.refresh()
            if refresh_error:
                logger.warning(f"⚠️  Indexed URL list unavailable: {refresh_error}")
            results = await indexer.index_sources_batch(requests, on_progress=_report)
            return results, indexer.batch_progress

    results, progress = asyncio.run(_index_batch())

    for result in results:
        if result.success:
            icon = "♻️ " if result.was_already_indexed else "✅"
            click.echo(f"{icon} {result.url}")
        else:
            click.echo(f"❌ {result.url} - {result.error}")

    failed = sum(1 for r in results if not r.success)
    if progress is not None:
        click.echo(
            f"\n📊 {progress.total} source(s): {progress.indexed} indexed, "
            f"{progress.already_indexed} already indexed, {progress.failed} failed"
        )
    if failed:
        sys.exit(1)


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Display current configuration."""
    settings = ctx.obj["settings"]
    click.echo("\n📋 Knowledge Base Indexer Configuration\n")
    click.echo(f"API URL: {settings.rag_api_url}")
    click.echo(f"Request Timeout: {settings.rag_request_timeout or 'none'}")
    click.echo(f"Default Source Type: {settings.default_source_type.value}")
    click.echo(f"Debug Mode: {settings.debug}")
    click.echo(f"Log Level: {settings.log_level}")


if __name__ == "__main__":
    cli()
