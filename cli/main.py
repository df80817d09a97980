"""Premium Reader CLI: entry-point for the extraction and enhancement pipeline.

Usage:
    reader --help

Commands:
    fetch   → fetch a URL and print the extracted article
    parse   → parse pasted content from a file (or stdin) and print it
    read    → fetch or parse, then enhance and print the outlined article
    serve   → run the HTTP API with uvicorn
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer

from backend.config import configure_logging, settings
from backend.scraper.models import ExtractedArticle, FetchFailure, ParseFailure

from cli.rendering import render_session, render_summary

app = typer.Typer(
    name="reader",
    help="Premium Reader CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level."),
) -> None:
    """Extract articles and enhance them with key insights."""
    configure_logging(log_level.upper())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _fail(tag: str, outcome: FetchFailure | ParseFailure) -> NoReturn:
    typer.echo(f"[{tag}] Failed ({outcome.code}): {outcome.message}", err=True)
    if outcome.suggestion:
        typer.echo(f"[{tag}] {outcome.suggestion}", err=True)
    raise typer.Exit(1)


def _load_article(url: Optional[str], file: Optional[str]) -> ExtractedArticle:
    """Fetch *url* or parse *file*; exactly one must be given."""
    if bool(url) == bool(file):
        typer.echo("[read] Pass exactly one of --url or --file.", err=True)
        raise typer.Exit(2)

    if url:
        from backend.scraper.pipeline import fetch_and_extract

        outcome = asyncio.run(fetch_and_extract(url))
        if isinstance(outcome, FetchFailure):
            _fail("read", outcome)
        return outcome.article

    from backend.scraper.paste import parse_pasted_content

    parsed = parse_pasted_content(_read_source(file))
    if isinstance(parsed, ParseFailure):
        _fail("read", parsed)
    return parsed.article


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("fetch")
def fetch(
    url: str = typer.Option(..., help="URL of the article to fetch."),
) -> None:
    """Fetch a URL and print the extracted paragraphs."""
    from backend.scraper.pipeline import fetch_and_extract

    typer.echo(f"[fetch] Fetching {url!r} …")
    outcome = asyncio.run(fetch_and_extract(url))
    if isinstance(outcome, FetchFailure):
        _fail("fetch", outcome)

    for line in render_summary(outcome.article, "fetch"):
        typer.echo(line)
    if outcome.canonical_url:
        typer.echo(f"[fetch] Canon  : {outcome.canonical_url}")
    typer.echo("")
    typer.echo("\n\n".join(outcome.article.paragraphs))


@app.command("parse")
def parse(
    file: str = typer.Option("-", help="File with pasted content ('-' for stdin)."),
) -> None:
    """Parse pasted text, markdown or HTML and print the paragraphs."""
    from backend.scraper.paste import parse_pasted_content

    outcome = parse_pasted_content(_read_source(file))
    if isinstance(outcome, ParseFailure):
        if outcome.detected_url:
            typer.echo(f"[parse] Detected URL: {outcome.detected_url}", err=True)
        _fail("parse", outcome)

    for line in render_summary(outcome.article, "parse"):
        typer.echo(line)
    typer.echo("")
    typer.echo("\n\n".join(outcome.article.paragraphs))


@app.command("read")
def read(
    url: Optional[str] = typer.Option(None, help="URL of the article to read."),
    file: Optional[str] = typer.Option(None, help="File with pasted content ('-' for stdin)."),
) -> None:
    """Load an article, enhance it, and print it as an outline with insights."""
    from backend.llm import get_generator
    from backend.reader.session import ReadingSession, enhance_article

    article = _load_article(url, file)
    typer.echo(f"[read] Enhancing {len(article.paragraphs)} paragraphs …")

    session = asyncio.run(
        enhance_article(ReadingSession(), article.paragraphs, article.title, get_generator())
    )
    typer.echo("")
    typer.echo(render_session(session, article.title))


@app.command("serve")
def serve(
    host: str = typer.Option(settings.host, help="Bind address."),
    port: int = typer.Option(settings.port, help="Bind port."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    typer.echo(f"[serve] API on http://{host}:{port}")
    uvicorn.run("backend.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
