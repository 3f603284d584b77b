"""CLI interface using typer."""

import asyncio
import logging
from pathlib import Path

import typer

from .config import settings
from .errors import CrawlError
from .output import OutputFormat, ResultSink, format_for_path, render, write_results

app = typer.Typer(
    name="adoc",
    help="Crawler for Apple developer documentation",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _emit(sink: ResultSink, output: Path | None, output_format: OutputFormat | None):
    results = sink.results
    if output:
        path = write_results(results, output, output_format or format_for_path(output))
        typer.echo(f"Saved {len(results)} result(s) to {path}", err=True)
    else:
        fmt = output_format or OutputFormat.TEXT
        typer.echo(render(results, fmt, preview=fmt is OutputFormat.TEXT))


@app.command()
def crawl(
    input_text: str = typer.Argument(
        ..., metavar="INPUT",
        help="Documentation URL (https://developer.apple.com/documentation/swift) or search keyword",
    ),
    recursive: bool = typer.Option(False, "-r", "--recursive", help="Follow links to related pages"),
    max_depth: int = typer.Option(None, "--max-depth", "-d", min=0, help="Maximum link depth when recursive"),
    concurrency: int = typer.Option(settings.concurrency, "--concurrency", "-c", min=1, help="Concurrent requests"),
    max_retries: int = typer.Option(
        settings.max_attempts, "--max-retries", "-m", min=1, help="Maximum attempts per URL",
    ),
    timeout: float = typer.Option(settings.timeout, "--timeout", min=0.1, help="Request timeout (seconds)"),
    max_results: int = typer.Option(None, "--max-results", "-n", min=1, help="Stop after this many pages"),
    output: Path = typer.Option(None, "-o", "--output", help="Output file (.json or .txt)"),
    output_format: OutputFormat = typer.Option(
        None, "--format", "-f", help="Output format: json, pretty-json, text",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show debug logging"),
):
    """Crawl documentation pages from a URL or a search keyword."""
    from .crawl import run_crawl

    _configure_logging(verbose)
    if max_depth is not None and not recursive:
        typer.echo("Warning: --max-depth has no effect without --recursive", err=True)
    sink = ResultSink()

    try:
        asyncio.run(run_crawl(
            input_text=input_text,
            recursive=recursive,
            max_depth=max_depth,
            concurrency=concurrency,
            max_attempts=max_retries,
            timeout=timeout,
            max_results=max_results,
            sink=sink,
        ))
    except CrawlError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        typer.echo("\nInterrupted, writing partial results", err=True)

    if sink.failed:
        typer.echo(f"Failed pages: {sink.failed}", err=True)
    if not len(sink):
        typer.echo("No pages were crawled", err=True)
        raise typer.Exit(code=1)

    _emit(sink, output, output_format)


@app.command()
def version():
    """Show version."""
    from . import __version__

    typer.echo(f"adoc {__version__}")


if __name__ == "__main__":
    app()
