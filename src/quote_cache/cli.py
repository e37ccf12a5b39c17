"""Click-based CLI for quote-cache.

Thin wrapper over the quotes package. Commands parse arguments and hand
off to the data source or cache store.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    # Suppress noisy transport logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from quote_cache.core import load_config

        ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
    return ctx.obj["config"]


def _resolve_ticker(ticker: str) -> str:
    """Normalize a ticker argument."""
    cleaned = ticker.strip()
    if not cleaned:
        raise click.UsageError("TICKER must not be empty")
    if any(sep in cleaned for sep in ("/", "\\")) or cleaned in (".", ".."):
        raise click.UsageError(f"Invalid ticker: {ticker!r}")
    return cleaned


def _read_lines(path: str) -> list[str]:
    return Path(path).read_text(encoding="utf-8").splitlines()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="QUOTE_CACHE_CONFIG",
    default=None,
    help="Path to quote-cache.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.version_option(package_name="quote-cache")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """Quote Cache: local quote files kept in sync with Stooq."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["console"] = console
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# quotes
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("ticker")
@click.option(
    "--database",
    "-d",
    type=click.Path(file_okay=False),
    default=None,
    help="Quote database directory. Default: cache.database_path from config.",
)
@click.option("--limit", "-n", type=int, default=20, show_default=True, help="Rows to return.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "csv"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.pass_context
def quotes(
    ctx: click.Context,
    ticker: str,
    database: str | None,
    limit: int,
    output_format: str,
) -> None:
    """Sync TICKER with the remote feeds and print its latest quotes."""
    from quote_cache.quotes import QuoteDataSource

    config = _load_config(ctx)
    symbol = _resolve_ticker(ticker)

    with QuoteDataSource(database, config) as source:
        rows = source.get_quotes(symbol, limit=limit)

    if not rows:
        console.print(f"[yellow]No quotes available for {symbol}.[/yellow]")
        return

    if output_format == "json":
        _output_quotes_json(rows)
    elif output_format == "csv":
        _output_quotes_csv(rows)
    else:
        _output_quotes_table(symbol, rows)


def _output_quotes_table(symbol: str, rows) -> None:
    """Render quote rows as a Rich table."""
    table = Table(title=f"Quotes: {symbol}")
    table.add_column("Date", style="bold")
    for name in ("Open", "High", "Low", "Close", "Volume"):
        table.add_column(name, justify="right")

    for r in rows:
        table.add_row(
            str(r.date),
            f"{r.open:.4f}",
            f"{r.high:.4f}",
            f"{r.low:.4f}",
            f"{r.close:.4f}",
            f"{r.volume:.0f}",
        )

    console.print(table)


def _output_quotes_json(rows) -> None:
    """Write quote rows as JSON to stdout."""
    output = [r.model_dump(mode="json") for r in rows]
    click.echo(json.dumps(output, indent=2, default=str))


def _output_quotes_csv(rows) -> None:
    """Write quote rows as CSV to stdout."""
    import csv
    import io

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["date", "open", "high", "low", "close", "volume"])
    for r in rows:
        writer.writerow([r.date.isoformat(), r.open, r.high, r.low, r.close, r.volume])
    click.echo(buf.getvalue(), nl=False)


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("ticker")
@click.option(
    "--database",
    "-d",
    type=click.Path(file_okay=False),
    default=None,
    help="Quote database directory. Default: cache.database_path from config.",
)
@click.pass_context
def status(ctx: click.Context, ticker: str, database: str | None) -> None:
    """Show cache coverage and refresh state for TICKER (no network)."""
    from datetime import datetime

    from quote_cache.quotes import CacheStore, is_valid_line, needs_refresh

    config = _load_config(ctx)
    symbol = _resolve_ticker(ticker)
    store = CacheStore(
        database or config.cache.database_path,
        config.cache,
        second_check_default=config.refresh.second_check,
    )

    lines = store.load(symbol)
    metadata = store.load_metadata(symbol)
    rows = [line for line in lines if is_valid_line(line)]

    table = Table(title=f"Quote Cache Status: {symbol}")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Cache file", str(store.cache_path(symbol)))
    table.add_row("Lines", str(len(lines)))
    table.add_row("Data rows", str(len(rows)))
    table.add_row(
        "Date range",
        f"{rows[0].split(',', 1)[0]} → {rows[-1].split(',', 1)[0]}" if rows else "N/A",
    )
    table.add_section()
    table.add_row("Last download run", metadata.last_download_run.strftime("%Y-%m-%d %H:%M"))
    table.add_row("Last entry in file", metadata.last_entry_in_file)
    table.add_row("Second check", metadata.second_check.strftime("%H:%M"))
    table.add_row("Refresh due", "yes" if needs_refresh(metadata, datetime.now()) else "no")

    console.print(table)


# ---------------------------------------------------------------------------
# merge
# ---------------------------------------------------------------------------


@cli.command("merge")
@click.argument("existing", type=click.Path(exists=True, dir_okay=False))
@click.argument("incoming", type=click.Path(exists=True, dir_okay=False))
def merge_files(existing: str, incoming: str) -> None:
    """Print EXISTING with INCOMING spliced on, as the cache would store it."""
    from quote_cache.quotes import merge

    for line in merge(_read_lines(existing), _read_lines(incoming)):
        click.echo(line)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
