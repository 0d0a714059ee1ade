"""Click-based CLI for price-feeds.

Thin wrapper around library modules. Zero business logic: every operation
delegates to the configured HistoricalPriceFeed.
"""

from __future__ import annotations

import asyncio
import json
import logging
from itertools import count

import click
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)
logger = logging.getLogger("price_feeds.cli")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    return asyncio.run(coro)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from price_feeds.core import load_config

        ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
    return ctx.obj["config"]


def _create_networker(config):
    """Create the HTTP networker from the network config."""
    from price_feeds.sources import HttpxNetworker

    return HttpxNetworker(config.network)


def _resolve_feed_config(config, name: str):
    """Look up a feed by its configured name."""
    by_name = {key.lower(): value for key, value in config.feeds.items()}
    if name.lower() not in by_name:
        configured = ", ".join(sorted(config.feeds)) or "none"
        raise click.UsageError(f"Unknown feed {name!r}. Configured feeds: {configured}")
    return by_name[name.lower()]


def _price_record(feed, price: int, at: int | None) -> dict:
    from price_feeds.feeds import format_fixed

    return {
        "feed": feed.name,
        "time": at,
        "price": price,
        "decimals": feed.get_price_feed_decimals(),
        "formatted": format_fixed(price, feed.get_price_feed_decimals()),
        "last_update_time": feed.get_last_update_time(),
    }


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="PRICE_FEEDS_CONFIG",
    default=None,
    help="Path to price-feeds.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.version_option(package_name="price-feeds")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """Price feeds: throttled HTTP price series with historical lookups."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# feeds
# ---------------------------------------------------------------------------


@cli.command("feeds")
@click.pass_context
def list_feeds(ctx: click.Context) -> None:
    """List configured feeds."""
    from price_feeds.feeds import create_source

    config = _load_config(ctx)
    if not config.feeds:
        console.print("[yellow]No feeds configured.[/yellow]")
        return

    table = Table(title="Configured Feeds")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Lookback (s)", justify="right")
    table.add_column("Decimals", justify="right")
    table.add_column("Throttle (s)", justify="right")
    table.add_column("Tie-break")

    for name, feed_config in sorted(config.feeds.items()):
        source = create_source(feed_config)
        throttle = feed_config.min_time_between_updates
        if throttle is None:
            throttle = source.default_min_time_between_updates
        table.add_row(
            name,
            str(feed_config.type),
            str(feed_config.lookback),
            str(feed_config.price_feed_decimals),
            str(throttle),
            str(source.tie_break),
        )

    console.print(table)


# ---------------------------------------------------------------------------
# price
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("name")
@click.option(
    "--at",
    type=int,
    default=None,
    help="Unix timestamp for a historical price. Omit for the current price.",
)
@click.option(
    "--explain",
    is_flag=True,
    default=False,
    help="Log which sample answered a historical query.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.pass_context
def price(
    ctx: click.Context,
    name: str,
    at: int | None,
    explain: bool,
    output_format: str,
) -> None:
    """Refresh feed NAME once and print its current or historical price."""
    from price_feeds.core import PriceFeedError
    from price_feeds.feeds import create_price_feed

    config = _load_config(ctx)
    feed_config = _resolve_feed_config(config, name)

    if explain:
        logging.getLogger("price_feeds").setLevel(logging.INFO)

    async def _run():
        async with _create_networker(config) as networker:
            feed = create_price_feed(feed_config, networker)
            await feed.update()
            if at is None:
                return feed, feed.get_current_price()
            return feed, feed.get_historical_price(at, verbose=explain)

    try:
        feed, value = _run_async(_run())
    except PriceFeedError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1)

    if value is None:
        console.print("[yellow]Feed returned no price.[/yellow]")
        raise SystemExit(1)

    record = _price_record(feed, value, at)
    if output_format == "json":
        click.echo(json.dumps(record, indent=2))
    else:
        _output_price_table(record)


def _output_price_table(record: dict) -> None:
    """Render a price record as a Rich table."""
    table = Table(title=record["feed"])
    table.add_column("Time")
    table.add_column("Price", justify="right")
    table.add_column("Scaled", justify="right")
    table.add_column("Decimals", justify="right")
    table.add_row(
        "current" if record["time"] is None else str(record["time"]),
        record["formatted"],
        str(record["price"]),
        str(record["decimals"]),
    )
    console.print(table)


# ---------------------------------------------------------------------------
# poll
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("name")
@click.option(
    "--interval",
    type=float,
    default=60.0,
    show_default=True,
    help="Seconds between update() calls.",
)
@click.option(
    "--iterations",
    type=int,
    default=0,
    help="Stop after this many update() calls (0 = run until interrupted).",
)
@click.pass_context
def poll(ctx: click.Context, name: str, interval: float, iterations: int) -> None:
    """Call update() on feed NAME periodically and report each refresh.

    The feed's own throttle decides which calls reach the network. Failed
    refreshes are logged and retried on the next tick.
    """
    from price_feeds.core import DataSourceError
    from price_feeds.feeds import create_price_feed, format_fixed

    config = _load_config(ctx)
    feed_config = _resolve_feed_config(config, name)

    async def _run():
        async with _create_networker(config) as networker:
            feed = create_price_feed(feed_config, networker)
            for tick in count(1):
                try:
                    refreshed = await feed.update()
                except DataSourceError as exc:
                    logger.warning("%s: update failed: %s", feed.name, exc)
                    console.print(f"[red]{feed.name}: update failed: {exc}[/red]")
                else:
                    if refreshed:
                        console.print(
                            f"[green]{feed.name}[/green] "
                            f"@ {feed.get_last_update_time()}: "
                            f"{format_fixed(feed.get_current_price(), feed.get_price_feed_decimals())}"
                        )
                if iterations and tick >= iterations:
                    break
                await asyncio.sleep(interval)

    try:
        _run_async(_run())
    except KeyboardInterrupt:
        console.print("[yellow]Stopped.[/yellow]")
