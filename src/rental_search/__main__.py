"""Command line entrypoint for Rental Search."""

from __future__ import annotations

import asyncio
import contextlib
import signal
from pathlib import Path

import click
import uvicorn

from rental_search.config import Settings, build_search_configuration, get_settings
from rental_search.domain.models import Report, SearchConfiguration
from rental_search.domain.services.date_combinations import ParseError
from rental_search.domain.services.offer_extractor import CheapestOfferExtractor
from rental_search.domain.services.price_search import (
    CancellationToken,
    FixedDelayPacer,
    PriceSearchService,
)
from rental_search.domain.services.report import (
    export_csv,
    export_json,
    render_markdown,
    summarize,
)
from rental_search.infrastructure.hertz_api_adapter import HertzApiAdapter
from rental_search.infrastructure.progress_reporter import LoggingProgressReporter
from rental_search.infrastructure.request_builder import HertzRequestBuilder
from rental_search.logging_config import configure_logging


async def _run_search(config: SearchConfiguration, settings: Settings) -> Report:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    # Ctrl+C stops after the request in flight instead of killing the run
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, token.cancel)

    try:
        async with HertzApiAdapter(timeout=settings.request_timeout) as pricing_api:
            service = PriceSearchService(
                pricing_api=pricing_api,
                request_builder=HertzRequestBuilder(),
                extractor=CheapestOfferExtractor(default_currency=settings.default_currency),
                progress=LoggingProgressReporter(),
                pacer=FixedDelayPacer(),
                summary_every=settings.summary_every,
            )
            rows = await service.run(config, token)
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    return summarize(rows, top_n=settings.report_top_n)


@click.group()
def cli() -> None:
    """Rental car price search."""


@cli.command()
def serve() -> None:
    """Run the HTTP API server."""
    settings = get_settings()
    uvicorn.run(
        "rental_search.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        factory=False,
    )


@cli.command()
@click.argument("pickup_start")
@click.argument("pickup_end")
@click.argument("return_start")
@click.argument("return_end")
@click.option("--min-days", type=click.IntRange(min=1), help="Minimum trip length in days")
@click.option("--delay-ms", type=click.IntRange(min=0), help="Pause between requests")
@click.option(
    "--json-out",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write every row as JSON to this file",
)
@click.option(
    "--csv-out",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write priced rows as CSV to this file",
)
def search(
    pickup_start: str,
    pickup_end: str,
    return_start: str,
    return_end: str,
    min_days: int | None,
    delay_ms: int | None,
    json_out: Path | None,
    csv_out: Path | None,
) -> None:
    """Search prices for every pickup/return pair (dates as DD/MM/YYYY)."""
    configure_logging()
    settings = get_settings()
    try:
        config = build_search_configuration(
            pickup_start,
            pickup_end,
            return_start,
            return_end,
            min_days=min_days,
            delay_ms=delay_ms,
            settings=settings,
        )
    except ParseError as e:
        raise click.BadParameter(str(e)) from None

    report = asyncio.run(_run_search(config, settings))
    click.echo(render_markdown(report))

    if json_out is not None:
        json_out.write_text(export_json(report), encoding="utf-8")
        click.echo(f"JSON written to {json_out}")
    if csv_out is not None:
        csv_out.write_text(export_csv(report), encoding="utf-8")
        click.echo(f"CSV written to {csv_out}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
