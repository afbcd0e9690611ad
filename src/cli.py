#!/usr/bin/env python3
import asyncio

import click

from src.core.logging_config import configure_logging
from src.locate import LocationListener, NominatimClient, Position, ResolutionEngine


# -----------------------------
# Console listener
# -----------------------------
class EchoListener(LocationListener):
    """Prints engine notifications; remembers whether an error was reported."""

    def __init__(self):
        self.failed = False

    def on_position_change(self, position, address):
        click.echo(f"Position: {position.lat:.6f}, {position.lng:.6f}")
        if address:
            click.echo(f"Address: {address}")

    def on_error(self, notice):
        self.failed = True
        click.echo(f"{notice.title}: {notice.message}", err=True)

    def on_notice(self, notice):
        if notice.level == "warning":
            self.failed = True
        click.echo(f"{notice.title}: {notice.message}", err=notice.level != "success")


# -----------------------------
# Async runners
# -----------------------------
async def run_forward(address, listener):
    engine = ResolutionEngine(listener, client=NominatimClient())
    try:
        task = engine.resolve_address_to_position(address, trigger_value=1)
        if task is None:
            listener.failed = True
        else:
            await task
    finally:
        await engine.aclose()
    return engine


async def run_reverse(lat, lng, listener):
    engine = ResolutionEngine(listener, client=NominatimClient())
    try:
        await engine.resolve_position_to_address(Position(lat, lng))
    finally:
        await engine.aclose()
    return engine


# -----------------------------
# CLI entry point
# -----------------------------
@click.group()
@click.option("--verbose", is_flag=True, default=False, help="Log every lookup attempt")
def cli(verbose):
    """Resolve addresses and coordinates against the campus reference point."""
    configure_logging(verbose)


@cli.command()
@click.argument("address")
def forward(address):
    """Find coordinates for ADDRESS and its distance to campus."""
    listener = EchoListener()
    engine = asyncio.run(run_forward(address, listener))
    if engine.distance_km is not None and not listener.failed:
        click.echo(f"Distance to campus: {engine.distance_km:.2f} km")
    if listener.failed:
        raise SystemExit(1)


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("lat", type=click.FloatRange(-90, 90))
@click.argument("lng", type=click.FloatRange(-180, 180))
def reverse(lat, lng):
    """Find the address at LAT LNG and its distance to campus."""
    listener = EchoListener()
    engine = asyncio.run(run_reverse(lat, lng, listener))
    click.echo(f"Distance to campus: {engine.distance_km:.2f} km")
    if listener.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
