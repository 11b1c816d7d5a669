"""
mintauction CLI - Command Line Interface for the issuance auction

Main entry point for all CLI commands.
"""

import json
import click
from pathlib import Path

from mintauction.utils.logger import setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default="~/.mintauction", help="Data directory")
@click.option("--log-dir", default=None, help="Also write logs to <dir>/mintauction.log")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, log_dir):
    """Repeating open-bid auction for a capped token series"""
    setup_logging(
        level="debug" if debug else "warning",
        log_dir=log_dir,
        log_to_file=log_dir is not None,
    )

    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = Path(data_dir).expanduser()


def _open_storage(ctx, create: bool = False):
    from mintauction.core.storage import StorageManager

    data_dir = ctx.obj["data_dir"]
    if not create and not (data_dir / "auction.db").exists():
        return None
    data_dir.mkdir(parents=True, exist_ok=True)
    return StorageManager(data_dir)


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option(
    "--scenario",
    type=click.Choice(["basic", "capped", "fallback"]),
    default="basic",
    help="Demo scenario to run",
)
@click.option("--persist", is_flag=True, help="Save the resulting state to the data dir")
@click.pass_context
def demo(ctx, scenario, persist):
    """Run a scripted auction on a simulated clock"""
    from mintauction.core.auction import deploy_auction
    from mintauction.core.config import AuctionConfig
    from mintauction.core.errors import AuctionError
    from mintauction.core.state import ManualClock
    from mintauction.crypto import generate_keypair, short_address
    from mintauction.utils.validation import format_ether, to_wei

    storage = None
    if persist:
        storage = _open_storage(ctx, create=True)
        # A demo runs on a fresh simulated chain; it cannot continue a stored auction
        if storage.has_state():
            storage.close()
            raise click.ClickException(
                f"{storage.db_path} already holds an auction; use an empty --data-dir"
            )

    cap = 3 if scenario == "capped" else 0
    config = AuctionConfig(duration=3600, min_increment=to_wei("0.01"), supply_cap=cap)
    clock = ManualClock()
    d = deploy_auction(config, clock=clock, storage_manager=storage)
    engine = d.engine

    alice = generate_keypair().address
    bob = generate_keypair().address
    for who in (alice, bob):
        d.chain.fund(who, to_wei(100))

    click.echo("=" * 60)
    click.echo(f"  ISSUANCE AUCTION DEMO ({scenario})")
    click.echo("=" * 60)

    if scenario == "basic":
        engine.bid(alice, to_wei("1.0"))
        click.echo(f"  alice bids 1.0      -> round for #{engine.contested_token_id()} opened")
        engine.bid(bob, to_wei("1.1"))
        click.echo(f"  bob bids 1.1        -> alice refunded, balance {format_ether(d.chain.balance_of(alice))}")
        clock.advance(config.duration)
        settlement = engine.finalize()
        click.echo(f"  finalize            -> #{settlement.token_id} to {short_address(settlement.winner)}")
        click.echo(f"  treasury project {config.proceeds_project_id}: "
                   f"{format_ether(d.treasury.balance_of_project(config.proceeds_project_id))}")

    elif scenario == "capped":
        for i in range(cap + 1):
            bidder = alice if i % 2 == 0 else bob
            try:
                engine.bid(bidder, to_wei("0.5"))
            except AuctionError as e:
                click.echo(f"  round {i + 1}: bid refused ({type(e).__name__})")
                break
            clock.advance(config.duration)
            settlement = engine.finalize()
            click.echo(f"  round {i + 1}: #{settlement.token_id} -> {short_address(settlement.winner)}")

    elif scenario == "fallback":
        def rejecting_hook(ctx_):
            raise RuntimeError("receive disabled")

        d.chain.register_hook(alice, rejecting_hook)
        engine.bid(alice, to_wei("1.0"))
        engine.bid(bob, to_wei("1.5"))
        click.echo("  alice's receive hook reverts; bob outbids her")
        click.echo(f"  alice native balance:  {format_ether(d.chain.balance_of(alice))}")
        click.echo(f"  alice wrapped balance: {format_ether(d.wrapped.balance_of(alice))}")

    click.echo()
    click.echo("📊 Final status:")
    for key, value in engine.status().items():
        if isinstance(value, bytes):
            value = short_address(value)
        click.echo(f"  {key}: {value}")


# =============================================================================
# Inspection Commands
# =============================================================================


@cli.command("status")
@click.pass_context
def status(ctx):
    """Show the persisted auction state"""
    from mintauction.core.auction import AuctionSnapshot
    from mintauction.utils.validation import format_ether

    storage = _open_storage(ctx)
    data = storage.load_auction_state() if storage else None
    if data is None:
        click.echo("No auction state found.")
        return

    snap = AuctionSnapshot.from_dict(data)
    click.echo("Auction State")
    click.echo("-" * 40)
    click.echo(f"  Deadline:        {snap.deadline or 'no round open'}")
    click.echo(f"  High bid:        {format_ether(snap.high_bid)}")
    click.echo(f"  High bidder:     {snap.to_dict()['high_bidder'] or '-'}")
    click.echo(f"  Next token id:   {snap.next_id}")
    click.echo(f"  Cap:             {snap.cap or 'unlimited'}")
    click.echo(f"  Issuance open:   {snap.issuance_open}")
    click.echo(f"  Metadata frozen: {snap.metadata_frozen}")
    click.echo(f"  Base URI:        {snap.base_uri or '-'}")


@cli.command("events")
@click.option("--limit", default=20, help="Max events to show")
@click.pass_context
def events(ctx, limit):
    """Show the persisted observation log"""
    storage = _open_storage(ctx)
    if storage is None:
        click.echo("No events found.")
        return
    for seq, event in storage.load_events(limit=limit):
        click.echo(f"  {seq:>5}  {event.name:<18} {json.dumps(event.to_dict())}")


# =============================================================================
# Config Commands
# =============================================================================


@cli.group()
def config():
    """Configuration commands"""
    pass


@config.command("show")
@click.option("--config", "config_path", default=None, help="JSON config file")
def config_show(config_path):
    """Print the effective configuration"""
    from mintauction.core.config import load_config
    from mintauction.core.errors import ConfigError

    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(cfg.to_dict(), indent=2))


if __name__ == "__main__":
    cli()
