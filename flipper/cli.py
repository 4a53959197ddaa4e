"""
CLI tool for the flipper package.
Provides commands for inspecting configuration and replaying market captures.
"""

import logging
import sys

import click
from pydantic import ValidationError

from flipper.config_schemas import FlipperConfig, load_config
from flipper.data_feeds.frame_feed import FrameReplayFeed
from flipper.logging_config import configure_structlog
from flipper.runners.tick_runner import create_runner


def _load(config_path):
    if config_path is None:
        return FlipperConfig()
    try:
        return load_config(config_path)
    except ValidationError as e:
        click.echo(f"Error: invalid configuration in {config_path}:\n{e}")
        sys.exit(1)


def _parse_pair(value: str):
    left, sep, right = value.partition("-")
    if not sep:
        raise click.BadParameter(f"expected ID-ID, got {value!r}")
    try:
        return int(left), int(right)
    except ValueError:
        raise click.BadParameter(f"expected integer ids, got {value!r}")


@click.group()
@click.option('--debug/--no-debug', default=False, help='Enable debug logging')
@click.option('--log-file', type=click.Path(dir_okay=False), default=None, help='Append logs to this file')
@click.option('--json-logs/--console-logs', default=True, help='Render logs as JSON lines or plain console text')
@click.pass_context
def cli(ctx, debug, log_file, json_logs):
    """Flipper CLI - Inspect configuration and replay market captures."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    configure_structlog("DEBUG" if debug else "INFO", log_file, json_logs=json_logs)


@cli.command('show-config')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML configuration file (defaults if omitted)')
def show_config(config_path):
    """Print the effective configuration as YAML."""
    config = _load(config_path)
    click.echo(config.to_yaml())


@cli.command()
@click.argument('capture', type=click.Path(exists=True, dir_okay=False))
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML configuration file (defaults if omitted)')
@click.option('--pair', 'pairs', multiple=True, help='Register a pair for pair trading, e.g. 554-561')
@click.option('--top', default=10, show_default=True, help='Rows to print per engine')
@click.pass_context
def replay(ctx, capture, config_path, pairs, top):
    """Replay a tick-indexed CSV capture through every engine."""
    config = _load(config_path)
    if not ctx.obj.get("debug"):
        logging.getLogger().setLevel(getattr(logging, config.advanced.log_level))

    try:
        parsed = [_parse_pair(p) for p in pairs]
        feed = FrameReplayFeed.from_csv(capture)
        runner = create_runner(config, pairs=parsed)
    except ValueError as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    click.echo(f"Replaying {len(feed)} ticks from {capture}...")
    result = runner.run(feed.iter_ticks(), verbose=True)

    click.echo(f"\nProcessed {result.ticks} ticks ({result.evaluated_ticks} evaluated) "
               f"in {result.runtime_seconds:.2f}s")
    for name, frame in result.final_snapshots.items():
        failed = result.failed_ticks.get(name, 0)
        click.echo(f"\n{name}: {len(frame)} candidates, {failed} failed ticks")
        click.echo("-" * 80)
        if frame.empty:
            click.echo("(none)")
        else:
            click.echo(frame.head(top).to_string(index=False))

    sys.exit(0 if not any(result.failed_ticks.values()) else 1)


if __name__ == '__main__':
    cli()
