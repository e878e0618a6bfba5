"""CLI entry point for beaconctl."""

import asyncio
import logging
import sys
from typing import Optional

import click

from .chaintime import ChainTime
from .config import LOG_LEVELS, Config
from .connection import connect_with_fallback
from .exceptions import BeaconctlError
from .utils import parse_duration

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    if level.upper() != "DEBUG":
        logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


class Duration(click.ParamType):
    """Duration such as 30s, 2m or 1m30s; a plain number is seconds."""

    name = "duration"

    def convert(self, value, param, ctx):
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


def warn(message: str) -> None:
    click.echo(message, err=True)


def run_command(coro) -> None:
    """Run a command coroutine; errors are printed and turn into exit code 1."""
    try:
        asyncio.run(coro)
    except BeaconctlError as e:
        logger.debug("Command failed", exc_info=True)
        click.echo(str(e), err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(1)
    sys.exit(0)


@click.group()
@click.version_option(package_name="beaconctl")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML configuration file",
    envvar="BEACONCTL_CONFIG",
)
@click.option(
    "--connection",
    help="URL of the beacon node to connect to",
    envvar="BEACONCTL_CONNECTION",
)
@click.option(
    "--timeout",
    type=Duration(),
    help="Timeout for beacon node requests (e.g. 30s, 2m)",
    envvar="BEACONCTL_TIMEOUT",
)
@click.option(
    "--allow-insecure-connections",
    is_flag=True,
    default=False,
    help="Allow plain http connections to remote beacon nodes",
    envvar="BEACONCTL_ALLOW_INSECURE_CONNECTIONS",
)
@click.option("--debug", is_flag=True, default=False, help="Generate debug output", envvar="BEACONCTL_DEBUG")
@click.option("--quiet", is_flag=True, default=False, help="Do not generate any output", envvar="BEACONCTL_QUIET")
@click.option("--verbose", is_flag=True, default=False, help="Generate additional output", envvar="BEACONCTL_VERBOSE")
@click.option(
    "--log-level",
    type=click.Choice(list(LOG_LEVELS), case_sensitive=False),
    help="Logging level",
    envvar="BEACONCTL_LOG_LEVEL",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    connection: Optional[str],
    timeout: Optional[float],
    allow_insecure_connections: bool,
    debug: bool,
    quiet: bool,
    verbose: bool,
    log_level: Optional[str],
):
    """beaconctl - query an Ethereum beacon node."""
    try:
        config = Config.from_yaml(config_path) if config_path else Config()
    except BeaconctlError as e:
        raise click.ClickException(str(e)) from e

    config = config.merged(
        connection=connection,
        timeout=timeout,
        allow_insecure_connections=allow_insecure_connections or None,
        debug=debug or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_level=log_level,
    )
    if config.quiet and config.verbose:
        raise click.UsageError("--quiet and --verbose are mutually exclusive")

    setup_logging("DEBUG" if config.debug else config.log_level)
    ctx.obj = config


@cli.group()
def node():
    """Obtain information about a beacon node."""
    pass


@node.command("info")
@click.pass_obj
def node_info_command(config: Config):
    """Obtain information about a node.  For example:

        beaconctl node info

    In quiet mode this will return 0 if the node information can be obtained, otherwise 1.
    """
    from .commands.node_info import format_node_info, node_info

    async def _run() -> None:
        info = await node_info(config, warn)
        for line in format_node_info(info):
            click.echo(line)

    run_command(_run())


@cli.group()
def synccommittee():
    """Obtain information about sync committees."""
    pass


@synccommittee.command("members")
@click.option("--epoch", type=click.IntRange(min=0), help="Epoch for which to fetch the sync committee")
@click.option(
    "--period",
    default="",
    help="Sync committee period for which to fetch the committee (current or next)",
)
@click.pass_obj
def synccommittee_members_command(config: Config, epoch: Optional[int], period: str):
    """Obtain the validators in a sync committee.  For example:

        beaconctl synccommittee members --period=next

    An explicit --epoch takes precedence over --period.
    """
    from .commands.synccommittee_members import build_input, output, process

    async def _run() -> None:
        client, _ = await connect_with_fallback(config, warn)
        async with client:
            chain_time = await ChainTime.from_node(client)
            data = build_input(config, client, chain_time, epoch=epoch, period=period)
            results = await process(data)
        text = output(results)
        if text:
            click.echo(text)

    run_command(_run())


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
