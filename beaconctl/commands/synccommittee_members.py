"""synccommittee members: list the validators in the sync committee for an epoch."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import click

from ..exceptions import BeaconctlError, EmptyResultError, InvalidInputError
from ..types import Capability

if TYPE_CHECKING:
    from ..chaintime import ChainTime
    from ..client import RemoteBeaconClient
    from ..config import Config

logger = logging.getLogger(__name__)

UNSET_EPOCH = -1
HEAD_STATE = "head"


@dataclass(frozen=True)
class DataIn:
    """Input for a sync committee members query."""

    eth2_client: "RemoteBeaconClient"
    chain_time: "ChainTime"
    epoch: int = UNSET_EPOCH
    period: str = ""
    debug: bool = False
    quiet: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class DataOut:
    """Output of a sync committee members query."""

    validators: list[int] = field(default_factory=list)
    debug: bool = False
    quiet: bool = False
    verbose: bool = False


def build_input(
    config: "Config",
    eth2_client: "RemoteBeaconClient",
    chain_time: "ChainTime",
    epoch: Optional[int] = None,
    period: str = "",
) -> DataIn:
    """Build query input from configuration and command options."""
    return DataIn(
        eth2_client=eth2_client,
        chain_time=chain_time,
        epoch=UNSET_EPOCH if epoch is None else epoch,
        period=period or "",
        debug=config.debug,
        quiet=config.quiet,
        verbose=config.verbose,
    )


def calculate_epoch(data: DataIn) -> int:
    """Work out the epoch to query.

    An explicit epoch always wins over the period keyword.
    """
    if data.epoch != UNSET_EPOCH:
        epoch = data.epoch
    else:
        period = data.period.lower()
        if period in ("", "current"):
            epoch = data.chain_time.current_epoch()
        elif period == "next":
            chain_time = data.chain_time
            current_period = chain_time.slot_to_sync_committee_period(chain_time.current_slot())
            epoch = chain_time.first_epoch_of_sync_period(current_period + 1)
        else:
            raise InvalidInputError(f"period {data.period} not known")

    if epoch < 0:
        raise InvalidInputError(f"epoch {epoch} is not valid")

    if data.debug:
        click.echo(f"epoch is {epoch}")

    return epoch


async def process(data: Optional[DataIn]) -> DataOut:
    """Obtain the sync committee for the requested epoch.

    Raises:
        InvalidInputError: if there is no input or the period is not known
        CapabilityMissingError: if the client cannot provide sync committees
        EmptyResultError: if the node returned no sync committee
    """
    if data is None:
        raise InvalidInputError("no data")

    epoch = calculate_epoch(data)

    data.eth2_client.require(Capability.SYNC_COMMITTEES)
    try:
        sync_committee = await data.eth2_client.sync_committee_at_epoch(HEAD_STATE, epoch)
    except BeaconctlError as e:
        raise BeaconctlError(f"failed to obtain sync committee information: {e}") from e

    if sync_committee is None:
        raise EmptyResultError("no sync committee returned")

    logger.debug(f"Sync committee at epoch {epoch} has {len(sync_committee.validators)} members")

    return DataOut(
        validators=list(sync_committee.validators),
        debug=data.debug,
        quiet=data.quiet,
        verbose=data.verbose,
    )


def output(data: DataOut) -> str:
    """Format the sync committee for display."""
    if data.quiet:
        return ""
    if data.verbose:
        return "\n".join(f"{position}: {index}" for position, index in enumerate(data.validators))
    return "\n".join(str(index) for index in data.validators)
