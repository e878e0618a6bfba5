"""node info: report a beacon node's version and sync status."""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from ..config import Config
from ..connection import connect_with_fallback
from ..exceptions import BeaconctlError
from ..types import Capability

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeInfo:
    """Result of a node info query."""

    address: str
    used_fallback: bool = False
    version: Optional[str] = None
    syncing: Optional[bool] = None


async def node_info(
    config: Config,
    warn: Callable[[str], None],
    capabilities: Optional[Iterable[Capability]] = None,
) -> NodeInfo:
    """Connect to a node and obtain its version and sync status.

    In quiet mode only connectivity is checked. The version is only obtained
    in verbose mode.
    """
    client, used_fallback = await connect_with_fallback(config, warn, capabilities)
    async with client:
        if config.quiet:
            return NodeInfo(address=client.base_url, used_fallback=used_fallback)

        version = None
        if config.verbose:
            client.require(Capability.NODE_VERSION)
            try:
                version = await client.node_version()
            except BeaconctlError as e:
                raise BeaconctlError(f"failed to obtain node version: {e}") from e

        client.require(Capability.NODE_SYNCING)
        try:
            sync_state = await client.node_syncing()
        except BeaconctlError as e:
            raise BeaconctlError(f"failed to obtain node sync state: {e}") from e
        logger.debug(f"Sync state: {sync_state}")

        return NodeInfo(
            address=client.base_url,
            used_fallback=used_fallback,
            version=version,
            syncing=sync_state.sync_distance != 0,
        )


def format_node_info(info: NodeInfo) -> list[str]:
    """Format node info as output lines."""
    lines = []
    if info.version is not None:
        lines.append(f"Version: {info.version}")
    if info.syncing is not None:
        lines.append(f"Syncing: {str(info.syncing).lower()}")
    return lines
