"""Beacon node connection bootstrap."""

import ipaddress
import logging
from typing import Callable, Iterable, Optional
from urllib.parse import urlparse

from .client import RemoteBeaconClient
from .config import Config
from .exceptions import BeaconctlError, ConnectionFailedError
from .types import Capability

logger = logging.getLogger(__name__)

FALLBACK_WARNING = "No connection supplied; using mainnet public access endpoint"


def normalise_address(address: str) -> str:
    """Add an http:// scheme to an address supplied without one."""
    address = address.strip()
    if "://" not in address:
        address = f"http://{address}"
    return address


def _is_local_host(host: str) -> bool:
    if host == "localhost" or host.endswith(".localhost"):
        return True
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    return ip.is_loopback or ip.is_private


def check_address_security(address: str, allow_insecure: bool) -> None:
    """Refuse plain http connections to remote hosts unless explicitly allowed."""
    parsed = urlparse(address)
    if parsed.scheme not in ("http", "https"):
        raise ConnectionFailedError(address, f"unsupported scheme {parsed.scheme}")
    if not parsed.hostname:
        raise ConnectionFailedError(address, "no host in address")
    if parsed.scheme == "http" and not allow_insecure and not _is_local_host(parsed.hostname):
        raise ConnectionFailedError(
            address,
            "refusing insecure connection to remote beacon node; use --allow-insecure-connections to override",
        )


async def connect_to_beacon_node(
    address: str,
    timeout: float,
    allow_insecure: bool,
    capabilities: Optional[Iterable[Capability]] = None,
) -> RemoteBeaconClient:
    """Connect to a beacon node and confirm it responds.

    The client offers every capability unless a narrower set is given.

    Raises:
        ConnectionFailedError: if the node cannot be reached or is refused by policy
    """
    address = normalise_address(address)
    check_address_security(address, allow_insecure)

    client = RemoteBeaconClient(address, timeout=timeout, capabilities=capabilities)
    try:
        await client.genesis()
    except ConnectionFailedError:
        await client.close()
        raise
    except BeaconctlError as e:
        await client.close()
        raise ConnectionFailedError(address, str(e)) from e

    logger.info(f"Connected to beacon node at {address}")
    return client


async def connect_with_fallback(
    config: Config,
    warn: Callable[[str], None],
    capabilities: Optional[Iterable[Capability]] = None,
) -> tuple[RemoteBeaconClient, bool]:
    """Connect to the configured node, or to the default node if none is configured.

    Returns the client and whether the default node was used.
    """
    if config.connection:
        # The user chose a node; failures there are not second-guessed.
        client = await connect_to_beacon_node(
            config.connection, config.timeout, config.allow_insecure_connections, capabilities
        )
        return client, False

    if config.debug:
        warn(f"No node connection, attempting to use {config.default_connection}")
    client = await connect_to_beacon_node(
        config.default_connection, config.timeout, config.allow_insecure_connections, capabilities
    )
    if not config.quiet:
        warn(FALLBACK_WARNING)
    return client, True
