"""Remote Beacon API client."""

import asyncio
import logging
from typing import Iterable, Optional

import aiohttp

from .exceptions import (
    BeaconAPIError,
    CapabilityMissingError,
    ConnectionFailedError,
    NotFoundError,
)
from .types import Capability, SyncCommittee, SyncState

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

ALL_CAPABILITIES = frozenset(Capability)


class RemoteBeaconClient:
    """Client for a remote Beacon API (any conformant client).

    The set of capabilities is fixed when the client is built, so callers can
    check for a capability before using it instead of failing mid-request.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        capabilities: Optional[Iterable[Capability]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.capabilities = (
            frozenset(capabilities) if capabilities is not None else ALL_CAPABILITIES
        )
        self._session: Optional[aiohttp.ClientSession] = None
        self._genesis: Optional[dict] = None

    async def __aenter__(self) -> "RemoteBeaconClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> None:
        """Raise CapabilityMissingError if the capability is not provided."""
        if not self.supports(capability):
            raise CapabilityMissingError(capability.value)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def _get_data(self, path: str, params: Optional[dict] = None, not_found: str = "") -> Optional[dict]:
        """GET a Beacon API path and return the "data" member of the response."""
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url} params={params}")

        try:
            async with session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
            ) as response:
                if response.status == 404 and not_found:
                    raise NotFoundError(not_found)
                if response.status != 200:
                    text = await response.text()
                    raise BeaconAPIError(response.status, text)
                try:
                    data = await response.json()
                except ValueError as e:
                    raise BeaconAPIError(response.status, f"invalid JSON from {path}") from e
        except asyncio.TimeoutError as e:
            raise ConnectionFailedError(self.base_url, f"request to {path} timed out") from e
        except aiohttp.ClientError as e:
            raise ConnectionFailedError(self.base_url, str(e)) from e

        if not isinstance(data, dict):
            raise BeaconAPIError(200, f"unexpected response from {path}")
        return data.get("data")

    async def node_version(self) -> str:
        """Get the beacon node version string."""
        self.require(Capability.NODE_VERSION)
        data = await self._get_data("/eth/v1/node/version")
        return (data or {}).get("version", "unknown")

    async def node_syncing(self) -> SyncState:
        """Get the beacon node sync state."""
        self.require(Capability.NODE_SYNCING)
        data = await self._get_data("/eth/v1/node/syncing")
        return SyncState.from_dict(data or {})

    async def sync_committee_at_epoch(self, state_id: str, epoch: int) -> Optional[SyncCommittee]:
        """Get the sync committee for an epoch, as seen from the given state.

        Returns None if the node answered without committee data.
        """
        self.require(Capability.SYNC_COMMITTEES)
        data = await self._get_data(
            f"/eth/v1/beacon/states/{state_id}/sync_committees",
            params={"epoch": str(epoch)},
            not_found=f"State not found: {state_id}",
        )
        if data is None:
            return None
        return SyncCommittee.from_dict(data)

    async def genesis(self) -> dict:
        """Get genesis information.

        Genesis never changes for a node, so the first answer is kept.
        """
        self.require(Capability.GENESIS)
        if self._genesis is None:
            self._genesis = await self._get_data("/eth/v1/beacon/genesis") or {}
        return self._genesis

    async def spec(self) -> dict:
        """Get the chain spec/config."""
        self.require(Capability.SPEC)
        return await self._get_data("/eth/v1/config/spec") or {}

    async def close(self) -> None:
        """Close the client and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
