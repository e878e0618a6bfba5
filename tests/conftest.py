"""Shared fixtures: collaborator fakes and a stub beacon node."""

import asyncio
import threading
import time
from typing import Generator, Iterable, Optional

import pytest
from aiohttp import web

from beaconctl.exceptions import CapabilityMissingError
from beaconctl.types import Capability, SyncCommittee, SyncState


class FakeChainTime:
    """Chain time double that records how it was used."""

    def __init__(
        self,
        current_slot: int = 0,
        slots_per_epoch: int = 32,
        epochs_per_sync_committee_period: int = 256,
        period_of_slot: Optional[int] = None,
    ):
        self._current_slot = current_slot
        self.slots_per_epoch = slots_per_epoch
        self.epochs_per_sync_committee_period = epochs_per_sync_committee_period
        self._period_of_slot = period_of_slot
        self.calls: list[tuple] = []

    def current_slot(self) -> int:
        self.calls.append(("current_slot",))
        return self._current_slot

    def current_epoch(self) -> int:
        self.calls.append(("current_epoch",))
        return self._current_slot // self.slots_per_epoch

    def slot_to_sync_committee_period(self, slot: int) -> int:
        self.calls.append(("slot_to_sync_committee_period", slot))
        if self._period_of_slot is not None:
            return self._period_of_slot
        return slot // self.slots_per_epoch // self.epochs_per_sync_committee_period

    def first_epoch_of_sync_period(self, period: int) -> int:
        self.calls.append(("first_epoch_of_sync_period", period))
        return period * self.epochs_per_sync_committee_period


class FakeBeaconClient:
    """Beacon client double with a configurable capability set."""

    def __init__(
        self,
        committee: Optional[list[int]] = None,
        capabilities: Optional[Iterable[Capability]] = None,
        version: str = "fake/v1.0.0",
        sync_distance: int = 0,
        error: Optional[Exception] = None,
    ):
        self.committee = committee
        self.capabilities = frozenset(capabilities) if capabilities is not None else frozenset(Capability)
        self.version = version
        self.sync_distance = sync_distance
        self.error = error
        self.queries: list[tuple] = []

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> None:
        if not self.supports(capability):
            raise CapabilityMissingError(capability.value)

    async def node_version(self) -> str:
        self.queries.append(("node_version",))
        return self.version

    async def node_syncing(self) -> SyncState:
        self.queries.append(("node_syncing",))
        return SyncState(head_slot=100, sync_distance=self.sync_distance)

    async def sync_committee_at_epoch(self, state_id: str, epoch: int) -> Optional[SyncCommittee]:
        self.queries.append(("sync_committee_at_epoch", state_id, epoch))
        if self.error is not None:
            raise self.error
        if self.committee is None:
            return None
        return SyncCommittee(validators=list(self.committee))


class StubBeaconNode:
    """Minimal Beacon API server with adjustable responses."""

    def __init__(self):
        self.version = "stub/v1.2.3"
        self.sync_distance = 0
        self.committee: Optional[list[int]] = list(range(100, 108))
        self.genesis_time = int(time.time()) - 12 * 32 * 10
        self.spec = {
            "PRESET_BASE": "mainnet",
            "SECONDS_PER_SLOT": "12",
            "SLOTS_PER_EPOCH": "32",
            "EPOCHS_PER_SYNC_COMMITTEE_PERIOD": "256",
        }
        self.failures: dict[str, int] = {}
        self.raw_bodies: dict[str, str] = {}
        self.requests: list[tuple[str, dict]] = []

        self.app = web.Application()
        self.app.router.add_get("/eth/v1/node/version", self.get_version)
        self.app.router.add_get("/eth/v1/node/syncing", self.get_syncing)
        self.app.router.add_get("/eth/v1/beacon/genesis", self.get_genesis)
        self.app.router.add_get("/eth/v1/config/spec", self.get_spec)
        self.app.router.add_get("/eth/v1/beacon/states/{state_id}/sync_committees", self.get_sync_committees)

    def _failure(self, request: web.Request) -> Optional[web.Response]:
        self.requests.append((request.path, dict(request.query)))
        status = self.failures.get(request.path)
        if status is not None:
            return web.json_response({"code": status, "message": "stub failure"}, status=status)
        body = self.raw_bodies.get(request.path)
        if body is not None:
            return web.Response(text=body, content_type="application/json")
        return None

    def _respond(self, request: web.Request, payload: dict) -> web.Response:
        failure = self._failure(request)
        if failure is not None:
            return failure
        return web.json_response(payload)

    async def get_version(self, request: web.Request) -> web.Response:
        """GET /eth/v1/node/version"""
        return self._respond(request, {"data": {"version": self.version}})

    async def get_syncing(self, request: web.Request) -> web.Response:
        """GET /eth/v1/node/syncing"""
        return self._respond(request, {
            "data": {
                "head_slot": "320",
                "sync_distance": str(self.sync_distance),
                "is_syncing": self.sync_distance != 0,
                "is_optimistic": False,
                "el_offline": False,
            }
        })

    async def get_genesis(self, request: web.Request) -> web.Response:
        """GET /eth/v1/beacon/genesis"""
        return self._respond(request, {
            "data": {
                "genesis_time": str(self.genesis_time),
                "genesis_validators_root": "0x" + "00" * 32,
                "genesis_fork_version": "0x00000000",
            }
        })

    async def get_spec(self, request: web.Request) -> web.Response:
        """GET /eth/v1/config/spec"""
        return self._respond(request, {"data": self.spec})

    async def get_sync_committees(self, request: web.Request) -> web.Response:
        """GET /eth/v1/beacon/states/{state_id}/sync_committees"""
        failure = self._failure(request)
        if failure is not None:
            return failure
        if request.match_info["state_id"] not in ("head", "finalized", "genesis"):
            return web.json_response({"code": 404, "message": "State not found"}, status=404)
        if self.committee is None:
            return web.json_response({"execution_optimistic": False, "finalized": False})
        validators = [str(v) for v in self.committee]
        return web.json_response({
            "execution_optimistic": False,
            "finalized": False,
            "data": {
                "validators": validators,
                "validator_aggregates": [validators[:4], validators[4:]],
            },
        })

    def epochs_queried(self) -> list[int]:
        return [
            int(query["epoch"])
            for path, query in self.requests
            if path.endswith("/sync_committees")
        ]


class _ServerThread(threading.Thread):
    """Thread that runs the stub node in its own event loop."""

    def __init__(self, node: StubBeaconNode):
        super().__init__(daemon=True)
        self.node = node
        self.port = 0
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.runner: Optional[web.AppRunner] = None
        self.ready = threading.Event()
        self.error: Optional[Exception] = None

    def run(self) -> None:
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        try:
            self.runner = web.AppRunner(self.node.app)
            self.loop.run_until_complete(self.runner.setup())
            site = web.TCPSite(self.runner, "127.0.0.1", 0)
            self.loop.run_until_complete(site.start())
            self.port = self.runner.addresses[0][1]
            self.ready.set()
            self.loop.run_forever()
        except Exception as e:
            self.error = e
            self.ready.set()
        finally:
            if self.runner:
                self.loop.run_until_complete(self.runner.cleanup())
            self.loop.close()

    def stop(self) -> None:
        if self.loop:
            self.loop.call_soon_threadsafe(self.loop.stop)


@pytest.fixture
def stub_node() -> StubBeaconNode:
    return StubBeaconNode()


@pytest.fixture
def stub_node_url(stub_node: StubBeaconNode) -> Generator[str, None, None]:
    """Serve the stub node on a local port for the duration of a test."""
    server_thread = _ServerThread(stub_node)
    server_thread.start()
    server_thread.ready.wait(timeout=10.0)
    if server_thread.error:
        pytest.fail(f"Failed to start stub beacon node: {server_thread.error}")

    yield f"http://127.0.0.1:{server_thread.port}"

    server_thread.stop()
    server_thread.join(timeout=5.0)


@pytest.fixture
def unused_url() -> str:
    """URL on which nothing is listening."""
    import socket

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return f"http://127.0.0.1:{port}"
