"""beaconctl - query an Ethereum beacon node for status and sync committee membership."""

from .chaintime import ChainTime
from .client import RemoteBeaconClient
from .config import Config
from .exceptions import BeaconctlError

__all__ = [
    "BeaconctlError",
    "ChainTime",
    "Config",
    "RemoteBeaconClient",
]
