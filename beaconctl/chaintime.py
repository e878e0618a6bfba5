"""Chain time: conversions between wall-clock time, slots, epochs and sync committee periods.

Values come from the connected node's genesis and spec endpoints. Any spec
value the node does not report falls back to the preset named by its
PRESET_BASE (mainnet when absent).
Reference: https://github.com/ethereum/consensus-specs/blob/master/specs/phase0/beacon-chain.md
"""

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .client import RemoteBeaconClient

logger = logging.getLogger(__name__)

PRESETS: dict[str, dict[str, int]] = {
    "mainnet": {
        "SECONDS_PER_SLOT": 12,
        "SLOTS_PER_EPOCH": 32,
        "EPOCHS_PER_SYNC_COMMITTEE_PERIOD": 256,
    },
    "minimal": {
        "SECONDS_PER_SLOT": 6,
        "SLOTS_PER_EPOCH": 8,
        "EPOCHS_PER_SYNC_COMMITTEE_PERIOD": 8,
    },
}


class ChainTime:
    """Chain time calculator for a single chain."""

    def __init__(
        self,
        genesis_time: int,
        seconds_per_slot: int = 12,
        slots_per_epoch: int = 32,
        epochs_per_sync_committee_period: int = 256,
        clock: Callable[[], float] = time.time,
    ):
        if seconds_per_slot <= 0 or slots_per_epoch <= 0 or epochs_per_sync_committee_period <= 0:
            raise ValueError("chain time parameters must be positive")
        self.genesis_time = genesis_time
        self.seconds_per_slot = seconds_per_slot
        self.slots_per_epoch = slots_per_epoch
        self.epochs_per_sync_committee_period = epochs_per_sync_committee_period
        self._clock = clock

    @classmethod
    async def from_node(
        cls,
        client: "RemoteBeaconClient",
        clock: Callable[[], float] = time.time,
    ) -> "ChainTime":
        """Build chain time from a node's genesis and spec."""
        genesis = await client.genesis()
        spec = await client.spec()

        preset_name = str(spec.get("PRESET_BASE", "mainnet")).lower()
        preset = PRESETS.get(preset_name, PRESETS["mainnet"])

        def value(key: str) -> int:
            if key in spec:
                return int(spec[key])
            logger.debug(f"{key} not reported by node, using {preset_name} preset value {preset[key]}")
            return preset[key]

        chain_time = cls(
            genesis_time=int(genesis.get("genesis_time", 0)),
            seconds_per_slot=value("SECONDS_PER_SLOT"),
            slots_per_epoch=value("SLOTS_PER_EPOCH"),
            epochs_per_sync_committee_period=value("EPOCHS_PER_SYNC_COMMITTEE_PERIOD"),
            clock=clock,
        )
        logger.debug(
            f"Chain time: genesis={chain_time.genesis_time} "
            f"seconds_per_slot={chain_time.seconds_per_slot} "
            f"slots_per_epoch={chain_time.slots_per_epoch} "
            f"epochs_per_sync_committee_period={chain_time.epochs_per_sync_committee_period}"
        )
        return chain_time

    def current_slot(self) -> int:
        """Return the current slot, or 0 before genesis."""
        now = self._clock()
        if now < self.genesis_time:
            return 0
        return int(now - self.genesis_time) // self.seconds_per_slot

    def current_epoch(self) -> int:
        return self.slot_to_epoch(self.current_slot())

    def slot_to_epoch(self, slot: int) -> int:
        """Return the epoch containing the slot."""
        return slot // self.slots_per_epoch

    def first_slot_of_epoch(self, epoch: int) -> int:
        return epoch * self.slots_per_epoch

    def epoch_to_sync_committee_period(self, epoch: int) -> int:
        return epoch // self.epochs_per_sync_committee_period

    def slot_to_sync_committee_period(self, slot: int) -> int:
        return self.epoch_to_sync_committee_period(self.slot_to_epoch(slot))

    def first_epoch_of_sync_period(self, period: int) -> int:
        """Return the first epoch of the given sync committee period."""
        return period * self.epochs_per_sync_committee_period

    def start_of_slot(self, slot: int) -> datetime:
        return datetime.fromtimestamp(
            self.genesis_time + slot * self.seconds_per_slot, tz=timezone.utc
        )

    def start_of_epoch(self, epoch: int) -> datetime:
        return self.start_of_slot(self.first_slot_of_epoch(epoch))
