"""Beacon API data types."""

from dataclasses import dataclass, field
from enum import Enum


class Capability(str, Enum):
    NODE_VERSION = "node version"
    NODE_SYNCING = "node sync status"
    SYNC_COMMITTEES = "sync committees"
    GENESIS = "genesis"
    SPEC = "chain spec"


@dataclass
class SyncState:
    """Response from /eth/v1/node/syncing."""

    head_slot: int
    sync_distance: int
    is_syncing: bool = False
    is_optimistic: bool = False
    el_offline: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "SyncState":
        return cls(
            head_slot=int(data.get("head_slot", 0)),
            sync_distance=int(data.get("sync_distance", 0)),
            is_syncing=bool(data.get("is_syncing", False)),
            is_optimistic=bool(data.get("is_optimistic", False)),
            el_offline=bool(data.get("el_offline", False)),
        )


@dataclass
class SyncCommittee:
    """Response from /eth/v1/beacon/states/{state_id}/sync_committees."""

    validators: list[int] = field(default_factory=list)
    validator_aggregates: list[list[int]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "SyncCommittee":
        return cls(
            validators=[int(v) for v in data.get("validators", [])],
            validator_aggregates=[
                [int(v) for v in aggregate]
                for aggregate in data.get("validator_aggregates", [])
            ],
        )
