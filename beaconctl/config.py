"""Configuration for beaconctl."""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from .exceptions import ConfigError
from .utils import parse_duration

logger = logging.getLogger(__name__)

# Public endpoint used when no connection is supplied.
DEFAULT_BEACON_NODE = "https://mainnet-consensus.attestant.io/"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

BOOL_FIELDS = ("allow_insecure_connections", "debug", "quiet", "verbose")


@dataclass(frozen=True)
class Config:
    """Command configuration."""

    connection: str = ""
    default_connection: str = DEFAULT_BEACON_NODE
    timeout: float = 30.0
    allow_insecure_connections: bool = False
    debug: bool = False
    quiet: bool = False
    verbose: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from a yaml file.

        Keys may use either the command-line spelling (allow-insecure-connections)
        or the attribute spelling (allow_insecure_connections).
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"failed to read configuration file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid configuration file {path}: {e}") from e

        return cls._from_dict(data or {})

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        if not isinstance(data, dict):
            raise ConfigError("configuration file must contain a mapping")

        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            attr_name = str(key).lower().replace("-", "_")
            if attr_name not in known:
                logger.warning(f"Ignoring unknown configuration key: {key}")
                continue
            values[attr_name] = value

        if "timeout" in values:
            try:
                values["timeout"] = parse_duration(values["timeout"])
            except ValueError as e:
                raise ConfigError(str(e)) from e

        for name in BOOL_FIELDS:
            if name in values and not isinstance(values[name], bool):
                raise ConfigError(f"{name} must be true or false, not {values[name]!r}")

        if "log_level" in values:
            level = str(values["log_level"]).upper()
            if level not in LOG_LEVELS:
                raise ConfigError(
                    f"log_level must be one of {', '.join(LOG_LEVELS)}, not {values['log_level']!r}"
                )
            values["log_level"] = level
        return cls(**values)

    def merged(self, **overrides) -> "Config":
        """Return a copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
