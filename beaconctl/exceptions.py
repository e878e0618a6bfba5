"""Exceptions for beaconctl."""


class BeaconctlError(Exception):
    """Base class for errors reported at the command boundary."""


class BeaconAPIError(BeaconctlError):
    """Error from Beacon API."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"Beacon API error {status}: {message}")


class NotFoundError(BeaconAPIError):
    """Requested object not found."""

    def __init__(self, message: str):
        super().__init__(404, message)


class ConnectionFailedError(BeaconctlError):
    """Beacon node unreachable or connection refused."""

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"failed to connect to beacon node {address}: {reason}")


class CapabilityMissingError(BeaconctlError):
    """Client does not provide a required capability."""

    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"beacon node client does not support {capability}")


class EmptyResultError(BeaconctlError):
    """A query succeeded but returned nothing."""


class InvalidInputError(BeaconctlError):
    """Input rejected before any query was made."""


class ConfigError(BeaconctlError):
    """Configuration could not be loaded."""
