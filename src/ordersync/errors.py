"""Exception types for the order sync subsystem.

Only RegistryError is fatal to a pass. Adapter errors are recovered into
failed SyncOutcome rows by the orchestrator.
"""

BODY_PREFIX_CHARS = 200


class OrderSyncError(RuntimeError):
    """Base class for all order sync errors."""


class RegistryError(OrderSyncError):
    """Raised when the active credential lookup fails."""


class UnknownChannelError(OrderSyncError, ValueError):
    """Raised for a registry channel name outside the supported set."""


class AdapterConfigError(OrderSyncError):
    """Raised when the adapter endpoint is not configured."""


class AdapterTransportError(OrderSyncError):
    """Raised when the adapter call fails below HTTP (timeout, DNS, reset)."""


class AdapterHTTPError(OrderSyncError):
    """Raised on a non-2xx response from the adapter endpoint.

    Only the first BODY_PREFIX_CHARS characters of the body are kept.
    """

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = (body or "")[:BODY_PREFIX_CHARS]
        super().__init__(f"HTTP {status_code}: {self.body}")
