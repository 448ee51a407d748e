"""
Errors raised by the AeroSpace IPC client.

Command-level failures are not errors: they come back as a failed
CommandResult. Everything here means the request itself did not complete.
"""


class AerospaceError(Exception):
    """Base class for AeroSpace client errors."""


class TransportFault(AerospaceError):
    """Socket could not be created, connected, written or read."""


class AddressResolutionError(TransportFault):
    """The per-user socket path could not be derived."""


class DecodeFault(TransportFault):
    """The daemon replied with something that is not a valid response."""
