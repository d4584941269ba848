"""
Workflow Exceptions

Error taxonomy raised by the device share workflow and the store transport.
Every error names the workflow phase it was raised from.
"""

from typing import Optional


class DeviceShareError(Exception):
    """Base class for every error surfaced by the device share workflow."""

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.phase = phase


class DeviceNotFound(DeviceShareError):
    """The requested device does not exist in the source database."""


class NotShareable(DeviceShareError):
    """The device lacks a serial number or a billing plan record."""


class WaitTimeout(DeviceShareError):
    """A cross-database state never appeared within the polling budget."""

    def __init__(self, message: str, attempts: int, elapsed_ms: int, phase: Optional[str] = None):
        super().__init__(f"{message} after {attempts} attempts ({elapsed_ms}ms)", phase=phase)
        self.attempts = attempts
        self.elapsed_ms = elapsed_ms


class PropagationTimeout(WaitTimeout):
    """The share created in the source database never showed up in the target."""


class ActivationTimeout(WaitTimeout):
    """The source share never reached Active."""


class TerminationTimeout(WaitTimeout):
    """The source share never reached Terminated after a target-side termination."""


class RemoteStoreError(DeviceShareError):
    """Base class for failures reported by, or while reaching, a store."""

    def __init__(
        self,
        message: str,
        database: Optional[str] = None,
        method: Optional[str] = None,
        error_name: Optional[str] = None,
        phase: Optional[str] = None,
    ):
        super().__init__(message, phase=phase)
        self.database = database
        self.method = method
        self.error_name = error_name


class RemoteUnavailable(RemoteStoreError):
    """The store could not be reached or answered with a server error."""


class RemoteRejected(RemoteStoreError):
    """The store refused the call (validation, permissions, bad credentials)."""
