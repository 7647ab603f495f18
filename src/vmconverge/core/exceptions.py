"""Custom exceptions for vmconverge.

This module defines a hierarchy of exceptions used throughout vmconverge
so that each reconciliation fault can be logged with its context and
counted against the current cycle.

Exception Hierarchy:
    VmconvergeError (base)
    ├── ConfigurationError
    │   └── ConfigNotFoundError
    ├── DesiredStateError
    ├── ConnectionFailedError
    │   └── AuthenticationError
    └── RemoteCallError
        ├── ReconfigureError
        └── PowerOnError
"""

from __future__ import annotations

from typing import Any


class VmconvergeError(Exception):
    """Base exception for all vmconverge errors.

    Args:
        message: Human-readable error message.
        details: Optional dictionary with additional error context.

    Attributes:
        message: The error message.
        details: Additional context about the error.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(VmconvergeError):
    """Raised when the agent configuration is invalid.

    Examples:
        - Invalid YAML syntax in config file
        - Missing vCenter endpoint when starting the loop
        - Out of range values (negative interval)
    """


class ConfigNotFoundError(ConfigurationError):
    """Raised when the configuration file cannot be found.

    Args:
        path: The path where the config was expected.
    """

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Configuration file not found: {path}",
            details={"path": path},
        )
        self.path = path


class DesiredStateError(VmconvergeError):
    """Raised when the desired-state document cannot be used.

    Covers a missing file, unparsable content, malformed records and
    documents that yield zero records.

    Args:
        path: The desired-state document path.
        message: Description of the problem.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(
            f"Desired state unreadable: {message}",
            details={"path": path},
        )
        self.path = path


class ConnectionFailedError(VmconvergeError):
    """Raised when the vCenter endpoint cannot be reached or logged in to.

    Args:
        server: The vCenter endpoint.
        message: Description of the connection failure.
    """

    def __init__(self, server: str, message: str) -> None:
        super().__init__(
            f"Connection to '{server}' failed: {message}",
            details={"server": server},
        )
        self.server = server


class AuthenticationError(ConnectionFailedError):
    """Raised when vCenter rejects the configured credentials.

    Args:
        server: The vCenter endpoint.
        username: The login user.
    """

    def __init__(self, server: str, username: str | None = None) -> None:
        msg = "invalid login"
        if username:
            msg = f"invalid login for user '{username}'"
        super().__init__(server, msg)
        self.username = username


class RemoteCallError(VmconvergeError):
    """Raised when a mutating call against a VM fails.

    Args:
        vm_name: The name of the VM.
        operation: The operation that failed (e.g., 'reconfigure').
        message: Description of the failure.
    """

    def __init__(self, vm_name: str, operation: str, message: str) -> None:
        super().__init__(
            f"Failed to {operation} VM '{vm_name}': {message}",
            details={"vm_name": vm_name, "operation": operation},
        )
        self.vm_name = vm_name
        self.operation = operation


class ReconfigureError(RemoteCallError):
    """Raised when a CPU/RAM reconfiguration task fails.

    Args:
        vm_name: The name of the VM.
        message: Description of the failure.
        changes: The requested changes, e.g. ``{"num_cpu": 2}``.
    """

    def __init__(
        self,
        vm_name: str,
        message: str,
        changes: dict[str, int] | None = None,
    ) -> None:
        super().__init__(vm_name, "reconfigure", message)
        self.changes = changes or {}
        self.details.update(self.changes)


class PowerOnError(RemoteCallError):
    """Raised when a power-on request cannot be submitted.

    Args:
        vm_name: The name of the VM.
        message: Description of the failure.
    """

    def __init__(self, vm_name: str, message: str) -> None:
        super().__init__(vm_name, "power on", message)
