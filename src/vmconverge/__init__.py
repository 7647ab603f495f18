"""vmconverge - keep vSphere VM CPU, RAM and power state converged.

This package runs a reconciliation loop that compares a desired-state
document (per-VM CPU count, RAM size and power intent) with the live
vCenter inventory and applies the minimal set of changes.

Example:
    $ vmconverge desired show
    $ vmconverge once --server vcenter.example.com --dry-run
    $ vmconverge run --server vcenter.example.com --interval 300
"""

__version__ = "0.1.0"

from vmconverge.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConnectionFailedError,
    DesiredStateError,
    PowerOnError,
    ReconfigureError,
    RemoteCallError,
    VmconvergeError,
)

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionFailedError",
    "DesiredStateError",
    "PowerOnError",
    "ReconfigureError",
    "RemoteCallError",
    "VmconvergeError",
    "__version__",
]
