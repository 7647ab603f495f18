"""Core functionality for vmconverge.

This module contains the reconciliation logic, the vCenter client and
configuration management.
"""

from vmconverge.core.config import Config, ConfigManager
from vmconverge.core.controller import ControllerState, ReconciliationController
from vmconverge.core.desired_state import load_desired_state
from vmconverge.core.reconciler import CycleContext, CycleResult, Reconciler
from vmconverge.core.vsphere import VSphereClient

__all__ = [
    "Config",
    "ConfigManager",
    "ControllerState",
    "CycleContext",
    "CycleResult",
    "ReconciliationController",
    "Reconciler",
    "VSphereClient",
    "load_desired_state",
]
