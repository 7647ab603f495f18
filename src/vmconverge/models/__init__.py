"""Data models for vmconverge.

This module contains Pydantic models for desired-state records and
inventory VMs.
"""

from vmconverge.models.desired_state import DesiredStateRecord, PowerIntent
from vmconverge.models.vm import InventoryVm, PowerState

__all__ = [
    "DesiredStateRecord",
    "InventoryVm",
    "PowerIntent",
    "PowerState",
]
