"""Inventory VM models for vmconverge.

This module defines the snapshot of a virtual machine as reported by
vCenter at query time.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field


class PowerState(str, Enum):
    """vSphere power states, using the API's own string values."""

    POWERED_ON = "poweredOn"
    POWERED_OFF = "poweredOff"
    SUSPENDED = "suspended"


class InventoryVm(BaseModel):
    """A VM as observed in the vCenter inventory.

    The snapshot goes stale as soon as it is read; reconfiguration calls
    act on the live object referenced by ``moref``.

    Args:
        name: VM name.
        power_state: Power state at query time.
        num_cpu: Configured vCPU count.
        memory_mib: Configured memory in MiB.
        moref: Managed object reference id (e.g. "vm-42").

    Example:
        >>> vm = InventoryVm(
        ...     name="test2",
        ...     power_state=PowerState.POWERED_OFF,
        ...     num_cpu=1,
        ...     memory_mib=512,
        ...     moref="vm-42",
        ... )
        >>> vm.memory_gib
        0
    """

    name: Annotated[str, Field(min_length=1, description="VM name")]
    power_state: PowerState = Field(description="Power state at query time")
    num_cpu: int = Field(ge=0, description="vCPU count")
    memory_mib: int = Field(ge=0, description="Memory in MiB")
    moref: str = Field(default="", description="Managed object reference id")

    @property
    def memory_gib(self) -> int:
        """Memory in whole GiB, truncated (2047 MiB is 1 GiB)."""
        return self.memory_mib // 1024

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = self.model_dump(exclude_none=True)
        data["power_state"] = self.power_state.value
        return data
