"""Desired-state models for vmconverge.

This module defines the per-VM records parsed from the desired-state
document. Records are immutable for the duration of a cycle.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PowerIntent(str, Enum):
    """Declared power instruction for a VM."""

    YES = "yes"
    NO = "no"
    INVALID = "invalid"

    @classmethod
    def parse(cls, value: str | None) -> PowerIntent:
        """Map a free-form ``Start`` value to a power intent.

        Args:
            value: Raw value from the document.

        Returns:
            YES or NO for the recognized tokens, INVALID for anything else.
        """
        token = (value or "").strip().lower()
        if token == cls.YES.value:
            return cls.YES
        if token == cls.NO.value:
            return cls.NO
        return cls.INVALID


def _parse_whole_number(value: Any, what: str) -> int | None:
    """Parse an optional whole number given as text ("" means unset)."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError as e:
        raise ValueError(f"Not a number: {value!r}") from e
    if not number.is_integer():
        raise ValueError(f"{what} must be a whole number: {value!r}")
    return int(number)


class DesiredStateRecord(BaseModel):
    """Target CPU, RAM and power intent for one VM.

    Args:
        name: VM name, matched exactly against the inventory.
        cpu: Target vCPU count (None = no change requested).
        ram: Target RAM in whole GiB (None = no change requested).
        start: Raw ``Start`` value as written in the document.

    Example:
        >>> record = DesiredStateRecord(name="test2", ram="+1", cpu="", start="yes")
        >>> record.ram, record.cpu, record.power_intent
        (1, None, <PowerIntent.YES: 'yes'>)
    """

    model_config = ConfigDict(frozen=True)

    name: Annotated[str, Field(min_length=1, description="VM name")]
    cpu: int | None = Field(default=None, description="Target vCPU count")
    ram: int | None = Field(default=None, description="Target RAM in whole GiB")
    start: str = Field(default="", description="Raw power intent value")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        """Trim the VM name; YAML numbers such as 1234 are read back as text."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("cpu", mode="before")
    @classmethod
    def parse_cpu(cls, v: Any) -> int | None:
        """Parse the CPU count, accepting signed strings like "+1"."""
        return _parse_whole_number(v, "CPU count")

    @field_validator("ram", mode="before")
    @classmethod
    def parse_ram(cls, v: Any) -> int | None:
        """Parse the RAM size in whole GiB, accepting signed strings like "+1"."""
        return _parse_whole_number(v, "RAM size")

    @field_validator("start", mode="before")
    @classmethod
    def normalize_start(cls, v: Any) -> str:
        """Keep the raw start value as a string.

        YAML reads unquoted yes/no as booleans; map them back.
        """
        if v is None:
            return ""
        if isinstance(v, bool):
            return PowerIntent.YES.value if v else PowerIntent.NO.value
        return str(v)

    @property
    def power_intent(self) -> PowerIntent:
        """Power intent derived from the raw start value."""
        return PowerIntent.parse(self.start)

    @property
    def ram_mib(self) -> int | None:
        """Target RAM converted to MiB."""
        if self.ram is None:
            return None
        return self.ram * 1024

    @property
    def has_changes_requested(self) -> bool:
        """True when at least one of CPU or RAM is set."""
        return self.cpu is not None or self.ram is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = self.model_dump()
        data["power_intent"] = self.power_intent.value
        return data
