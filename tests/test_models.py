"""Tests for desired-state and inventory models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from vmconverge.models.desired_state import DesiredStateRecord, PowerIntent
from vmconverge.models.vm import InventoryVm, PowerState


class TestDesiredStateRecord:
    """Tests for DesiredStateRecord."""

    def test_signed_numbers(self) -> None:
        """Test that "+1" parses as 1."""
        record = DesiredStateRecord(name="test", cpu="+1", ram="+1")
        assert record.cpu == 1
        assert record.ram == 1.0
        assert record.ram_mib == 1024

    def test_empty_means_unset(self) -> None:
        """Test that empty strings leave a dimension unset."""
        record = DesiredStateRecord(name="test", cpu="", ram="  ")
        assert record.cpu is None
        assert record.ram is None
        assert record.ram_mib is None
        assert record.has_changes_requested is False

    def test_fractional_ram_rejected(self) -> None:
        """Test that RAM must be given in whole GiB."""
        with pytest.raises(ValidationError, match="RAM size must be a whole number"):
            DesiredStateRecord(name="test", ram="1.5")

    def test_whole_float_ram(self) -> None:
        """Test that 2.0 is accepted as 2 GiB."""
        record = DesiredStateRecord(name="test", ram=2.0)
        assert record.ram == 2
        assert record.ram_mib == 2048

    def test_numeric_name(self) -> None:
        """Test that numeric names are kept as text."""
        assert DesiredStateRecord(name=1234).name == "1234"

    def test_fractional_cpu_rejected(self) -> None:
        """Test that CPU counts must be whole numbers."""
        with pytest.raises(ValidationError, match="whole number"):
            DesiredStateRecord(name="test", cpu="1.5")

    def test_non_numeric_rejected(self) -> None:
        """Test that text values are rejected."""
        with pytest.raises(ValidationError, match="Not a number"):
            DesiredStateRecord(name="test", ram="lots")

    def test_name_required(self) -> None:
        """Test that an empty name is rejected."""
        with pytest.raises(ValidationError):
            DesiredStateRecord(name="   ")

    def test_immutable(self) -> None:
        """Test that records cannot be modified during a cycle."""
        record = DesiredStateRecord(name="test", cpu="2")
        with pytest.raises(ValidationError):
            record.cpu = 4  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("start", "expected"),
        [
            ("yes", PowerIntent.YES),
            (" Yes ", PowerIntent.YES),
            ("no", PowerIntent.NO),
            ("NO", PowerIntent.NO),
            ("", PowerIntent.INVALID),
            ("y", PowerIntent.INVALID),
        ],
    )
    def test_power_intent(self, start: str, expected: PowerIntent) -> None:
        """Test mapping of the raw start value."""
        assert DesiredStateRecord(name="test", start=start).power_intent is expected

    def test_to_dict(self) -> None:
        """Test serialization includes the derived intent."""
        data = DesiredStateRecord(name="test", cpu="2", start="yes").to_dict()
        assert data["cpu"] == 2
        assert data["power_intent"] == "yes"


class TestInventoryVm:
    """Tests for InventoryVm."""

    @pytest.mark.parametrize(
        ("memory_mib", "expected"),
        [(512, 0), (1024, 1), (2047, 1), (2048, 2), (8192, 8)],
    )
    def test_memory_gib_truncates(self, memory_mib: int, expected: int) -> None:
        """Test integer division of MiB into GiB."""
        vm = InventoryVm(
            name="vm",
            power_state=PowerState.POWERED_OFF,
            num_cpu=1,
            memory_mib=memory_mib,
        )
        assert vm.memory_gib == expected

    def test_power_state_from_api_value(self) -> None:
        """Test that vSphere power state strings are accepted."""
        vm = InventoryVm(name="vm", power_state="poweredOn", num_cpu=2, memory_mib=1024)
        assert vm.power_state is PowerState.POWERED_ON
        assert vm.to_dict()["power_state"] == "poweredOn"
