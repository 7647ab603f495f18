"""Pytest configuration and fixtures for vmconverge tests.

This module provides shared fixtures for testing vmconverge components
including a mocked vCenter client, sample desired-state documents and
inventory VMs.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
import yaml

from vmconverge.core.vsphere import VSphereClient
from vmconverge.models.desired_state import DesiredStateRecord
from vmconverge.models.vm import InventoryVm, PowerState
from vmconverge.utils.logging import ROOT_LOGGER

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from click.testing import CliRunner


@pytest.fixture(autouse=True)
def reset_logging(caplog: pytest.LogCaptureFixture) -> Generator[None, None, None]:
    """Capture vmconverge INFO records and drop handlers added by a test."""
    caplog.set_level(logging.INFO, logger=ROOT_LOGGER)
    root_logger = logging.getLogger(ROOT_LOGGER)
    before = list(root_logger.handlers)
    yield
    for handler in list(root_logger.handlers):
        if handler not in before:
            root_logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mocked vCenter client with an empty inventory."""
    client = MagicMock(spec=VSphereClient)
    client.query_vms.return_value = []
    return client


def make_vm(
    name: str,
    num_cpu: int = 1,
    memory_mib: int = 1024,
    power_state: PowerState = PowerState.POWERED_OFF,
) -> InventoryVm:
    """Build an inventory snapshot."""
    return InventoryVm(
        name=name,
        power_state=power_state,
        num_cpu=num_cpu,
        memory_mib=memory_mib,
        moref=f"vm-{name}",
    )


@pytest.fixture
def vm_factory() -> Callable[..., InventoryVm]:
    """Expose make_vm to tests as a fixture."""
    return make_vm


@pytest.fixture
def record_scenario_a() -> DesiredStateRecord:
    """CPU-only record that never asks for a power-on."""
    return DesiredStateRecord(name="test", ram="", cpu="+1", start="no")


@pytest.fixture
def record_scenario_b() -> DesiredStateRecord:
    """RAM-only record that asks for a power-on."""
    return DesiredStateRecord(name="test2", ram="+1", cpu="", start="yes")


@pytest.fixture
def desired_csv(temp_dir: Path) -> Path:
    """Desired-state CSV with both scenario records."""
    path = temp_dir / "desired_state.csv"
    path.write_text("Name,RAM,CPU,Start\ntest,,+1,no\ntest2,+1,,yes\n")
    return path


@pytest.fixture
def sample_config_data(desired_csv: Path, temp_dir: Path) -> dict:
    """Create sample configuration data."""
    return {
        "vcenter": {
            "host": "vcenter.example.com",
            "port": 443,
            "username": "administrator@vsphere.local",
            "disable_ssl": True,
        },
        "agent": {
            "interval": 60,
            "dry_run": False,
            "desired_state": str(desired_csv),
        },
        "logging": {
            "level": "INFO",
            "directory": str(temp_dir / "logs"),
            "retention": 10,
        },
    }


@pytest.fixture
def temp_config_file(temp_dir: Path, sample_config_data: dict) -> Path:
    """Create a temporary config file with sample data."""
    config_path = temp_dir / "config.yaml"
    with config_path.open("w") as f:
        yaml.safe_dump(sample_config_data, f)
    return config_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    from click.testing import CliRunner

    return CliRunner()
