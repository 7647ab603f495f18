"""Tests for desired-state and config CLI commands."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from vmconverge.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


class TestDesiredShow:
    """Tests for 'vmconverge desired show'."""

    def test_show_table(
        self,
        runner: CliRunner,
        temp_config_file: Path,
    ) -> None:
        """Test the table uses the document from the config file."""
        result = runner.invoke(cli, ["--config", str(temp_config_file), "desired", "show"])

        assert result.exit_code == 0
        assert "test2" in result.output

    def test_show_json(self, runner: CliRunner, desired_csv: Path) -> None:
        """Test JSON output."""
        result = runner.invoke(
            cli, ["desired", "show", "--file", str(desired_csv), "--format", "json"]
        )

        assert result.exit_code == 0
        assert '"power_intent": "yes"' in result.output

    def test_show_warns_on_invalid_start(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that invalid start values are pointed out."""
        path = temp_dir / "vms.csv"
        path.write_text("Name,RAM,CPU,Start\nweb,2,,later\n")

        result = runner.invoke(cli, ["desired", "show", "--file", str(path)])

        assert result.exit_code == 0
        assert "Invalid start configuration for: web" in result.output

    def test_show_missing(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that an unreadable document exits 1."""
        result = runner.invoke(
            cli, ["desired", "show", "--file", str(temp_dir / "missing.csv")]
        )

        assert result.exit_code == 1


class TestConfigCommands:
    """Tests for 'vmconverge config'."""

    def test_init_and_validate(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test creating and validating an example config."""
        path = temp_dir / "new" / "config.yaml"

        init = runner.invoke(cli, ["--config", str(path), "config", "init"])
        validate = runner.invoke(cli, ["--config", str(path), "config", "validate"])

        assert init.exit_code == 0
        assert path.exists()
        assert validate.exit_code == 0
        assert "vcenter.example.com" in validate.output

    def test_init_refuses_overwrite(self, runner: CliRunner, temp_config_file: Path) -> None:
        """Test that init needs --force for an existing file."""
        result = runner.invoke(cli, ["--config", str(temp_config_file), "config", "init"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_show_masks_password(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that config show hides the password."""
        path = temp_dir / "config.yaml"
        path.write_text("vcenter:\n  host: vc\n  password: hunter2\n")

        result = runner.invoke(cli, ["--config", str(path), "config", "show"])

        assert result.exit_code == 0
        assert "hunter2" not in result.output

    def test_path(self, runner: CliRunner, temp_config_file: Path) -> None:
        """Test printing the config path."""
        result = runner.invoke(cli, ["--config", str(temp_config_file), "config", "path"])

        assert result.exit_code == 0
        assert "file exists" in result.output

    def test_version(self, runner: CliRunner) -> None:
        """Test --version."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "vmconverge version" in result.output

    def test_debug_flag_accepted(self, runner: CliRunner, temp_config_file: Path) -> None:
        """Test that --debug is accepted ahead of any command."""
        result = runner.invoke(
            cli, ["--debug", "--config", str(temp_config_file), "config", "path"]
        )

        assert result.exit_code == 0
