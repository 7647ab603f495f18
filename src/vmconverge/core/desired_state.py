"""Desired-state document loading.

The document lists one record per VM with the fields ``Name``, ``RAM``,
``CPU`` and ``Start``. CSV (``.csv``) is the native format; YAML is accepted for
``.yaml``/``.yml`` files. Any other file type is rejected.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from vmconverge.core.exceptions import DesiredStateError
from vmconverge.models.desired_state import DesiredStateRecord
from vmconverge.utils.logging import get_logger

logger = get_logger("desired_state")

FIELD_MAP = {"name": "name", "ram": "ram", "cpu": "cpu", "start": "start"}
CSV_SUFFIXES = {".csv"}
YAML_SUFFIXES = {".yaml", ".yml"}


def _read_csv(path: Path) -> list[dict[str, Any]]:
    with path.open("r", newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            return []
        rows: list[dict[str, Any]] = []
        for row in reader:
            # DictReader files surplus fields under the None key
            if None in row:
                raise DesiredStateError(
                    str(path), f"line {reader.line_num} has more fields than the header"
                )
            if any((v or "").strip() for v in row.values()):
                rows.append(row)
        return rows


def _read_yaml(path: Path) -> list[dict[str, Any]]:
    with path.open("r") as f:
        data = yaml.safe_load(f)
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("vms", [])
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise DesiredStateError(str(path), "expected a list of VM records")
    return data


def _normalize(row: dict[str, Any]) -> dict[str, Any]:
    """Map document keys (Name, RAM, ...) onto record fields."""
    normalized: dict[str, Any] = {}
    for key, value in row.items():
        if key is None:
            continue
        field = FIELD_MAP.get(str(key).strip().lower())
        if field is not None:
            normalized[field] = value
    return normalized


def load_desired_state(path: Path | str) -> list[DesiredStateRecord]:
    """Load the desired-state document.

    Args:
        path: Path to a CSV or YAML document.

    Returns:
        Records in document order.

    Raises:
        DesiredStateError: If the document is missing, unparsable, holds a
            malformed record, or yields zero records.
    """
    path = Path(path)
    if not path.is_file():
        raise DesiredStateError(str(path), "file not found")

    suffix = path.suffix.lower()
    if suffix not in CSV_SUFFIXES | YAML_SUFFIXES:
        raise DesiredStateError(str(path), f"unsupported document type '{suffix or path.name}'")

    try:
        rows = _read_yaml(path) if suffix in YAML_SUFFIXES else _read_csv(path)
    except (OSError, csv.Error, yaml.YAMLError, ValueError, TypeError) as e:
        raise DesiredStateError(str(path), f"cannot parse document: {e}") from e

    records: list[DesiredStateRecord] = []
    for index, row in enumerate(rows, start=1):
        try:
            records.append(DesiredStateRecord.model_validate(_normalize(row)))
        except ValidationError as e:
            raise DesiredStateError(
                str(path), f"record {index} is invalid: {e.errors()[0]['msg']}"
            ) from e

    if not records:
        raise DesiredStateError(str(path), "no records found")

    logger.debug(f"Loaded {len(records)} desired-state record(s) from {path}")
    return records
