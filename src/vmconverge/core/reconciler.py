"""Reconciliation of one desired-state record against the inventory.

This module holds the per-cycle context and the three steps run for each
record:

1. Match: query powered-off VMs by name and keep exact-name hits only.
2. Diff & apply: compare RAM and CPU, coalescing any differences into a
   single reconfiguration call (suppressed in test mode).
3. Power intent: power on the VM when it was reconfigured and the record
   asks for it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from vmconverge.core.exceptions import RemoteCallError, VmconvergeError
from vmconverge.models.desired_state import DesiredStateRecord, PowerIntent
from vmconverge.models.vm import InventoryVm, PowerState
from vmconverge.utils.logging import get_logger

if TYPE_CHECKING:
    from vmconverge.core.vsphere import VSphereClient

logger = get_logger("reconciler")


class OutcomeAction(str, Enum):
    """What happened to a VM during a cycle."""

    RECONFIGURED = "reconfigured"
    WOULD_RECONFIGURE = "would_reconfigure"
    UNCHANGED = "unchanged"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class VmOutcome:
    """Per-VM result of a cycle, used for summaries."""

    name: str
    action: OutcomeAction
    changes: dict[str, int] = field(default_factory=dict)
    powered_on: bool = False
    message: str = ""


@dataclass
class CycleResult:
    """Aggregate result of one cycle.

    Attributes:
        error_count: Number of errors recorded; any error halts the loop.
        changed_vm_names: VMs reconfigured in this cycle.
        outcomes: Per-record outcomes in processing order.
    """

    error_count: int = 0
    changed_vm_names: set[str] = field(default_factory=set)
    outcomes: list[VmOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the cycle recorded no errors."""
        return self.error_count == 0


@dataclass
class CycleContext:
    """State shared by the components during one cycle.

    A fresh context is created for every cycle and discarded at its end.

    Args:
        client: vCenter client.
        dry_run: Test mode; mutating calls are suppressed.
    """

    client: VSphereClient
    dry_run: bool = False
    result: CycleResult = field(default_factory=CycleResult)
    log: logging.Logger = field(default=logger)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        """Log an error and count it against the cycle."""
        self.result.error_count += 1
        if exc is not None:
            message = f"{message}: {exc}"
        self.log.error(message)

    def record(self, outcome: VmOutcome) -> None:
        self.result.outcomes.append(outcome)


@dataclass
class ChangeResult:
    """Result of the diff & apply step for one VM."""

    changes: dict[str, int] = field(default_factory=dict)
    applied: bool = False
    failed: bool = False

    @property
    def required(self) -> bool:
        """True when at least one dimension differs."""
        return bool(self.changes)


class Reconciler:
    """Converges individual VMs toward their desired state.

    Args:
        context: The current cycle context.

    Example:
        >>> context = CycleContext(client=client, dry_run=True)
        >>> reconciler = Reconciler(context)
        >>> for record in records:
        ...     reconciler.reconcile_record(record)
        >>> context.result.error_count
        0
    """

    def __init__(self, context: CycleContext) -> None:
        self.context = context

    @property
    def log(self) -> logging.Logger:
        return self.context.log

    def match(self, record: DesiredStateRecord) -> list[InventoryVm]:
        """Find the powered-off VMs that this record applies to.

        Every query result is re-checked for exact name equality; the
        remote filter is not trusted to be exact.

        Args:
            record: Desired-state record.

        Returns:
            Exact-name matches (possibly empty).

        Raises:
            ConnectionFailedError: If the inventory query fails.
        """
        candidates = self.context.client.query_vms(record.name, PowerState.POWERED_OFF)

        if not candidates:
            self.log.info(f"No powered off VM named '{record.name}' found, skipping")
            return []

        matched: list[InventoryVm] = []
        for candidate in candidates:
            if candidate.name != record.name:
                self.log.warning(
                    f"VM '{candidate.name}' returned for '{record.name}' is not "
                    f"uniquely identified, skipping"
                )
                continue
            matched.append(candidate)
        return matched

    def _compare(
        self,
        vm: InventoryVm,
        label: str,
        actual: int,
        desired: int,
        unit: str = "",
    ) -> bool:
        """Log the comparison of one dimension and return True if it differs."""
        actual_str = f"{actual}{unit}"
        desired_str = f"{desired}{unit}"
        if actual == desired:
            self.log.info(f"VM '{vm.name}' {label} already fine ({actual_str})")
            return False
        self.log.info(
            f"VM '{vm.name}' {label} is {actual_str}, desired {desired_str}: change required"
        )
        return True

    def apply_changes(self, vm: InventoryVm, record: DesiredStateRecord) -> ChangeResult:
        """Compare RAM and CPU and apply the differences in one call.

        Dimensions not set on the record are never evaluated.

        Args:
            vm: Matched VM snapshot.
            record: Its desired state.

        Returns:
            The computed changes and whether they were applied.
        """
        result = ChangeResult()

        if record.ram is not None and self._compare(
            vm, "RAM", vm.memory_gib, record.ram, unit=" GB"
        ):
            result.changes["memory_mib"] = record.ram_mib or 0

        if record.cpu is not None and self._compare(vm, "CPU", vm.num_cpu, record.cpu):
            result.changes["num_cpu"] = record.cpu

        if not result.required:
            return result

        if self.context.dry_run:
            self.log.info(f"VM '{vm.name}' NOT changed, Test Mode requested")
            return result

        self.log.info(f"Reconfiguring VM '{vm.name}': {_describe(result.changes)}")
        try:
            self.context.client.reconfigure(
                vm,
                num_cpu=result.changes.get("num_cpu"),
                memory_mib=result.changes.get("memory_mib"),
            )
        except RemoteCallError as e:
            result.failed = True
            self.context.error(
                f"VM '{vm.name}' reconfiguration ({_describe(result.changes)}) failed", e
            )
            return result

        result.applied = True
        self.context.result.changed_vm_names.add(vm.name)
        self.log.info(f"VM '{vm.name}' reconfigured")
        return result

    def apply_power_intent(
        self,
        vm: InventoryVm,
        record: DesiredStateRecord,
        changed: bool,
    ) -> bool:
        """Apply the record's power intent after a reconfiguration.

        Power-on only happens when the VM was reconfigured in this cycle.
        The power-on task is submitted and not awaited.

        Args:
            vm: Matched VM snapshot.
            record: Its desired state.
            changed: Whether a reconfiguration happened (or would have,
                in test mode).

        Returns:
            True if a power-on request was submitted.
        """
        if not changed:
            self.log.info(f"VM '{vm.name}' was not reconfigured, power state left as is")
            return False

        intent = record.power_intent
        if intent is PowerIntent.NO:
            self.log.info(f"VM '{vm.name}' start not requested, leaving powered off")
            return False
        if intent is PowerIntent.INVALID:
            self.log.warning(
                f"VM '{vm.name}' has invalid start configuration '{record.start}', "
                f"no power action taken"
            )
            return False

        if self.context.dry_run:
            self.log.info(f"VM '{vm.name}' NOT powered on, Test Mode requested")
            return False

        self.log.info(f"VM '{vm.name}' start requested, powering on")
        try:
            # Fire and forget: the returned task is intentionally not observed.
            self.context.client.power_on(vm)
        except RemoteCallError as e:
            self.context.error(f"VM '{vm.name}' power on failed", e)
            return False
        return True

    def reconcile_vm(self, vm: InventoryVm, record: DesiredStateRecord) -> VmOutcome:
        """Run diff & apply and the power step for one matched VM."""
        change = self.apply_changes(vm, record)

        if change.failed:
            action = OutcomeAction.FAILED
        elif change.applied:
            action = OutcomeAction.RECONFIGURED
        elif change.required:
            action = OutcomeAction.WOULD_RECONFIGURE
        else:
            action = OutcomeAction.UNCHANGED

        changed = change.applied or (self.context.dry_run and change.required)
        powered_on = self.apply_power_intent(vm, record, changed)
        return VmOutcome(
            name=vm.name,
            action=action,
            changes=dict(change.changes),
            powered_on=powered_on,
        )

    def reconcile_record(self, record: DesiredStateRecord) -> None:
        """Match, diff, apply and power one desired-state record.

        Errors are logged and counted on the context rather than raised.
        """
        self.log.info(f"Processing VM '{record.name}'")
        if not record.has_changes_requested:
            self.log.info(f"VM '{record.name}' has no CPU or RAM change requested")

        try:
            matches = self.match(record)
        except VmconvergeError as e:
            self.context.error(f"VM '{record.name}' lookup failed", e)
            self.context.record(
                VmOutcome(name=record.name, action=OutcomeAction.FAILED, message=str(e))
            )
            return

        if not matches:
            self.context.record(VmOutcome(name=record.name, action=OutcomeAction.NOT_FOUND))
            return

        for vm in matches:
            self.context.record(self.reconcile_vm(vm, record))


def _describe(changes: dict[str, int]) -> str:
    parts = []
    if "num_cpu" in changes:
        parts.append(f"CPU={changes['num_cpu']}")
    if "memory_mib" in changes:
        parts.append(f"memory={changes['memory_mib']} MB")
    return ", ".join(parts)
