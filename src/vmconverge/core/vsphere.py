"""vCenter client built on pyVmomi.

This module provides the four remote capabilities the reconciliation
loop consumes:
- connect, reusing a live session when one is already open
- query VMs by power state and name filter
- submit a CPU/RAM reconfiguration and wait for it
- submit a power-on request without waiting for it
"""

from __future__ import annotations

import contextlib
import fnmatch
import ssl
from typing import Any

from pyVim.connect import Disconnect, SmartConnect
from pyVim.task import WaitForTask
from pyVmomi import vim, vmodl

from vmconverge.core.config import VCenterConfig
from vmconverge.core.exceptions import (
    AuthenticationError,
    ConnectionFailedError,
    PowerOnError,
    ReconfigureError,
)
from vmconverge.models.vm import InventoryVm, PowerState
from vmconverge.utils.logging import get_logger
from vmconverge.utils.retry import retry_with_backoff

logger = get_logger("vsphere")

REMOTE_ERRORS: tuple[type[Exception], ...] = (vmodl.MethodFault, OSError)

VM_PROPERTIES = [
    "name",
    "summary.runtime.powerState",
    "summary.config.numCpu",
    "summary.config.memorySizeMB",
]
RETRIEVE_PAGE_SIZE = 1000


class VSphereClient:
    """Thin wrapper around a pyVmomi service instance.

    Args:
        settings: vCenter connection settings.

    Example:
        >>> client = VSphereClient(VCenterConfig(host="vcenter.example.com"))
        >>> client.connect()
        >>> vms = client.query_vms("web-01", PowerState.POWERED_OFF)
        >>> client.reconfigure(vms[0], num_cpu=4)
        >>> client.disconnect()
    """

    def __init__(self, settings: VCenterConfig) -> None:
        self.settings = settings
        self._si: Any = None

    @property
    def server(self) -> str:
        """The configured endpoint."""
        return self.settings.host or ""

    def _session_alive(self) -> bool:
        """Check whether the current session still answers."""
        if self._si is None:
            return False
        try:
            self._si.CurrentTime()
            return True
        except REMOTE_ERRORS as e:
            logger.debug(f"Existing session to {self.server} is no longer usable: {e}")
            return False

    @retry_with_backoff(
        max_attempts=3,
        base_delay=2.0,
        exceptions=(ConnectionFailedError,),
        give_up_on=(AuthenticationError,),
    )
    def _smart_connect(self) -> Any:
        """Open a new session.

        Raises:
            AuthenticationError: If the credentials are rejected (not retried).
            ConnectionFailedError: If the endpoint cannot be reached.
        """
        context = None
        if self.settings.disable_ssl:
            context = ssl._create_unverified_context()

        logger.debug(
            f"Connecting to {self.server}:{self.settings.port} as {self.settings.username}"
        )
        try:
            return SmartConnect(
                host=self.server,
                user=self.settings.username,
                pwd=self.settings.password,
                port=self.settings.port,
                sslContext=context,
            )
        except vim.fault.InvalidLogin as e:
            raise AuthenticationError(self.server, self.settings.username) from e
        except REMOTE_ERRORS as e:
            raise ConnectionFailedError(self.server, str(e)) from e

    def connect(self) -> None:
        """Connect to vCenter, reusing the open session when it is alive.

        Raises:
            ConnectionFailedError: If no endpoint is set or connecting fails.
        """
        if not self.server:
            raise ConnectionFailedError("<unset>", "no endpoint configured")

        if self._session_alive():
            logger.debug(f"Reusing open connection to {self.server}")
            return

        self._si = None
        self._si = self._smart_connect()
        logger.info(f"Connected to {self.server}")

    @property
    def connected(self) -> bool:
        """True once a session has been established."""
        return self._si is not None

    def _content(self) -> Any:
        if self._si is None:
            raise ConnectionFailedError(self.server or "<unset>", "not connected")
        return self._si.RetrieveContent()

    def query_vms(
        self,
        name: str,
        power_state: PowerState | None = None,
    ) -> list[InventoryVm]:
        """Query VMs by name filter and power state.

        The name filter uses wildcard semantics, so results are not
        guaranteed to be exact-name matches.

        Args:
            name: Name or wildcard pattern.
            power_state: Only return VMs in this state (None for all).

        Returns:
            Matching VMs as inventory snapshots.

        Raises:
            ConnectionFailedError: If there is no session or the query fails.
        """
        try:
            inventory = self._collect_vm_properties()
        except REMOTE_ERRORS as e:
            raise ConnectionFailedError(self.server, f"VM query failed: {e}") from e

        found: list[InventoryVm] = []
        for obj, props in inventory:
            vm_name = props.get("name", "")
            if vm_name != name and not fnmatch.fnmatchcase(vm_name, name):
                continue
            snapshot = self._snapshot(obj, props)
            if power_state is not None and snapshot.power_state != power_state:
                continue
            found.append(snapshot)

        logger.debug(f"Query for '{name}' returned {len(found)} VM(s)")
        return found

    @staticmethod
    def _filter_spec(view: Any) -> Any:
        """PropertyCollector filter reading VM_PROPERTIES through a container view."""
        traversal = vim.PropertyCollector.TraversalSpec(
            name="viewTraversal",
            type=vim.view.ContainerView,
            path="view",
            skip=False,
        )
        return vim.PropertyCollector.FilterSpec(
            objectSet=[
                vim.PropertyCollector.ObjectSpec(obj=view, selectSet=[traversal], skip=True)
            ],
            propSet=[
                vim.PropertyCollector.PropertySpec(
                    type=vim.VirtualMachine, pathSet=VM_PROPERTIES, all=False
                )
            ],
        )

    def _collect_vm_properties(self) -> list[tuple[Any, dict[str, Any]]]:
        """Fetch name and sizing of every VM in one batched retrieval."""
        content = self._content()
        view = content.viewManager.CreateContainerView(
            content.rootFolder, [vim.VirtualMachine], True
        )
        try:
            collector = content.propertyCollector
            result = collector.RetrievePropertiesEx(
                specSet=[self._filter_spec(view)],
                options=vim.PropertyCollector.RetrieveOptions(maxObjects=RETRIEVE_PAGE_SIZE),
            )
            objects = list(result.objects or []) if result else []
            token = result.token if result else None
            while token:
                result = collector.ContinueRetrievePropertiesEx(token)
                objects.extend(result.objects or [])
                token = result.token
        finally:
            view.Destroy()

        return [(oc.obj, {p.name: p.val for p in (oc.propSet or [])}) for oc in objects]

    @staticmethod
    def _snapshot(obj: Any, props: dict[str, Any]) -> InventoryVm:
        """Build an InventoryVm from collected properties."""
        return InventoryVm(
            name=props.get("name", ""),
            power_state=PowerState(str(props.get("summary.runtime.powerState"))),
            num_cpu=props.get("summary.config.numCpu") or 0,
            memory_mib=props.get("summary.config.memorySizeMB") or 0,
            moref=str(obj._moId),
        )

    def _resolve(self, vm: InventoryVm) -> Any:
        """Return the live managed object for a snapshot."""
        if self._si is None:
            raise ConnectionFailedError(self.server or "<unset>", "not connected")
        return vim.VirtualMachine(vm.moref, self._si._stub)

    def reconfigure(
        self,
        vm: InventoryVm,
        num_cpu: int | None = None,
        memory_mib: int | None = None,
    ) -> None:
        """Apply CPU and/or memory changes in a single reconfiguration task.

        Args:
            vm: Target VM.
            num_cpu: New vCPU count (None leaves it unchanged).
            memory_mib: New memory size in MiB (None leaves it unchanged).

        Raises:
            ReconfigureError: If the task cannot be submitted or fails.
        """
        changes: dict[str, int] = {}
        spec = vim.vm.ConfigSpec()
        if num_cpu is not None:
            spec.numCPUs = num_cpu
            changes["num_cpu"] = num_cpu
        if memory_mib is not None:
            spec.memoryMB = memory_mib
            changes["memory_mib"] = memory_mib

        if not changes:
            return

        try:
            task = self._resolve(vm).ReconfigVM_Task(spec=spec)
            WaitForTask(task)
        except (ConnectionFailedError, *REMOTE_ERRORS) as e:
            message = getattr(e, "msg", None) or str(e)
            raise ReconfigureError(vm.name, message, changes) from e

        logger.debug(f"Reconfigured {vm.name}: {changes}")

    def power_on(self, vm: InventoryVm) -> Any:
        """Submit a power-on request and return immediately.

        The returned task is deliberately not awaited; its outcome is not
        checked by the caller.

        Args:
            vm: Target VM.

        Returns:
            The submitted vim.Task.

        Raises:
            PowerOnError: If the request cannot be submitted.
        """
        try:
            return self._resolve(vm).PowerOnVM_Task()
        except (ConnectionFailedError, *REMOTE_ERRORS) as e:
            message = getattr(e, "msg", None) or str(e)
            raise PowerOnError(vm.name, message) from e

    def disconnect(self) -> None:
        """Close the session if one is open."""
        if self._si is not None:
            with contextlib.suppress(*REMOTE_ERRORS):
                Disconnect(self._si)
            self._si = None
            logger.debug(f"Disconnected from {self.server}")

    def __enter__(self) -> VSphereClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.disconnect()
