"""Reconciliation cycle controller.

The controller is a two-state machine. While RUNNING it repeats cycles;
the first cycle that records an error moves it to HALTED and the loop
ends. Restarting the process is left to an external supervisor.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path

from vmconverge.core.desired_state import load_desired_state
from vmconverge.core.exceptions import ConnectionFailedError, DesiredStateError
from vmconverge.core.reconciler import CycleContext, CycleResult, Reconciler
from vmconverge.core.vsphere import VSphereClient
from vmconverge.utils.logging import CycleLogFiles, CycleLogPaths, get_logger, prune_logs

logger = get_logger("controller")


class ControllerState(str, Enum):
    """Lifecycle states of the reconciliation loop."""

    RUNNING = "running"
    HALTED = "halted"


class ReconciliationController:
    """Runs reconciliation cycles until one of them records an error.

    Each cycle:
        1. starts with a fresh context (no errors carried over)
        2. sleeps for ``interval`` seconds
        3. opens timestamped Output/Error log files
        4. prunes old log files
        5. connects to vCenter (failure is counted, the pass still runs)
        6. loads the desired-state document (unreadable = warning, no work)
        7. reconciles every record
        8. halts the loop if any error was counted

    Args:
        client: vCenter client.
        desired_state_path: Path to the desired-state document.
        log_dir: Directory for per-cycle log files.
        interval: Seconds to sleep at the top of each cycle.
        dry_run: Test mode; no mutating calls are made.
        retention: Log files kept per category.
        debug_log: Also write DEBUG records to the output file.
        sleep: Sleep function (injectable for tests).
        clock: Clock used for log file timestamps.
    """

    def __init__(
        self,
        client: VSphereClient,
        desired_state_path: Path,
        log_dir: Path,
        interval: float = 300,
        dry_run: bool = False,
        retention: int = 10,
        debug_log: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.client = client
        self.desired_state_path = Path(desired_state_path)
        self.log_dir = Path(log_dir)
        self.interval = interval
        self.dry_run = dry_run
        self.retention = retention
        self.debug_log = debug_log
        self._sleep = sleep
        self._clock = clock
        self.state = ControllerState.RUNNING
        self.cycles = 0
        self.last_result: CycleResult | None = None

    def run(self, max_cycles: int | None = None) -> CycleResult | None:
        """Repeat cycles until one records an error.

        Args:
            max_cycles: Stop after this many cycles (None runs forever).

        Returns:
            The result of the last cycle.
        """
        try:
            while self.state is ControllerState.RUNNING:
                if max_cycles is not None and self.cycles >= max_cycles:
                    break
                result = self.run_cycle()
                if not result.ok:
                    self.state = ControllerState.HALTED
        finally:
            self.client.disconnect()
        return self.last_result

    def run_cycle(self, delay: bool = True) -> CycleResult:
        """Run one full pass over the desired-state document.

        Args:
            delay: Sleep for the configured interval first.

        Returns:
            The cycle's aggregated result.
        """
        context = CycleContext(client=self.client, dry_run=self.dry_run)

        if delay and self.interval > 0:
            self._sleep(self.interval)

        paths = CycleLogPaths.for_timestamp(self.log_dir, self._clock())
        with CycleLogFiles(paths, debug=self.debug_log):
            self.cycles += 1
            mode = "Test Mode" if self.dry_run else "live mode"
            logger.info(f"Reconciliation cycle {self.cycles} started ({mode})")

            for removed in prune_logs(self.log_dir, keep=self.retention):
                logger.debug(f"Removed old log file {removed.name}")

            self._connect(context)
            self._reconcile_all(context)

            result = context.result
            if result.ok:
                logger.info(
                    f"Reconciliation cycle {self.cycles} finished, "
                    f"{len(result.changed_vm_names)} VM(s) changed"
                )
            else:
                logger.error(
                    f"Reconciliation cycle {self.cycles} finished with "
                    f"{result.error_count} error(s), stopping"
                )

        self.last_result = result
        return result

    def _connect(self, context: CycleContext) -> None:
        try:
            self.client.connect()
        except ConnectionFailedError as e:
            context.error("Could not connect to vCenter", e)

    def _reconcile_all(self, context: CycleContext) -> None:
        try:
            records = load_desired_state(self.desired_state_path)
        except DesiredStateError as e:
            logger.warning(f"{e}, skipping reconciliation for this cycle")
            return
        except Exception as e:
            context.error("Unexpected error while loading the desired state", e)
            return

        logger.info(f"Loaded {len(records)} desired-state record(s)")
        reconciler = Reconciler(context)
        for record in records:
            try:
                reconciler.reconcile_record(record)
            except Exception as e:
                context.error(f"Unexpected error while processing VM '{record.name}'", e)
