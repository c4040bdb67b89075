"""Recovery driver: the per-config state machine run once at startup.

For every managed name, in order:

    conf valid  -> merge if upgraded, else nothing to do
    back valid  -> restore conf from back, then merge if upgraded
    otherwise   -> initialize base and conf from orig, seal orig

"Upgraded" means the `orig` sidecar is missing or no longer matches
`orig`. Every branch ends with a valid conf. A failure on one name is
logged and recorded, and the pass moves on to the next name; the next
boot re-runs the whole pass.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from config_keeper.config import Snapshot, StoreConfig
from config_keeper.errors import ConfigKeeperError
from config_keeper.merge import PatchStrategy, get_strategy
from config_keeper.recovery.ledger import ChecksumLedger
from config_keeper.recovery.merger import MergeEngine, MergeOutcome
from config_keeper.recovery.snapshots import SnapshotManager

logger = logging.getLogger(__name__)


class RecoveryAction(Enum):
    """What the driver did (or would do) for one managed config."""
    UNCHANGED = "unchanged"
    MERGED = "merged"
    RESTORED = "restored"
    RESTORED_MERGED = "restored-merged"
    INITIALIZED = "initialized"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RecoveryResult:
    """Result of recovering one managed config.

    Attributes:
        name: Managed config name
        action: Branch taken by the state machine
        merge_outcome: Set when an upgrade merge ran
        error: Error message if recovery failed
        duration_ms: Time spent on this name
    """
    name: str
    action: RecoveryAction = RecoveryAction.UNCHANGED
    merge_outcome: Optional[MergeOutcome] = None
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "action": self.action.value,
            "merge_outcome": self.merge_outcome.value if self.merge_outcome else None,
            "success": self.success,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass
class RecoverySummary:
    """Results of a full recovery pass."""
    results: List[RecoveryResult] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def failed(self) -> List[str]:
        return [r.name for r in self.results if not r.success]

    @property
    def success(self) -> bool:
        return not self.failed

    def get(self, name: str) -> Optional[RecoveryResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "failed": self.failed,
            "duration_ms": self.duration_ms,
            "results": [r.to_dict() for r in self.results],
        }


class RecoveryDriver:
    """Brings every managed config to a valid conf.

    Usage:
        driver = RecoveryDriver(StoreConfig(
            config_dir=Path("/etc/overlay"),
            readonly_root=Path("/rom/etc"),
            names=["hostapd", "dnsmasq"],
        ))
        summary = driver.run()
        if not summary.success:
            print(f"Unresolved: {summary.failed}")
    """

    def __init__(
        self,
        config: StoreConfig,
        ledger: Optional[ChecksumLedger] = None,
        strategy: Optional[PatchStrategy] = None,
    ):
        self.config = config
        self.ledger = ledger or ChecksumLedger(config.checksum_suffix, config.algorithm)
        self.strategy = strategy or get_strategy(config.merge_strategy.value)

    def snapshots(self, name: str) -> SnapshotManager:
        return SnapshotManager(self.config.managed(name), self.ledger)

    def run(self) -> RecoverySummary:
        """Recover every managed config in order."""
        start_time = time.perf_counter()
        summary = RecoverySummary()

        for name in self.config.names:
            summary.results.append(self.recover(name))

        summary.duration_ms = (time.perf_counter() - start_time) * 1000

        if summary.success:
            logger.info(
                f"Recovery pass complete: {len(summary.results)} config(s) in "
                f"{summary.duration_ms:.1f} ms"
            )
        else:
            logger.error(
                f"Recovery pass incomplete, unresolved: {', '.join(summary.failed)}"
            )
        return summary

    def recover(self, name: str) -> RecoveryResult:
        """Run the state machine for one name. Never raises for I/O errors."""
        start_time = time.perf_counter()
        result = RecoveryResult(name=name)
        snapshots = self.snapshots(name)

        try:
            if not snapshots.has_reference() and not snapshots.has_local_state():
                logger.debug(f"{name}: not shipped on this system, skipping")
                result.action = RecoveryAction.SKIPPED
            else:
                self._drive(snapshots, result)
        except (OSError, ConfigKeeperError) as e:
            logger.exception(f"{name}: recovery failed")
            result.action = RecoveryAction.FAILED
            result.error = str(e)

        result.duration_ms = (time.perf_counter() - start_time) * 1000
        return result

    def _drive(self, snapshots: SnapshotManager, result: RecoveryResult) -> None:
        name = snapshots.name

        if snapshots.is_valid(Snapshot.CONF):
            if self._upgraded(snapshots):
                result.merge_outcome = self._merge(snapshots)
                result.action = RecoveryAction.MERGED
            else:
                result.action = RecoveryAction.UNCHANGED

        elif snapshots.is_valid(Snapshot.BACK):
            logger.warning(f"{name}: conf is not valid, restoring from backup")
            snapshots.restore_backup()
            if self._upgraded(snapshots):
                result.merge_outcome = self._merge(snapshots)
                result.action = RecoveryAction.RESTORED_MERGED
            else:
                snapshots.discard(Snapshot.BACK)
                result.action = RecoveryAction.RESTORED

        else:
            if snapshots.has_local_state():
                logger.warning(f"{name}: neither conf nor backup is valid, reinitializing")
            self._initialize(snapshots)
            result.action = RecoveryAction.INITIALIZED

    def _upgraded(self, snapshots: SnapshotManager) -> bool:
        if snapshots.refresh_original():
            logger.warning(f"{snapshots.name}: local factory default was missing or torn, refetched")
        return self.ledger.is_stale_or_absent(snapshots.path(Snapshot.ORIG))

    def _merge(self, snapshots: SnapshotManager) -> MergeOutcome:
        return MergeEngine(snapshots, self.strategy).merge()

    def _initialize(self, snapshots: SnapshotManager) -> None:
        snapshots.refresh_original()

        snapshots.copy_and_seal(Snapshot.ORIG, Snapshot.BASE)
        snapshots.copy_and_seal(Snapshot.ORIG, Snapshot.CONF)
        snapshots.seal(Snapshot.ORIG)
        logger.info(f"{snapshots.name}: initialized from factory default")

    def predict(self, snapshots: SnapshotManager) -> RecoveryAction:
        """The action `recover` would take right now, without touching anything."""
        if not snapshots.has_reference() and not snapshots.has_local_state():
            return RecoveryAction.SKIPPED

        upgraded = snapshots.upgrade_pending()
        if snapshots.is_valid(Snapshot.CONF):
            return RecoveryAction.MERGED if upgraded else RecoveryAction.UNCHANGED
        if snapshots.is_valid(Snapshot.BACK):
            return RecoveryAction.RESTORED_MERGED if upgraded else RecoveryAction.RESTORED
        return RecoveryAction.INITIALIZED

    def check_status(self) -> dict:
        """Report snapshot validity and pending work for every name."""
        status = {}
        for name in self.config.names:
            snapshots = self.snapshots(name)
            status[name] = {
                "reference_present": snapshots.has_reference(),
                "upgrade_pending": snapshots.upgrade_pending(),
                "next_action": self.predict(snapshots).value,
                "snapshots": snapshots.describe(),
            }
        return status
