"""Crash recovery for managed config files.

This package provides:
- ledger: Checksum sidecars that define snapshot validity
- snapshots: Copy/seal/restore of the orig, base, conf and back snapshots
- merger: Three-way merge of customizations after an upgrade
- driver: The per-config recovery state machine
"""

from config_keeper.recovery.ledger import ChecksumLedger, CheckStatus, LedgerCheck
from config_keeper.recovery.snapshots import SnapshotManager
from config_keeper.recovery.merger import MergeEngine, MergeOutcome
from config_keeper.recovery.driver import (
    RecoveryAction,
    RecoveryDriver,
    RecoveryResult,
    RecoverySummary,
)

__all__ = [
    "ChecksumLedger",
    "CheckStatus",
    "LedgerCheck",
    "SnapshotManager",
    "MergeEngine",
    "MergeOutcome",
    "RecoveryAction",
    "RecoveryDriver",
    "RecoveryResult",
    "RecoverySummary",
]
