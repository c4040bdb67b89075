"""Config Keeper - crash-consistent configuration files for embedded devices.

Keeps each managed config file in one of three states across power loss
during a write or an OS upgrade: its last committed version, a restored
backup, or a fresh factory default. Never a torn file.

Key Features:
    - Checksum sidecars (md5sum format) as the single test of validity
    - Backup-before-write protocol for programs that edit configs in place
    - Three-way merge of local changes onto new factory defaults after upgrades
    - Pluggable merge backends (pure Python difflib, or diff/patch)
    - Idempotent recovery pass, safe to re-run after a crash at any point

Quick Start:
    from config_keeper import ConfigStore, StoreConfig
    from pathlib import Path

    store = ConfigStore(StoreConfig(
        config_dir=Path("/etc/overlay"),
        readonly_root=Path("/rom/etc"),
        names=["hostapd", "dnsmasq"],
    ))

    # Early in boot, before anything reads its config
    summary = store.recover()

    # Later, when a program changes a config
    with store.writer.edit("hostapd") as conf_path:
        conf_path.write_text("channel=6\\n")

Classes:
    ConfigStore: Main interface
    StoreConfig: Store-wide configuration
    ManagedConfig: Paths of one managed config
    RecoveryDriver: The per-config recovery state machine
    ConfigWriter: Write-protocol helper
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .config import (
    ManagedConfig,
    MergeStrategyName,
    Snapshot,
    StoreConfig,
)
from .errors import (
    ConfigKeeperError,
    MergeToolError,
    MissingOriginError,
    SnapshotStateError,
)
from .manager import ConfigStore
from .merge import MergeResult, PatchStrategy, get_strategy
from .recovery import (
    ChecksumLedger,
    MergeEngine,
    MergeOutcome,
    RecoveryAction,
    RecoveryDriver,
    RecoveryResult,
    RecoverySummary,
    SnapshotManager,
)
from .writer import ConfigWriter

__all__ = [
    "__version__",
    "__license__",
    # Main classes
    "ConfigStore",
    "StoreConfig",
    "ManagedConfig",
    "ConfigWriter",
    # Enums
    "MergeStrategyName",
    "Snapshot",
    "RecoveryAction",
    "MergeOutcome",
    # Components
    "ChecksumLedger",
    "SnapshotManager",
    "MergeEngine",
    "RecoveryDriver",
    "RecoveryResult",
    "RecoverySummary",
    "PatchStrategy",
    "MergeResult",
    "get_strategy",
    # Errors
    "ConfigKeeperError",
    "MergeToolError",
    "MissingOriginError",
    "SnapshotStateError",
]


def create_store(
    config_dir: str,
    names: list,
    readonly_root: str = None,
    merge_strategy: str = "python",
) -> ConfigStore:
    """Convenience function to create a configured ConfigStore.

    Args:
        config_dir: Writable directory holding the snapshots
        names: Managed config names
        readonly_root: Read-only mount with the factory `<name>.orig` files
        merge_strategy: "python" or "shell"

    Returns:
        Configured ConfigStore instance

    Example:
        store = create_store("/etc/overlay", ["hostapd"], readonly_root="/rom/etc")
    """
    return ConfigStore(StoreConfig(
        config_dir=config_dir,
        readonly_root=readonly_root,
        names=list(names),
        merge_strategy=merge_strategy,
    ))
