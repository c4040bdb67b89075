"""ConfigStore - unified interface for crash-consistent config files.

Wires the checksum ledger, merge strategy, recovery driver and writer
together from a single StoreConfig.

Example:
    from config_keeper import ConfigStore, StoreConfig

    store = ConfigStore(StoreConfig(
        config_dir=Path("/etc/overlay"),
        readonly_root=Path("/rom/etc"),
        names=["hostapd"],
    ))
    summary = store.recover()
    store.writer.write("hostapd", new_text)
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from .config import StoreConfig
from .merge import get_strategy
from .recovery.driver import RecoveryDriver, RecoverySummary
from .recovery.ledger import ChecksumLedger
from .recovery.snapshots import SnapshotManager
from .writer import ConfigWriter

logger = logging.getLogger(__name__)


class ConfigStore:
    """Recovery and write access for a set of managed configs.

    Attributes:
        config: Store configuration
        ledger: Checksum ledger shared by every component
        strategy: Merge backend used for upgrades
        driver: Recovery state machine
        writer: Write-protocol helper for in-place modifications
    """

    def __init__(self, config: StoreConfig):
        self.config = config
        self.ledger = ChecksumLedger(config.checksum_suffix, config.algorithm)
        self.strategy = get_strategy(config.merge_strategy.value)

        if not self.strategy.is_available():
            logger.warning(
                f"Merge strategy '{self.strategy.name}' is not available on this system; "
                f"upgrade merges will fail"
            )

        self.driver = RecoveryDriver(config, self.ledger, self.strategy)
        self.writer = ConfigWriter(config, self.ledger)

    def snapshots(self, name: str) -> SnapshotManager:
        return self.driver.snapshots(name)

    def recover(self) -> RecoverySummary:
        """Run the recovery pass over every managed config."""
        logger.info(
            f"Recovering {len(self.config.names)} config(s) in {self.config.config_dir}"
        )
        return self.driver.run()

    def status(self) -> Dict[str, Any]:
        """Read-only report of the store and every managed config."""
        return {
            "config_dir": str(self.config.config_dir),
            "readonly_root": str(self.config.readonly_root) if self.config.readonly_root else None,
            "algorithm": self.config.algorithm,
            "merge_strategy": self.strategy.name,
            "merge_strategy_available": self.strategy.is_available(),
            "configs": self.driver.check_status(),
        }
