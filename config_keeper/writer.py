"""Helper for programs that modify a committed config in place.

Write protocol:
1. back up conf -> back and seal back
2. modify conf
3. seal conf, then drop the backup

A crash during step 2 leaves conf unsealed and back valid, so the next
recovery pass restores the backup. A crash after the conf seal leaves
conf valid and the stale backup is ignored.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from config_keeper.config import Snapshot, StoreConfig
from config_keeper.errors import SnapshotStateError
from config_keeper.recovery.ledger import ChecksumLedger
from config_keeper.recovery.snapshots import SnapshotManager

logger = logging.getLogger(__name__)


class ConfigWriter:
    """Commits in-place changes to managed configs.

    Only one writer may modify a given config at a time; the writer
    does not lock.

    Example:
        writer = ConfigWriter(store_config)
        with writer.edit("hostapd") as conf_path:
            text = conf_path.read_text()
            conf_path.write_text(text.replace("channel=1", "channel=6"))
    """

    def __init__(self, config: StoreConfig, ledger: Optional[ChecksumLedger] = None):
        self.config = config
        self.ledger = ledger or ChecksumLedger(config.checksum_suffix, config.algorithm)

    def _snapshots(self, name: str) -> SnapshotManager:
        if name not in self.config.names:
            raise KeyError(f"'{name}' is not a managed config")
        return SnapshotManager(self.config.managed(name), self.ledger)

    def begin(self, name: str) -> Path:
        """Back up the committed conf before modifying it.

        Returns:
            Path of the conf file to modify

        Raises:
            SnapshotStateError: If conf is not currently valid
        """
        snapshots = self._snapshots(name)
        if not snapshots.is_valid(Snapshot.CONF):
            raise SnapshotStateError(
                f"'{name}' has no valid conf to modify; run recovery first"
            )
        snapshots.backup()
        logger.debug(f"{name}: backup taken, conf open for writing")
        return snapshots.path(Snapshot.CONF)

    def commit(self, name: str) -> None:
        """Seal the modified conf and drop the backup."""
        snapshots = self._snapshots(name)
        snapshots.seal(Snapshot.CONF)
        snapshots.discard(Snapshot.BACK)
        logger.info(f"{name}: conf committed")

    def abort(self, name: str) -> None:
        """Put the backup back in place after a failed modification."""
        snapshots = self._snapshots(name)
        if snapshots.is_valid(Snapshot.BACK):
            snapshots.restore_backup()
            snapshots.discard(Snapshot.BACK)
            logger.warning(f"{name}: modification aborted, conf restored from backup")
        else:
            logger.error(f"{name}: modification aborted but no valid backup to restore")

    def write(self, name: str, content: Union[str, bytes], encoding: str = "utf-8") -> None:
        """Replace conf with `content` following the write protocol."""
        if isinstance(content, str):
            content = content.encode(encoding)

        self.begin(name)
        self._snapshots(name).write_bytes(Snapshot.CONF, content)
        self.commit(name)

    @contextmanager
    def edit(self, name: str) -> Iterator[Path]:
        """Context manager around begin/commit; aborts if the body raises."""
        conf_path = self.begin(name)
        try:
            yield conf_path
        except BaseException:
            self.abort(name)
            raise
        self.commit(name)
