"""Snapshot manager: the orig/base/conf/back copies of one managed config.

Every copy drops the destination's sidecar before writing and reseals it
afterwards, so an interrupted copy is never mistaken for a committed one.
All file mutations go through `_write_file` and `_remove_file`.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Union

from config_keeper.config import ManagedConfig, Snapshot
from config_keeper.errors import MissingOriginError
from config_keeper.recovery.ledger import ChecksumLedger, LedgerCheck

logger = logging.getLogger(__name__)

# Text snapshots are read and written byte-transparently
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


def _write_file(path: Path, data: bytes) -> None:
    """Write `data` to `path` and fsync it before returning."""
    with open(path, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())


def _remove_file(path: Path) -> None:
    Path(path).unlink(missing_ok=True)


class SnapshotManager:
    """Copies, seals and checks the snapshots of a single managed config.

    Attributes:
        managed: Paths for the managed config
        ledger: Checksum ledger used to seal and verify snapshots
    """

    def __init__(self, managed: ManagedConfig, ledger: ChecksumLedger):
        self.managed = managed
        self.ledger = ledger

    @property
    def name(self) -> str:
        return self.managed.name

    def path(self, snapshot: Snapshot) -> Path:
        return self.managed.snapshot_path(snapshot)

    def exists(self, snapshot: Snapshot) -> bool:
        return self.path(snapshot).is_file()

    def check(self, snapshot: Snapshot) -> LedgerCheck:
        return self.ledger.verify(self.path(snapshot))

    def is_valid(self, snapshot: Snapshot) -> bool:
        return self.ledger.is_valid(self.path(snapshot))

    def seal(self, snapshot: Snapshot) -> None:
        self.ledger.compute_sidecar(self.path(snapshot))

    def read_text(self, snapshot: Snapshot) -> str:
        with open(self.path(snapshot), "r", encoding=TEXT_ENCODING,
                  errors=TEXT_ERRORS, newline="") as f:
            return f.read()

    def write_text(self, snapshot: Snapshot, content: str) -> None:
        """Overwrite a snapshot's content, leaving it unsealed."""
        self.write_bytes(snapshot, content.encode(TEXT_ENCODING, TEXT_ERRORS))

    def write_bytes(self, snapshot: Snapshot, data: bytes) -> None:
        target = self.path(snapshot)
        _remove_file(self.ledger.sidecar_path(target))
        _write_file(target, data)

    def copy(self, src: Snapshot, dst: Snapshot) -> None:
        """Copy `src` over `dst`, leaving `dst` unsealed (and therefore invalid)."""
        self.write_bytes(dst, self.path(src).read_bytes())

    def copy_and_seal(self, src: Snapshot, dst: Snapshot) -> None:
        """Copy `src` over `dst` and seal `dst`.

        Raises:
            OSError: If the copy or the seal can't complete
        """
        self.copy(src, dst)
        self.seal(dst)
        logger.debug(f"{self.name}: {src.value} -> {dst.value} sealed")

    def backup(self) -> None:
        """Take the safety copy conf -> back."""
        self.copy_and_seal(Snapshot.CONF, Snapshot.BACK)

    def restore_backup(self) -> None:
        """Put the backup back in place: back -> conf."""
        self.copy_and_seal(Snapshot.BACK, Snapshot.CONF)

    def discard(self, snapshot: Snapshot) -> None:
        """Delete a snapshot and its sidecar; missing files are fine."""
        target = self.path(snapshot)
        _remove_file(self.ledger.sidecar_path(target))
        _remove_file(target)

    def write_patch(self, patch: str) -> Path:
        target = self.managed.patch_path
        _write_file(target, patch.encode(TEXT_ENCODING, TEXT_ERRORS))
        return target

    def discard_patch(self) -> None:
        _remove_file(self.managed.patch_path)

    def has_reference(self) -> bool:
        """True if the read-only media ships this config."""
        reference = self.managed.readonly_path
        return reference is not None and reference.is_file()

    def has_local_state(self) -> bool:
        return any(self.exists(snapshot) for snapshot in Snapshot)

    def fetch_original(self) -> None:
        """Copy the factory default from read-only media to the local `orig`.

        The local copy is left unsealed; sealing `orig` is what marks it
        as processed.

        Raises:
            MissingOriginError: If the read-only reference does not exist
        """
        reference = self.managed.readonly_path
        if not self.has_reference():
            raise MissingOriginError(
                self.name,
                [p for p in (self.path(Snapshot.ORIG), reference) if p is not None],
            )

        _write_file(self.path(Snapshot.ORIG), reference.read_bytes())
        logger.info(f"{self.name}: fetched factory default from {reference}")

    def original_outdated(self) -> bool:
        """True when the local `orig` has to be (re)fetched from read-only media.

        That is when it is missing, or unsealed and different from the
        reference (an interrupted fetch leaves exactly that). A sealed
        `orig` is never replaced.
        """
        if not self.exists(Snapshot.ORIG):
            return True
        if self.is_valid(Snapshot.ORIG) or not self.has_reference():
            return False
        return self.path(Snapshot.ORIG).read_bytes() != self.managed.readonly_path.read_bytes()

    def refresh_original(self) -> bool:
        """Fetch the local `orig` if it is outdated.

        Returns:
            True if `orig` was (re)written

        Raises:
            MissingOriginError: If `orig` is missing and there is no reference
        """
        if not self.original_outdated():
            return False
        self.fetch_original()
        return True

    def upgrade_pending(self) -> bool:
        """Whether `orig` would count as upgraded once refreshed. Read-only."""
        if self.original_outdated() and self.has_reference():
            return not self.ledger.accepts(self.path(Snapshot.ORIG), self.managed.readonly_path)
        return not self.is_valid(Snapshot.ORIG)

    def describe(self) -> Dict[str, Union[dict, bool]]:
        """Validity of every snapshot, for status output."""
        report: Dict[str, Union[dict, bool]] = {
            snapshot.value: self.check(snapshot).to_dict() for snapshot in Snapshot
        }
        report["patch_present"] = self.managed.patch_path.exists()
        return report
