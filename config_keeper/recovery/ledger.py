"""Checksum ledger: sidecar files that decide whether a snapshot is valid.

Each sidecar holds one `md5sum`-compatible line:

    <checksum>  <absolute-path>

The path is resolved (symlink-free) when sealing, so a snapshot reached
through a symlinked or bind-mounted directory checks out the same way.
A snapshot is valid only when the file exists, its sidecar exists, the
recorded path is the snapshot's own resolved path and the checksum of
the current content matches.
"""

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from config_keeper.utils.hashing import fast_hash_file

logger = logging.getLogger(__name__)

# md5sum writes two spaces in text mode and " *" in binary mode
_SIDECAR_LINE = re.compile(r"^(?P<checksum>[0-9a-fA-F]+) [ *](?P<path>.+)$")


class CheckStatus(Enum):
    """Outcome of checking one snapshot against its sidecar."""
    OK = "ok"
    MISSING_FILE = "missing-file"
    MISSING_SIDECAR = "missing-sidecar"
    MALFORMED_SIDECAR = "malformed-sidecar"
    PATH_MISMATCH = "path-mismatch"
    CHECKSUM_MISMATCH = "checksum-mismatch"
    UNREADABLE = "unreadable"


@dataclass
class SidecarRecord:
    """Parsed content of a sidecar file."""
    checksum: str
    path: str

    def to_line(self) -> str:
        return f"{self.checksum}  {self.path}\n"


@dataclass
class LedgerCheck:
    """Result of verifying a snapshot.

    Attributes:
        path: The snapshot that was checked
        status: Why it is (or isn't) valid
        expected: Checksum recorded in the sidecar, if any
        actual: Checksum of the current content, if computed
    """
    path: Path
    status: CheckStatus
    expected: Optional[str] = None
    actual: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.status is CheckStatus.OK

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "status": self.status.value,
            "valid": self.is_valid,
            "expected": self.expected,
            "actual": self.actual,
        }


class ChecksumLedger:
    """Computes and verifies checksum sidecars.

    Attributes:
        suffix: Appended to a snapshot path to name its sidecar
        algorithm: Hash algorithm passed to fast_hash_file
    """

    def __init__(self, suffix: str = ".md5", algorithm: str = "md5"):
        if not suffix:
            raise ValueError("Sidecar suffix must not be empty")
        self.suffix = suffix
        self.algorithm = algorithm

    def sidecar_path(self, path: Path) -> Path:
        path = Path(path)
        return path.with_name(path.name + self.suffix)

    def compute_sidecar(self, path: Path) -> Path:
        """Seal `path`: write (overwrite) its sidecar.

        Raises:
            OSError: If the file can't be read or the sidecar can't be written
        """
        resolved = Path(path).resolve()
        record = SidecarRecord(
            checksum=fast_hash_file(resolved, self.algorithm),
            path=str(resolved),
        )
        sidecar = self.sidecar_path(path)
        with open(sidecar, "w", encoding="utf-8") as f:
            f.write(record.to_line())
            f.flush()
            os.fsync(f.fileno())

        logger.debug(f"Sealed {resolved} ({record.checksum})")
        return sidecar

    def read_sidecar(self, path: Path) -> Optional[SidecarRecord]:
        """Parse the sidecar of `path`; None if absent, unreadable or malformed."""
        sidecar = self.sidecar_path(path)
        try:
            text = sidecar.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

        lines = text.splitlines()
        if len(lines) != 1:
            return None
        match = _SIDECAR_LINE.match(lines[0])
        if match is None:
            return None
        return SidecarRecord(
            checksum=match.group("checksum").lower(),
            path=match.group("path"),
        )

    def verify(self, path: Path) -> LedgerCheck:
        """Check `path` against its sidecar. Never raises."""
        path = Path(path)

        if not path.is_file():
            return LedgerCheck(path, CheckStatus.MISSING_FILE)
        if not self.sidecar_path(path).is_file():
            return LedgerCheck(path, CheckStatus.MISSING_SIDECAR)

        record = self.read_sidecar(path)
        if record is None:
            return LedgerCheck(path, CheckStatus.MALFORMED_SIDECAR)

        try:
            resolved = path.resolve()
            if record.path != str(resolved):
                return LedgerCheck(path, CheckStatus.PATH_MISMATCH, expected=record.checksum)
            actual = fast_hash_file(resolved, self.algorithm)
        except (OSError, ValueError) as e:
            logger.debug(f"Could not hash {path}: {e}")
            return LedgerCheck(path, CheckStatus.UNREADABLE, expected=record.checksum)

        if actual != record.checksum:
            return LedgerCheck(path, CheckStatus.CHECKSUM_MISMATCH, record.checksum, actual)
        return LedgerCheck(path, CheckStatus.OK, record.checksum, actual)

    def is_valid(self, path: Path) -> bool:
        return self.verify(path).is_valid

    def accepts(self, path: Path, source: Path) -> bool:
        """True if `path`'s sidecar would be valid for the content of `source`.

        Lets callers ask whether copying `source` over `path` would leave
        it valid, without copying. Never raises.
        """
        record = self.read_sidecar(path)
        if record is None or record.path != str(Path(path).resolve()):
            return False
        try:
            return fast_hash_file(source, self.algorithm) == record.checksum
        except (OSError, ValueError):
            return False

    def is_stale_or_absent(self, path: Path) -> bool:
        """True when `path` changed (or was never sealed) since its last seal.

        Applied to `orig`, this is the "upgraded" test.
        """
        return not self.is_valid(path)

    def remove_sidecar(self, path: Path) -> None:
        self.sidecar_path(path).unlink(missing_ok=True)
