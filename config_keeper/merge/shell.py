"""Patch strategy that shells out to diff(1) and patch(1).

The three inputs are written to a scratch directory, `diff -u` produces
the patch and `patch` applies it to a copy of the new baseline. Exit
status 1 from patch means some hunk was rejected; anything above that
means the tool itself failed.
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from ..errors import MergeToolError
from .base import MergeResult, PatchStrategy

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
ERRORS = "surrogateescape"


def _write(path: Path, text: str) -> None:
    with open(path, "w", encoding=ENCODING, errors=ERRORS, newline="") as f:
        f.write(text)


def _read(path: Path) -> str:
    with open(path, "r", encoding=ENCODING, errors=ERRORS, newline="") as f:
        return f.read()


def _count_rejects(reject_file: Path) -> int:
    if not reject_file.exists():
        return 0
    return sum(1 for line in _read(reject_file).splitlines() if line.startswith("@@ "))


class ShellPatchStrategy(PatchStrategy):
    """Merge with the system diff and patch tools.

    Attributes:
        diff_cmd: diff executable
        patch_cmd: patch executable
        fuzz: Passed as --fuzz when set (patch's own default otherwise)
        timeout: Seconds allowed per subprocess
    """

    name = "shell"

    def __init__(
        self,
        diff_cmd: str = "diff",
        patch_cmd: str = "patch",
        fuzz: Optional[int] = None,
        timeout: float = 30.0,
    ):
        self.diff_cmd = diff_cmd
        self.patch_cmd = patch_cmd
        self.fuzz = fuzz
        self.timeout = timeout

    def is_available(self) -> bool:
        return shutil.which(self.diff_cmd) is not None and shutil.which(self.patch_cmd) is not None

    def _run(self, args: List[str], cwd: Path) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                encoding=ENCODING,
                errors=ERRORS,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise MergeToolError(f"{args[0]} failed to run: {e}") from e

    def merge(self, base_text: str, modified_text: str, new_base_text: str) -> MergeResult:
        with tempfile.TemporaryDirectory(prefix="config-keeper-") as scratch:
            scratch = Path(scratch)
            _write(scratch / "base", base_text)
            _write(scratch / "modified", modified_text)
            _write(scratch / "target", new_base_text)

            diff = self._run([self.diff_cmd, "-u", "base", "modified"], scratch)
            if diff.returncode == 0:
                return MergeResult.applied(new_base_text, "")
            if diff.returncode != 1:
                raise MergeToolError(
                    f"diff exited with {diff.returncode}: {diff.stderr.strip()}"
                )

            patch = diff.stdout
            _write(scratch / "changes.patch", patch)

            args = [
                self.patch_cmd, "--batch", "--silent", "--forward",
                "--no-backup-if-mismatch",
                "--reject-file=target.rej",
                "--output=merged",
            ]
            if self.fuzz is not None:
                args.append(f"--fuzz={self.fuzz}")
            args += ["target", "changes.patch"]

            applied = self._run(args, scratch)
            if applied.returncode == 0:
                return MergeResult.applied(_read(scratch / "merged"), patch)
            if applied.returncode == 1:
                rejected = _count_rejects(scratch / "target.rej")
                logger.debug(f"patch rejected {rejected} hunk(s): {applied.stdout.strip()}")
                return MergeResult.conflict(patch, rejected)

            raise MergeToolError(
                f"patch exited with {applied.returncode}: "
                f"{(applied.stderr or applied.stdout).strip()}"
            )
