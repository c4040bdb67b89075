"""Three-way merge of user customizations onto a new factory default.

The patch between `base` (previous factory default) and `conf` (live
config) captures every change made since the last merge. After an
upgrade that patch is replayed on the new `orig`:

1. compute the patch base -> conf (written to `<name>.patch`)
2. back up conf -> back
3. reset conf to the new orig
4. apply the patch; on any rejected hunk keep the plain new orig
5. seal conf
6. drop the patch file and the backup
7. seal orig, marking this upgrade as processed
8. promote orig -> base for the next upgrade

Without a valid `base` there is nothing to diff against, so conf is
reset straight to orig and only steps 7 and 8 follow.
"""

import logging
from enum import Enum

from config_keeper.config import Snapshot
from config_keeper.merge.base import PatchStrategy
from config_keeper.recovery.snapshots import SnapshotManager

logger = logging.getLogger(__name__)


class MergeOutcome(Enum):
    """How an upgrade merge ended."""
    MERGED = "merged"       # customizations carried over (or there were none)
    CONFLICT = "conflict"   # customizations discarded, conf == new orig
    RESET = "reset"         # no baseline, conf == new orig


class MergeEngine:
    """Runs the upgrade merge for one managed config.

    Attributes:
        snapshots: Snapshot manager of the managed config
        strategy: Backend that diffs and patches
    """

    def __init__(self, snapshots: SnapshotManager, strategy: PatchStrategy):
        self.snapshots = snapshots
        self.strategy = strategy

    def merge(self) -> MergeOutcome:
        """Merge the live conf onto the new orig.

        Expects a valid conf and a local orig.

        Raises:
            OSError: If a copy or seal fails
            MergeToolError: If the merge backend fails
        """
        snapshots = self.snapshots

        if snapshots.is_valid(Snapshot.BASE):
            outcome = self._three_way()
        else:
            logger.warning(
                f"{snapshots.name}: no valid baseline, resetting conf to the new factory default"
            )
            snapshots.copy_and_seal(Snapshot.ORIG, Snapshot.CONF)
            outcome = MergeOutcome.RESET

        snapshots.seal(Snapshot.ORIG)
        snapshots.copy_and_seal(Snapshot.ORIG, Snapshot.BASE)

        logger.info(f"{snapshots.name}: upgrade processed ({outcome.value})")
        return outcome

    def _three_way(self) -> MergeOutcome:
        snapshots = self.snapshots
        name = snapshots.name

        new_default = snapshots.read_text(Snapshot.ORIG)
        result = self.strategy.merge(
            snapshots.read_text(Snapshot.BASE),
            snapshots.read_text(Snapshot.CONF),
            new_default,
        )
        if result.has_changes:
            snapshots.write_patch(result.patch)

        snapshots.backup()
        snapshots.copy(Snapshot.ORIG, Snapshot.CONF)

        if result.clean:
            if result.content != new_default:
                snapshots.write_text(Snapshot.CONF, result.content)
            outcome = MergeOutcome.MERGED
        else:
            logger.warning(
                f"{name}: {result.rejected_hunks} hunk(s) did not apply to the new "
                f"factory default; local customizations were discarded"
            )
            outcome = MergeOutcome.CONFLICT

        snapshots.seal(Snapshot.CONF)

        snapshots.discard_patch()
        snapshots.discard(Snapshot.BACK)
        return outcome
