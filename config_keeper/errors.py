"""Exception types raised by Config Keeper.

A checksum miss is never an exception; it is an ordinary input to the
recovery state machine. These types cover the cases that leave a
managed config unresolved.
"""


class ConfigKeeperError(Exception):
    """Base class for Config Keeper errors."""


class MissingOriginError(ConfigKeeperError, FileNotFoundError):
    """Neither a local `orig` nor a read-only reference copy exists."""

    def __init__(self, name: str, looked_in: list):
        self.name = name
        self.looked_in = looked_in
        where = ", ".join(str(p) for p in looked_in) or "<nowhere>"
        super().__init__(f"No factory default for '{name}' (looked in: {where})")


class MergeToolError(ConfigKeeperError):
    """The merge backend itself failed (as opposed to a hunk conflict)."""


class SnapshotStateError(ConfigKeeperError):
    """A snapshot operation was requested from a state that can't support it."""
