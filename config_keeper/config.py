"""Configuration dataclasses for Config Keeper."""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Iterator, List, Optional
from enum import Enum

from config_keeper.utils.hashing import ALGORITHMS


class MergeStrategyName(Enum):
    """Backend used to carry customizations across an upgrade."""
    PYTHON = "python"   # difflib diff + exact-context hunk apply
    SHELL = "shell"     # diff -u / patch subprocesses


class Snapshot(Enum):
    """The four lifecycle copies kept for every managed config."""
    ORIG = "orig"
    BASE = "base"
    CONF = "conf"
    BACK = "back"


@dataclass
class ManagedConfig:
    """Paths for a single managed config file.

    Attributes:
        name: Logical name (e.g., "hostapd")
        config_dir: Writable directory holding the snapshots
        readonly_root: Read-only mount holding the factory reference copy
        checksum_suffix: Suffix appended to a snapshot path for its sidecar
    """
    name: str
    config_dir: Path
    readonly_root: Optional[Path] = None
    checksum_suffix: str = ".md5"

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.config_dir, str):
            self.config_dir = Path(self.config_dir)
        if isinstance(self.readonly_root, str):
            self.readonly_root = Path(self.readonly_root)

    def snapshot_path(self, snapshot: Snapshot) -> Path:
        return self.config_dir / f"{self.name}.{snapshot.value}"

    @property
    def orig_path(self) -> Path:
        return self.snapshot_path(Snapshot.ORIG)

    @property
    def base_path(self) -> Path:
        return self.snapshot_path(Snapshot.BASE)

    @property
    def conf_path(self) -> Path:
        return self.snapshot_path(Snapshot.CONF)

    @property
    def back_path(self) -> Path:
        return self.snapshot_path(Snapshot.BACK)

    @property
    def patch_path(self) -> Path:
        """Transient diff written while merging."""
        return self.config_dir / f"{self.name}.patch"

    @property
    def readonly_path(self) -> Optional[Path]:
        """Factory reference copy on read-only media, if a root is configured."""
        if self.readonly_root is None:
            return None
        return self.readonly_root / f"{self.name}.orig"


@dataclass
class StoreConfig:
    """Global configuration for a ConfigStore.

    Attributes:
        config_dir: Writable directory holding every managed config's snapshots
        readonly_root: Read-only mount with factory `<name>.orig` copies
        names: Managed config names, processed in this order
        checksum_suffix: Sidecar suffix
        algorithm: Hash algorithm recorded in sidecars ("md5", "sha256", "xxhash")
        merge_strategy: Backend for upgrade merges
        log_file: Path to log file (None for stderr only)
        json_logs: Emit JSON lines instead of text
    """
    config_dir: Path
    readonly_root: Optional[Path] = None
    names: List[str] = field(default_factory=list)
    checksum_suffix: str = ".md5"
    algorithm: str = "md5"
    merge_strategy: MergeStrategyName = MergeStrategyName.PYTHON
    log_file: Optional[Path] = None
    json_logs: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects and the strategy is an enum."""
        if isinstance(self.config_dir, str):
            self.config_dir = Path(self.config_dir)
        if isinstance(self.readonly_root, str):
            self.readonly_root = Path(self.readonly_root)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)
        if isinstance(self.merge_strategy, str):
            self.merge_strategy = MergeStrategyName(self.merge_strategy.lower())
        if self.algorithm not in ALGORITHMS:
            raise ValueError(
                f"Unknown checksum algorithm: {self.algorithm!r} (choose from {', '.join(ALGORITHMS)})"
            )
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"Duplicate managed config names: {self.names}")

    def managed(self, name: str) -> ManagedConfig:
        """Build the ManagedConfig for one name."""
        return ManagedConfig(
            name=name,
            config_dir=self.config_dir,
            readonly_root=self.readonly_root,
            checksum_suffix=self.checksum_suffix,
        )

    def managed_configs(self) -> Iterator[ManagedConfig]:
        for name in self.names:
            yield self.managed(name)

    @classmethod
    def from_file(cls, path: Path) -> "StoreConfig":
        """Load a StoreConfig from a JSON document.

        Raises:
            ValueError: On unknown keys or a missing config_dir
            OSError: If the file can't be read
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file must hold a JSON object: {path}")

        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")
        if "config_dir" not in data:
            raise ValueError(f"config_dir is required in {path}")

        return cls(**data)
