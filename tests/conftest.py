"""Shared pytest fixtures for Config Keeper tests.

Provides a read-only "rom" directory holding factory defaults, a
writable "overlay" directory for the snapshots, and helpers to build
drivers and snapshot managers over them.
"""

from pathlib import Path

import pytest

from config_keeper.config import StoreConfig
from config_keeper.recovery.driver import RecoveryDriver
from config_keeper.recovery.ledger import ChecksumLedger
from config_keeper.recovery.snapshots import SnapshotManager


FACTORY_DEFAULT = "".join(f"option{i}=default\n" for i in range(1, 13))


@pytest.fixture
def factory_default():
    """Twelve distinct lines, so hunks have unambiguous context."""
    return FACTORY_DEFAULT


@pytest.fixture
def dirs(tmp_path):
    """Create temporary rom (read-only media) and overlay directories."""
    rom = tmp_path / "rom"
    overlay = tmp_path / "overlay"
    rom.mkdir()
    overlay.mkdir()
    return {"rom": rom, "overlay": overlay, "root": tmp_path}


@pytest.fixture
def store_config(dirs):
    """StoreConfig managing "hostapd", shipped on the rom."""
    (dirs["rom"] / "hostapd.orig").write_text(FACTORY_DEFAULT)
    return StoreConfig(
        config_dir=dirs["overlay"],
        readonly_root=dirs["rom"],
        names=["hostapd"],
    )


@pytest.fixture
def ledger():
    return ChecksumLedger()


@pytest.fixture
def snapshots(store_config, ledger):
    return SnapshotManager(store_config.managed("hostapd"), ledger)


@pytest.fixture
def boot(store_config):
    """Run a fresh recovery pass, as a reboot would."""
    def _boot(config: StoreConfig = None):
        return RecoveryDriver(config or store_config).run()
    return _boot


@pytest.fixture
def install_update(store_config):
    """Replace the factory default on the image and locally, as an OS upgrade does."""
    def _install(content: str, name: str = "hostapd") -> Path:
        managed = store_config.managed(name)
        managed.readonly_path.write_text(content)
        managed.orig_path.write_text(content)
        return managed.orig_path
    return _install


def read_tree(directory: Path) -> dict:
    """Snapshot every file in a directory as name -> bytes."""
    return {p.name: p.read_bytes() for p in sorted(directory.iterdir()) if p.is_file()}


@pytest.fixture
def tree():
    return read_tree
