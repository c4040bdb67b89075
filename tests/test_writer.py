"""Tests for config_keeper.writer module.

Validates the backup/modify/commit protocol used by programs that
change a committed config in place.
"""

import logging

import pytest

from config_keeper.config import Snapshot
from config_keeper.errors import SnapshotStateError
from config_keeper.recovery.driver import RecoveryAction
from config_keeper.writer import ConfigWriter


@pytest.fixture
def writer(store_config, boot):
    boot()
    return ConfigWriter(store_config)


class TestWrite:
    """write() runs the whole protocol."""

    def test_write_commits(self, writer, snapshots):
        writer.write("hostapd", "channel=6\n")

        assert snapshots.is_valid(Snapshot.CONF)
        assert snapshots.read_text(Snapshot.CONF) == "channel=6\n"
        assert not snapshots.exists(Snapshot.BACK)

    def test_write_bytes(self, writer, snapshots):
        writer.write("hostapd", b"raw\x00data\n")
        assert snapshots.path(Snapshot.CONF).read_bytes() == b"raw\x00data\n"

    def test_unknown_name(self, writer):
        with pytest.raises(KeyError):
            writer.write("ghost", "x=1\n")

    def test_next_boot_keeps_write(self, writer, boot, snapshots):
        writer.write("hostapd", "channel=6\n")
        assert boot().get("hostapd").action is RecoveryAction.UNCHANGED
        assert snapshots.read_text(Snapshot.CONF) == "channel=6\n"


class TestBeginCommit:
    """begin() and commit() as separate steps."""

    def test_begin_requires_valid_conf(self, store_config):
        with pytest.raises(SnapshotStateError):
            ConfigWriter(store_config).begin("hostapd")

    def test_begin_leaves_valid_backup(self, writer, snapshots, factory_default):
        conf_path = writer.begin("hostapd")

        assert conf_path == snapshots.path(Snapshot.CONF)
        assert snapshots.is_valid(Snapshot.BACK)
        assert snapshots.read_text(Snapshot.BACK) == factory_default

    def test_uncommitted_change_is_rolled_back_on_boot(self, writer, boot, snapshots, factory_default):
        conf_path = writer.begin("hostapd")
        conf_path.write_text("channel=6\n")

        result = boot().get("hostapd")

        assert result.action is RecoveryAction.RESTORED
        assert snapshots.read_text(Snapshot.CONF) == factory_default
        assert not snapshots.exists(Snapshot.BACK)

    def test_commit(self, writer, snapshots):
        writer.begin("hostapd").write_text("channel=6\n")
        writer.commit("hostapd")

        assert snapshots.is_valid(Snapshot.CONF)
        assert not snapshots.exists(Snapshot.BACK)


class TestEdit:
    """edit() context manager."""

    def test_edit_commits_on_success(self, writer, snapshots):
        with writer.edit("hostapd") as conf_path:
            conf_path.write_text(conf_path.read_text().replace("option1=default", "option1=on"))

        assert snapshots.is_valid(Snapshot.CONF)
        assert "option1=on\n" in snapshots.read_text(Snapshot.CONF)
        assert not snapshots.exists(Snapshot.BACK)

    def test_edit_restores_on_error(self, writer, snapshots, factory_default, caplog):
        with caplog.at_level(logging.WARNING, logger="config_keeper"):
            with pytest.raises(RuntimeError, match="boom"):
                with writer.edit("hostapd") as conf_path:
                    conf_path.write_text("half")
                    raise RuntimeError("boom")

        assert snapshots.is_valid(Snapshot.CONF)
        assert snapshots.read_text(Snapshot.CONF) == factory_default
        assert not snapshots.exists(Snapshot.BACK)
        assert "restored from backup" in caplog.text

    def test_abort_without_backup_logs_error(self, writer, caplog):
        with caplog.at_level(logging.ERROR, logger="config_keeper"):
            writer.abort("hostapd")
        assert "no valid backup" in caplog.text
