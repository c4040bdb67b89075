"""Tests for config_keeper.recovery.ledger module.

A snapshot is valid only when file and sidecar both exist, the sidecar
names the snapshot's own resolved path, and the checksum matches.
"""

import hashlib
import shutil
import subprocess

import pytest

from config_keeper.recovery.ledger import (
    ChecksumLedger,
    CheckStatus,
    SidecarRecord,
)


@pytest.fixture
def sealed(tmp_path, ledger):
    path = tmp_path / "hostapd.conf"
    path.write_text("channel=1\n")
    ledger.compute_sidecar(path)
    return path


class TestComputeSidecar:
    """Sealing writes one md5sum-style line."""

    def test_sidecar_format(self, tmp_path, ledger):
        path = tmp_path / "hostapd.conf"
        path.write_bytes(b"channel=1\n")
        sidecar = ledger.compute_sidecar(path)

        assert sidecar == tmp_path / "hostapd.conf.md5"
        digest = hashlib.md5(b"channel=1\n").hexdigest()
        assert sidecar.read_text() == f"{digest}  {path.resolve()}\n"

    def test_overwrites_existing(self, sealed, ledger):
        sealed.write_text("channel=6\n")
        assert ledger.is_valid(sealed) is False
        ledger.compute_sidecar(sealed)
        assert ledger.is_valid(sealed) is True

    def test_missing_file_raises(self, tmp_path, ledger):
        with pytest.raises(OSError):
            ledger.compute_sidecar(tmp_path / "absent.conf")

    def test_custom_suffix(self, tmp_path):
        ledger = ChecksumLedger(suffix=".sum")
        path = tmp_path / "a.conf"
        path.write_text("x")
        assert ledger.compute_sidecar(path) == tmp_path / "a.conf.sum"

    def test_empty_suffix_rejected(self):
        with pytest.raises(ValueError):
            ChecksumLedger(suffix="")

    @pytest.mark.skipif(shutil.which("md5sum") is None, reason="md5sum not installed")
    def test_md5sum_can_check_it(self, sealed, ledger):
        proc = subprocess.run(
            ["md5sum", "-c", str(ledger.sidecar_path(sealed))],
            capture_output=True, text=True,
        )
        assert proc.returncode == 0


class TestVerify:
    """Every way a snapshot can fail validation, and none of them raise."""

    def test_valid(self, sealed, ledger):
        check = ledger.verify(sealed)
        assert check.status is CheckStatus.OK
        assert check.is_valid is True
        assert check.expected == check.actual

    def test_modified_content(self, sealed, ledger):
        sealed.write_text("channel=11\n")
        check = ledger.verify(sealed)
        assert check.status is CheckStatus.CHECKSUM_MISMATCH
        assert check.expected != check.actual

    def test_missing_file(self, tmp_path, ledger):
        assert ledger.verify(tmp_path / "absent").status is CheckStatus.MISSING_FILE

    def test_missing_sidecar(self, tmp_path, ledger):
        path = tmp_path / "unsealed.conf"
        path.write_text("x")
        assert ledger.verify(path).status is CheckStatus.MISSING_SIDECAR

    def test_truncated_sidecar(self, sealed, ledger):
        sidecar = ledger.sidecar_path(sealed)
        sidecar.write_text(sidecar.read_text()[:10])
        assert ledger.verify(sealed).status is CheckStatus.MALFORMED_SIDECAR

    def test_empty_sidecar(self, sealed, ledger):
        ledger.sidecar_path(sealed).write_text("")
        assert ledger.verify(sealed).status is CheckStatus.MALFORMED_SIDECAR

    def test_sidecar_of_another_file(self, tmp_path, sealed, ledger):
        other = tmp_path / "hostapd.back"
        shutil.copyfile(sealed, other)
        shutil.copyfile(ledger.sidecar_path(sealed), ledger.sidecar_path(other))
        assert ledger.verify(other).status is CheckStatus.PATH_MISMATCH

    def test_binary_mode_marker_accepted(self, tmp_path, ledger):
        path = tmp_path / "a.conf"
        path.write_bytes(b"abc")
        ledger.sidecar_path(path).write_text(
            f"{hashlib.md5(b'abc').hexdigest()} *{path.resolve()}\n"
        )
        assert ledger.is_valid(path) is True

    def test_uppercase_checksum_accepted(self, tmp_path, ledger):
        path = tmp_path / "a.conf"
        path.write_bytes(b"abc")
        ledger.sidecar_path(path).write_text(
            f"{hashlib.md5(b'abc').hexdigest().upper()}  {path.resolve()}\n"
        )
        assert ledger.is_valid(path) is True

    def test_symlinked_directory(self, tmp_path, ledger):
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        link.symlink_to(real, target_is_directory=True)

        (link / "a.conf").write_text("x")
        ledger.compute_sidecar(link / "a.conf")

        assert ledger.is_valid(link / "a.conf") is True
        assert ledger.is_valid(real / "a.conf") is True
        assert str(real.resolve()) in ledger.sidecar_path(real / "a.conf").read_text()

    def test_algorithm_must_match(self, sealed):
        assert ChecksumLedger(algorithm="sha256").is_valid(sealed) is False

    def test_sha256_ledger(self, tmp_path):
        ledger = ChecksumLedger(algorithm="sha256")
        path = tmp_path / "a.conf"
        path.write_text("x")
        ledger.compute_sidecar(path)
        assert ledger.is_valid(path) is True

    def test_to_dict(self, sealed, ledger):
        d = ledger.verify(sealed).to_dict()
        assert d["status"] == "ok"
        assert d["valid"] is True
        assert d["path"] == str(sealed)


class TestStaleOrAbsent:
    """The upgrade test applied to orig."""

    def test_sealed_is_not_stale(self, sealed, ledger):
        assert ledger.is_stale_or_absent(sealed) is False

    def test_replaced_is_stale(self, sealed, ledger):
        sealed.write_text("new factory default\n")
        assert ledger.is_stale_or_absent(sealed) is True

    def test_never_sealed_is_absent(self, tmp_path, ledger):
        path = tmp_path / "hostapd.orig"
        path.write_text("x")
        assert ledger.is_stale_or_absent(path) is True


class TestAccepts:
    """Checking another file's content against a sidecar."""

    def test_same_content_accepted(self, tmp_path, sealed, ledger):
        source = tmp_path / "reference"
        source.write_text("channel=1\n")
        sealed.unlink()
        assert ledger.accepts(sealed, source) is True

    def test_different_content_rejected(self, tmp_path, sealed, ledger):
        source = tmp_path / "reference"
        source.write_text("channel=6\n")
        assert ledger.accepts(sealed, source) is False

    def test_no_sidecar(self, tmp_path, ledger):
        source = tmp_path / "reference"
        source.write_text("channel=1\n")
        assert ledger.accepts(tmp_path / "hostapd.orig", source) is False

    def test_missing_source(self, tmp_path, sealed, ledger):
        assert ledger.accepts(sealed, tmp_path / "absent") is False


class TestSidecarRecords:
    """Parsing and removal helpers."""

    def test_read_sidecar(self, sealed, ledger):
        record = ledger.read_sidecar(sealed)
        assert isinstance(record, SidecarRecord)
        assert record.path == str(sealed.resolve())
        assert len(record.checksum) == 32

    def test_read_missing_sidecar(self, tmp_path, ledger):
        assert ledger.read_sidecar(tmp_path / "absent") is None

    def test_remove_sidecar(self, sealed, ledger):
        ledger.remove_sidecar(sealed)
        assert not ledger.sidecar_path(sealed).exists()
        ledger.remove_sidecar(sealed)  # already gone

    def test_record_line(self):
        assert SidecarRecord("abc", "/x/y").to_line() == "abc  /x/y\n"
