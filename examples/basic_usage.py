#!/usr/bin/env python3
"""Basic usage example for Config Keeper.

This example demonstrates:
1. First boot: initializing a managed config from the read-only default
2. Changing the config with the write protocol
3. Recovering after power loss in the middle of a change

Run this example:
    python basic_usage.py
"""

import tempfile
from pathlib import Path

from config_keeper import ConfigStore, Snapshot, StoreConfig


HOSTAPD_DEFAULT = """interface=wlan0
driver=nl80211
ssid=device
hw_mode=g
channel=1
wpa=2
"""


def main():
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)

        # Read-only factory media and the writable overlay
        rom = temp_path / "rom"
        overlay = temp_path / "overlay"
        rom.mkdir()
        overlay.mkdir()
        (rom / "hostapd.orig").write_text(HOSTAPD_DEFAULT)

        print("=" * 60)
        print("Config Keeper - Basic Usage Example")
        print("=" * 60)

        store = ConfigStore(StoreConfig(
            config_dir=overlay,
            readonly_root=rom,
            names=["hostapd", "dnsmasq"],   # dnsmasq isn't shipped: skipped
        ))

        # ---------------------------------------------------------------------
        # Step 1: First boot
        # ---------------------------------------------------------------------
        print("\n[1] First boot recovery pass...")
        summary = store.recover()
        for result in summary.results:
            print(f"    {result.name}: {result.action.value}")
        print(f"    Files: {sorted(p.name for p in overlay.iterdir())}")

        # ---------------------------------------------------------------------
        # Step 2: A program changes the channel
        # ---------------------------------------------------------------------
        print("\n[2] Changing channel with the write protocol...")
        with store.writer.edit("hostapd") as conf_path:
            text = conf_path.read_text()
            conf_path.write_text(text.replace("channel=1", "channel=6"))

        snapshots = store.snapshots("hostapd")
        print(f"    conf valid: {snapshots.is_valid(Snapshot.CONF)}")
        print(f"    backup left behind: {snapshots.exists(Snapshot.BACK)}")

        # ---------------------------------------------------------------------
        # Step 3: Power loss halfway through the next change
        # ---------------------------------------------------------------------
        print("\n[3] Simulating power loss during a change...")
        conf_path = store.writer.begin("hostapd")
        conf_path.write_text("interface=wlan0\nchan")   # torn write, never committed

        print(f"    conf valid after crash: {snapshots.is_valid(Snapshot.CONF)}")

        summary = store.recover()
        print(f"    recovery: {summary.get('hostapd').action.value}")
        print(f"    conf valid: {snapshots.is_valid(Snapshot.CONF)}")
        print(f"    channel line: "
              f"{[line for line in conf_path.read_text().splitlines() if line.startswith('channel')]}")

        print("\n" + "=" * 60)
        print("Example complete!")
        print("=" * 60)


if __name__ == "__main__":
    main()
