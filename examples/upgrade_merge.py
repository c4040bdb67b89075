#!/usr/bin/env python3
"""Upgrade merge example for Config Keeper.

Shows what happens to local changes when a software update ships a new
factory default:
1. Compatible update: the local change is carried onto the new default
2. Conflicting update: the local change is dropped, the new default wins

Run this example:
    python upgrade_merge.py
"""

import tempfile
from pathlib import Path

from config_keeper import ConfigStore, StoreConfig


V1 = "".join(f"option{i}=default\n" for i in range(1, 11))


def boot(store: ConfigStore, label: str) -> None:
    summary = store.recover()
    result = summary.get("app")
    outcome = result.merge_outcome.value if result.merge_outcome else "-"
    print(f"    {label}: action={result.action.value} merge={outcome}")


def install_update(store: ConfigStore, content: str) -> None:
    """What an OS upgrade does: ship a new image with a new factory default."""
    managed = store.config.managed("app")
    managed.readonly_path.write_text(content)
    managed.orig_path.write_text(content)


def main():
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        rom = temp_path / "rom"
        overlay = temp_path / "overlay"
        rom.mkdir()
        overlay.mkdir()
        (rom / "app.orig").write_text(V1)

        store = ConfigStore(StoreConfig(config_dir=overlay, readonly_root=rom, names=["app"]))

        print("\n[1] First boot and a local change to option2")
        boot(store, "boot 1")
        store.writer.write("app", V1.replace("option2=default", "option2=custom"))

        print("\n[2] Update changes option9 (far from the local change)")
        install_update(store, V1.replace("option9=default", "option9=new"))
        boot(store, "boot 2")
        conf = store.config.managed("app").conf_path.read_text()
        print(f"    option2 kept: {'option2=custom' in conf}, option9 updated: {'option9=new' in conf}")

        print("\n[3] Update rewrites option3 (next to the local change)")
        v3 = V1.replace("option3=default", "option3=changed").replace("option9=default", "option9=new")
        install_update(store, v3)
        boot(store, "boot 3")
        conf = store.config.managed("app").conf_path.read_text()
        print(f"    conf equals new default: {conf == v3}")


if __name__ == "__main__":
    main()
