"""Example scripts for Config Keeper.

Available examples:

basic_usage.py
    First boot, the write protocol, and recovery from a torn write.
    Start here to understand the core workflow.

upgrade_merge.py
    Carrying local changes onto a new factory default after an update,
    and the fallback when they no longer apply.

Run any example:
    python examples/basic_usage.py
    python examples/upgrade_merge.py
"""
