"""Utility modules for Config Keeper.

This package provides:
- hashing: Streaming file hashing for checksum sidecars
- logging: Configured logging with JSON/text output support
"""

from config_keeper.utils.hashing import fast_hash_file
from config_keeper.utils.logging import get_logger, configure_root_logger

__all__ = [
    "fast_hash_file",
    "get_logger",
    "configure_root_logger",
]
