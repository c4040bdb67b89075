"""Merge strategies: pluggable diff-and-patch backends.

Each strategy implements the PatchStrategy interface.

Available strategies:
    - PythonPatchStrategy: difflib diff with exact-context hunk application
    - ShellPatchStrategy: the system diff and patch tools

Usage:
    from config_keeper.merge import get_strategy

    strategy = get_strategy("python")
    result = strategy.merge(old_default, user_copy, new_default)
"""

from typing import Type

from .base import MergeResult, PatchStrategy


def get_strategy_class(name: str) -> Type[PatchStrategy]:
    """Get the strategy class registered under `name`.

    Raises:
        NotImplementedError: If no strategy has that name
    """
    if name == "python":
        from .python import PythonPatchStrategy
        return PythonPatchStrategy
    elif name == "shell":
        from .shell import ShellPatchStrategy
        return ShellPatchStrategy
    else:
        raise NotImplementedError(
            f"Merge strategy '{name}' is not supported. "
            f"Supported strategies: python, shell"
        )


def get_strategy(name: str = "python") -> PatchStrategy:
    """Instantiate a strategy with its default settings."""
    return get_strategy_class(name)()


__all__ = [
    "MergeResult",
    "PatchStrategy",
    "get_strategy",
    "get_strategy_class",
]
