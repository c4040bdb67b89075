"""Abstract base class for patch strategies.

A patch strategy carries the changes between a previous baseline and a
modified copy over to a new baseline. The merge engine only consumes
two outcomes: the patch applied cleanly, or it did not. Partial
application is never reported as success.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class MergeResult:
    """Result of a three-way merge attempt.

    Attributes:
        clean: True if every hunk applied
        content: Merged text (only set when clean)
        patch: Unified diff of base -> modified
        rejected_hunks: Number of hunks that did not apply
    """
    clean: bool
    content: Optional[str] = None
    patch: str = ""
    rejected_hunks: int = 0

    @classmethod
    def applied(cls, content: str, patch: str) -> "MergeResult":
        return cls(clean=True, content=content, patch=patch)

    @classmethod
    def conflict(cls, patch: str, rejected_hunks: int) -> "MergeResult":
        return cls(clean=False, content=None, patch=patch, rejected_hunks=max(1, rejected_hunks))

    @property
    def has_changes(self) -> bool:
        """True if the modified copy differed from its baseline at all."""
        return bool(self.patch)

    def to_dict(self) -> dict:
        return {
            "clean": self.clean,
            "rejected_hunks": self.rejected_hunks,
            "has_changes": self.has_changes,
        }


class PatchStrategy(ABC):
    """Interface every merge backend implements.

    Example:
        strategy = get_strategy("python")
        result = strategy.merge(old_default, user_copy, new_default)
        if result.clean:
            write(result.content)
    """

    name: str = "abstract"

    def is_available(self) -> bool:
        """Check whether the backend can run on this system."""
        return True

    @abstractmethod
    def merge(self, base_text: str, modified_text: str, new_base_text: str) -> MergeResult:
        """Reapply base -> modified changes on top of new_base.

        Args:
            base_text: Baseline the modifications were made against
            modified_text: Baseline plus modifications
            new_base_text: New baseline to carry the modifications onto

        Returns:
            MergeResult, clean or conflict

        Raises:
            MergeToolError: If the backend itself fails
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
