"""Pure-Python patch strategy built on difflib.

Hunks are computed with difflib's grouped opcodes (unified-diff hunks
with `context` lines on each side) and applied to the new baseline the
way `patch` does with no fuzz: a hunk's old lines must match exactly,
though the hunk may land at an offset from its original position.
"""

import difflib
from dataclasses import dataclass
from typing import List, Optional

from .base import MergeResult, PatchStrategy

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


@dataclass
class Hunk:
    """One unified-diff hunk.

    Attributes:
        old_start: 0-based line index in the baseline
        old_lines: Baseline lines the hunk replaces (context included)
        new_lines: Replacement lines (context included)
    """
    old_start: int
    old_lines: List[str]
    new_lines: List[str]


def compute_hunks(base: List[str], modified: List[str], context: int = 3) -> List[Hunk]:
    matcher = difflib.SequenceMatcher(None, base, modified, autojunk=False)
    hunks = []
    for group in matcher.get_grouped_opcodes(context):
        i1, i2 = group[0][1], group[-1][2]
        j1, j2 = group[0][3], group[-1][4]
        hunks.append(Hunk(old_start=i1, old_lines=base[i1:i2], new_lines=modified[j1:j2]))
    return hunks


def format_patch(
    base: List[str],
    modified: List[str],
    context: int = 3,
    fromfile: str = "base",
    tofile: str = "modified",
) -> str:
    """Render a unified diff, marking a missing final newline like diff(1)."""
    out = []
    for line in difflib.unified_diff(base, modified, fromfile, tofile, n=context):
        if line.endswith("\n"):
            out.append(line)
        else:
            out.append(line + "\n")
            out.append(NO_NEWLINE_MARKER)
    return "".join(out)


def _locate(target: List[str], old_lines: List[str], expected: int, floor: int) -> Optional[int]:
    """Find where `old_lines` occur in `target`, nearest to `expected` first.

    Positions before `floor` belong to hunks already applied.
    """
    size = len(old_lines)
    last = len(target) - size
    if last < floor:
        return None

    expected = min(max(expected, floor), last)
    for distance in range(0, max(expected - floor, last - expected) + 1):
        for at in (expected - distance, expected + distance):
            if floor <= at <= last and target[at:at + size] == old_lines:
                return at
            if distance == 0:
                break
    return None


def apply_hunks(target: List[str], hunks: List[Hunk]):
    """Apply hunks in order.

    Returns:
        Tuple of (patched lines, number of rejected hunks)
    """
    result: List[str] = []
    pos = 0
    offset = 0
    rejected = 0

    for hunk in hunks:
        at = _locate(target, hunk.old_lines, hunk.old_start + offset, pos)
        if at is None:
            rejected += 1
            continue
        result.extend(target[pos:at])
        result.extend(hunk.new_lines)
        pos = at + len(hunk.old_lines)
        offset = at - hunk.old_start

    result.extend(target[pos:])
    return result, rejected


class PythonPatchStrategy(PatchStrategy):
    """Diff and patch in-process with difflib.

    Attributes:
        context: Lines of context around each change
    """

    name = "python"

    def __init__(self, context: int = 3):
        if context < 0:
            raise ValueError(f"context must be >= 0, got {context}")
        self.context = context

    def merge(self, base_text: str, modified_text: str, new_base_text: str) -> MergeResult:
        base = base_text.splitlines(keepends=True)
        modified = modified_text.splitlines(keepends=True)
        target = new_base_text.splitlines(keepends=True)

        hunks = compute_hunks(base, modified, self.context)
        if not hunks:
            return MergeResult.applied(new_base_text, "")

        patch = format_patch(base, modified, self.context)
        merged, rejected = apply_hunks(target, hunks)
        if rejected:
            return MergeResult.conflict(patch, rejected)
        return MergeResult.applied("".join(merged), patch)
