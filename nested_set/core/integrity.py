"""Structural checks for a nested-set tree.

Verifies a full preorder dump (as returned by ``get_tree()``) against the
nested-set invariants:

- every interval has ``right > left`` and an odd ``right - left``
- no two boundaries share a position, and positions run 1..2n without gaps
- any two intervals are disjoint or properly nested, never partially overlapping
- a node's depth equals the number of intervals enclosing it
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from nested_set.core.exceptions import TreeIntegrityError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nested_set.core.node import Node


def find_violations(nodes: Iterable[Node]) -> list[str]:
    """Collect every invariant violation in a set of nodes.

    Args:
        nodes: All nodes of one numbering space, in any order

    Returns:
        Human-readable violations; empty when the tree is consistent
    """
    ordered = sorted(nodes, key=lambda n: n.left)
    violations: list[str] = []

    for node in ordered:
        if node.right <= node.left:
            violations.append(f"{node.node_key}: right {node.right} <= left {node.left}")
        elif (node.right - node.left) % 2 == 0:
            violations.append(f"{node.node_key}: even span {node.left}..{node.right}")

    counts = Counter(p for n in ordered for p in (n.left, n.right))
    duplicates = sorted(p for p, c in counts.items() if c > 1)
    if duplicates:
        violations.append(f"positions used more than once: {duplicates}")
    expected = set(range(1, 2 * len(ordered) + 1))
    if set(counts) != expected:
        missing = sorted(expected - set(counts))
        violations.append(f"numbering has gaps: missing {missing}")

    stack: list[Node] = []
    for node in ordered:
        while stack and stack[-1].right < node.left:
            stack.pop()
        if stack and node.right > stack[-1].right:
            violations.append(f"{node.node_key} partially overlaps {stack[-1].node_key}")
        if node.depth != len(stack):
            violations.append(f"{node.node_key}: depth {node.depth}, expected {len(stack)}")
        stack.append(node)

    return violations


def validate_tree(nodes: Iterable[Node]) -> None:
    """Raise if the nodes violate any nested-set invariant.

    Raises:
        TreeIntegrityError: Listing every violation found
    """
    violations = find_violations(nodes)
    if violations:
        raise TreeIntegrityError(violations)


def format_tree(nodes: Iterable[Node]) -> str:
    """Render nodes as an indented text table for debugging.

    Example:
        >>> print(format_tree(await nested_set.get_tree()))
        ID  Rev  Left  Right  Depth
        1     1     1      4      0
        -2    1     2      3      1
    """
    headers = ("ID", "Rev", "Left", "Right", "Depth")
    rows = [
        ("-" * n.depth + str(n.id), str(n.revision_id), str(n.left), str(n.right), str(n.depth))
        for n in sorted(nodes, key=lambda n: n.left)
    ]
    widths = [max(len(r[i]) for r in (headers, *rows)) for i in range(len(headers))]
    lines = []
    for row in (headers, *rows):
        first = row[0].ljust(widths[0])
        rest = (cell.rjust(width) for cell, width in zip(row[1:], widths[1:], strict=True))
        lines.append("  ".join((first, *rest)))
    return "\n".join(lines)


__all__ = [
    "find_violations",
    "format_tree",
    "validate_tree",
]
