"""Line alignment and hunk grouping.

Aligns two line sequences with a minimal (Myers O(ND)) edit script, tags each
line as context/added/removed with old/new line numbers, then groups change
runs into hunks carrying at most ``context`` unchanged lines on each side.
"""

from __future__ import annotations

from collections.abc import Sequence

from .types import ORIGIN_ADDED, ORIGIN_CONTEXT, ORIGIN_REMOVED, Hunk, Line

DEFAULT_CONTEXT_LINES = 5

_EQUAL = 0
_DELETE = 1
_INSERT = 2


def _myers_ops(old: Sequence[str], new: Sequence[str]) -> list[int]:
    """Return a minimal edit script as a list of ``_EQUAL/_DELETE/_INSERT`` ops.

    Each frontier ``trace[d]`` stores the furthest-reaching ``x`` per diagonal
    ``k = -d, -d+2, ..., d``. On ties the deletion edge wins, which keeps
    earlier common lines aligned and puts removals ahead of additions.
    """
    n = len(old)
    m = len(new)
    if n == 0:
        return [_INSERT] * m
    if m == 0:
        return [_DELETE] * n

    trace: list[list[int]] = []
    prev: list[int] = []
    final_d = -1
    for d in range(n + m + 1):
        cur: list[int] = []
        for k in range(-d, d + 1, 2):
            if d == 0:
                x = 0
            elif k == -d:
                x = prev[(k + d) // 2]
            elif k == d:
                x = prev[(k + d - 2) // 2] + 1
            else:
                left = prev[(k + d - 2) // 2]
                down = prev[(k + d) // 2]
                x = down if left < down else left + 1
            y = x - k
            while x < n and y < m and old[x] == new[y]:
                x += 1
                y += 1
            cur.append(x)
            if x >= n and y >= m:
                final_d = d
                break
        trace.append(cur)
        prev = cur
        if final_d >= 0:
            break

    reversed_ops: list[int] = []
    x = n
    y = m
    for d in range(final_d, 0, -1):
        k = x - y
        frontier = trace[d - 1]
        if k == -d:
            went_down = True
        elif k == d:
            went_down = False
        else:
            went_down = frontier[(k + d - 2) // 2] < frontier[(k + d) // 2]

        if went_down:
            prev_k = k + 1
            prev_x = frontier[(prev_k + d - 1) // 2]
            mid_x = prev_x
        else:
            prev_k = k - 1
            prev_x = frontier[(prev_k + d - 1) // 2]
            mid_x = prev_x + 1

        reversed_ops.extend([_EQUAL] * (x - mid_x))
        reversed_ops.append(_INSERT if went_down else _DELETE)
        x = prev_x
        y = prev_x - prev_k

    reversed_ops.extend([_EQUAL] * x)
    reversed_ops.reverse()
    return reversed_ops


def _edit_script(old: Sequence[str], new: Sequence[str]) -> list[int]:
    """Trim common prefix/suffix, then align the middle section."""
    prefix = 0
    limit = min(len(old), len(new))
    while prefix < limit and old[prefix] == new[prefix]:
        prefix += 1

    suffix = 0
    while (
        suffix < limit - prefix
        and old[len(old) - 1 - suffix] == new[len(new) - 1 - suffix]
    ):
        suffix += 1

    old_mid = old[prefix : len(old) - suffix]
    new_mid = new[prefix : len(new) - suffix]
    if old_mid and new_mid and set(old_mid).isdisjoint(new_mid):
        middle = [_DELETE] * len(old_mid) + [_INSERT] * len(new_mid)
    else:
        middle = _myers_ops(old_mid, new_mid)
    return [_EQUAL] * prefix + middle + [_EQUAL] * suffix


def diff_lines(old_lines: Sequence[str], new_lines: Sequence[str]) -> list[Line]:
    """Return the full aligned line sequence for ``old_lines`` -> ``new_lines``.

    Within each contiguous change region removed lines come first, followed by
    added lines, matching conventional unified diff output.
    """
    ops = _edit_script(old_lines, new_lines)
    out: list[Line] = []
    removed: list[Line] = []
    added: list[Line] = []
    old_idx = 0
    new_idx = 0

    def flush_region() -> None:
        out.extend(removed)
        out.extend(added)
        removed.clear()
        added.clear()

    for op in ops:
        if op == _EQUAL:
            flush_region()
            out.append(
                Line(
                    content=old_lines[old_idx],
                    origin=ORIGIN_CONTEXT,
                    old_no=old_idx + 1,
                    new_no=new_idx + 1,
                )
            )
            old_idx += 1
            new_idx += 1
        elif op == _DELETE:
            removed.append(Line(content=old_lines[old_idx], origin=ORIGIN_REMOVED, old_no=old_idx + 1))
            old_idx += 1
        else:
            added.append(Line(content=new_lines[new_idx], origin=ORIGIN_ADDED, new_no=new_idx + 1))
            new_idx += 1
    flush_region()
    return out


def _change_clusters(lines: Sequence[Line], context: int) -> list[tuple[int, int]]:
    """Return ``(first_change, last_change)`` index pairs for merged change runs."""
    clusters: list[tuple[int, int]] = []
    first = -1
    last = -1
    for idx, line in enumerate(lines):
        if line.origin == ORIGIN_CONTEXT:
            continue
        if first < 0:
            first = last = idx
            continue
        if idx - last - 1 <= 2 * context:
            last = idx
            continue
        clusters.append((first, last))
        first = last = idx
    if first >= 0:
        clusters.append((first, last))
    return clusters


def build_hunks(
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    context: int = DEFAULT_CONTEXT_LINES,
) -> list[Hunk]:
    """Build ordered, non-overlapping hunks for ``old_lines`` -> ``new_lines``.

    Each hunk keeps at most ``context`` unchanged lines before its first and
    after its last change; change runs separated by ``2 * context`` or fewer
    unchanged lines share a hunk. A side that spans no lines reports the
    count of that side's preceding lines as its start, as unified diff does.
    """
    if context < 0:
        raise ValueError("context must be >= 0")

    lines = diff_lines(old_lines, new_lines)
    if not lines:
        return []

    old_seen = [0] * (len(lines) + 1)
    new_seen = [0] * (len(lines) + 1)
    for idx, line in enumerate(lines):
        old_seen[idx + 1] = old_seen[idx] + (1 if line.old_no is not None else 0)
        new_seen[idx + 1] = new_seen[idx] + (1 if line.new_no is not None else 0)

    hunks: list[Hunk] = []
    for first, last in _change_clusters(lines, context):
        start = max(0, first - context)
        end = min(len(lines), last + context + 1)
        old_count = old_seen[end] - old_seen[start]
        new_count = new_seen[end] - new_seen[start]
        hunks.append(
            Hunk(
                old_start=old_seen[start] + (1 if old_count else 0),
                old_count=old_count,
                new_start=new_seen[start] + (1 if new_count else 0),
                new_count=new_count,
                lines=tuple(lines[start:end]),
            )
        )
    return hunks


__all__ = ["DEFAULT_CONTEXT_LINES", "diff_lines", "build_hunks"]
