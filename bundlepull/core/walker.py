"""Deterministic tree walk with subtree pruning.

``walk`` visits ``root`` and then every descendant depth-first, children of a
directory in sorted name order. The visit callback decides whether a
directory is descended into: returning ``WalkAction.SKIP_DIR`` for a
directory prunes its whole subtree before any child is listed.

Descendants are examined with ``lstat`` so symlinks are reported as
symlinks, never followed. Any ``OSError`` propagates immediately with the
offending path in its ``filename``.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Callable
from enum import Enum
from pathlib import Path


class WalkAction(str, Enum):
    """What the walker should do after visiting an entry."""

    CONTINUE = "continue"
    SKIP_DIR = "skip_dir"


VisitFn = Callable[[Path, os.stat_result], "WalkAction | None"]


def walk(root: Path, visit: VisitFn, *, follow_root: bool = True) -> None:
    """Walk ``root`` calling ``visit(path, stat_result)`` for each entry.

    Parameters
    ----------
    root:
        Starting path. Followed through a symlink when ``follow_root`` is set.
    visit:
        Callback; return ``WalkAction.SKIP_DIR`` on a directory to skip it
        and everything below it. ``None`` means continue.
    """
    root = Path(root)
    info = os.stat(root) if follow_root else os.lstat(root)

    # Explicit stack so tree depth is not bounded by the recursion limit.
    # Children are pushed in reverse sorted order to pop in sorted order.
    stack: list[tuple[Path, os.stat_result | None]] = [(root, info)]
    while stack:
        path, info = stack.pop()
        if info is None:
            info = os.lstat(path)
        action = visit(path, info)
        if not stat.S_ISDIR(info.st_mode) or action is WalkAction.SKIP_DIR:
            continue
        for name in reversed(sorted(os.listdir(path))):
            stack.append((path / name, None))
