from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath, PureWindowsPath

from texture_errors import PathEscape

logger = logging.getLogger(__name__)


def to_posix(relative_path: str) -> str:
    return relative_path.replace("\\", "/")


def is_absolute_like(relative_path: str) -> bool:
    # A drive letter counts even without a root, e.g. "C:foo.png".
    return PurePosixPath(relative_path).is_absolute() or bool(PureWindowsPath(relative_path).drive)


def resolve_inside(root: Path, relative_path: str, operation: str) -> Path:
    """Resolve ``relative_path`` against ``root`` and refuse anything outside it.

    The returned path is canonical. Raises :class:`PathEscape` for absolute
    paths, empty paths and paths whose resolution leaves the root.
    """
    cleaned = to_posix(relative_path.strip())
    if cleaned == "":
        raise PathEscape(operation, relative_path, "empty path")
    if is_absolute_like(cleaned):
        raise PathEscape(operation, relative_path, "absolute paths are not allowed")
    root_resolved = Path(root).resolve()
    candidate = (root_resolved / cleaned).resolve()
    if candidate != root_resolved and root_resolved not in candidate.parents:
        logger.warning("Rejected %s: %s resolves outside %s", operation, relative_path, root_resolved)
        raise PathEscape(operation, relative_path, f"resolves outside the project root {root_resolved}")
    return candidate
