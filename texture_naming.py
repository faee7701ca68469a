from __future__ import annotations

from pathlib import PurePosixPath
from typing import Callable, Iterable, Optional

UNIFORM_PREFIX = "tex"


def capitalize_first(value: str) -> str:
    # Only the first character changes; str.capitalize() would lower the rest.
    return value[:1].upper() + value[1:]


def derive_uniform_name(stem: str) -> str:
    return f"{UNIFORM_PREFIX}{capitalize_first(stem)}"


def uniform_name_for_file(file_name: str) -> str:
    return derive_uniform_name(PurePosixPath(file_name).stem)


def _collides(candidate: str, relative_paths: Iterable[str], exists: Optional[Callable[[str], bool]]) -> bool:
    lowered = candidate.lower()
    if any(path.lower().endswith(lowered) for path in relative_paths):
        return True
    return exists is not None and exists(candidate)


def resolve_destination_name(
    file_name: str,
    relative_paths: Iterable[str],
    exists: Optional[Callable[[str], bool]] = None,
) -> str:
    """Pick a file name that no catalog path ends with and that is free on disk.

    ``fog.png`` becomes ``fog_2.png``, then ``fog_3.png`` and so on; every
    candidate is checked again because numbered names may already be taken.
    """
    paths = list(relative_paths)
    pure = PurePosixPath(file_name)
    stem, ext = pure.stem, pure.suffix
    candidate = file_name
    counter = 2
    while _collides(candidate, paths, exists):
        candidate = f"{stem}_{counter}{ext}"
        counter += 1
    return candidate
