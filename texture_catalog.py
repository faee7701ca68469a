"""Reconciled view of the manifest and the texture directory."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath
from typing import Iterator, Mapping, Optional, Sequence

from texture_errors import DuplicateUniformName
from texture_naming import uniform_name_for_file

logger = logging.getLogger(__name__)

TEXTURES_DIR_NAME = "textures"


@dataclass(frozen=True)
class CatalogEntry:
    uniform_name: str
    relative_path: str
    active: bool


@dataclass(frozen=True)
class TextureCatalog:
    entries: tuple[CatalogEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> CatalogEntry:
        return self.entries[index]

    def active_entries(self) -> list[CatalogEntry]:
        return [entry for entry in self.entries if entry.active]

    def relative_paths(self) -> list[str]:
        return [entry.relative_path for entry in self.entries]

    def find(self, uniform_name: str) -> Optional[int]:
        for idx, entry in enumerate(self.entries):
            if entry.uniform_name == uniform_name:
                return idx
        return None

    def manifest_textures(self) -> dict[str, str]:
        """Active entries as the ``textures`` map; names must be unique."""
        textures: dict[str, str] = {}
        for entry in self.active_entries():
            if entry.uniform_name in textures:
                raise DuplicateUniformName(
                    "write manifest",
                    entry.relative_path,
                    f"uniform '{entry.uniform_name}' is already bound to {textures[entry.uniform_name]}",
                )
            textures[entry.uniform_name] = entry.relative_path
        return textures

    def _with_entry(self, index: int, **changes: object) -> "TextureCatalog":
        entries = list(self.entries)
        entries[index] = replace(entries[index], **changes)
        return TextureCatalog(tuple(entries))

    def set_active(self, index: int, active: bool) -> "TextureCatalog":
        return self._with_entry(index, active=active)

    def toggle_active(self, index: int) -> "TextureCatalog":
        return self.set_active(index, not self.entries[index].active)

    def set_uniform_name(self, index: int, uniform_name: str) -> "TextureCatalog":
        return self._with_entry(index, uniform_name=uniform_name)

    def set_relative_path(self, index: int, relative_path: str) -> "TextureCatalog":
        return self._with_entry(index, relative_path=relative_path)


def _is_represented(file_name: str, uniform_name: str, declared: Sequence[CatalogEntry]) -> bool:
    # Plain string suffix match against declared paths.
    return any(entry.uniform_name == uniform_name or entry.relative_path.endswith(file_name) for entry in declared)


def reconcile(manifest_textures: Mapping[str, str], directory_listing: Sequence[str]) -> TextureCatalog:
    declared = [CatalogEntry(name, path, True) for name, path in manifest_textures.items()]
    discovered: list[CatalogEntry] = []
    for relative_path in directory_listing:
        file_name = PurePosixPath(relative_path).name
        uniform_name = uniform_name_for_file(file_name)
        if _is_represented(file_name, uniform_name, declared):
            logger.debug("Skipping %s: already declared", relative_path)
            continue
        discovered.append(CatalogEntry(uniform_name, relative_path, False))
    return TextureCatalog(tuple(declared + discovered))


def list_texture_directory(root: Path) -> list[str]:
    """Files directly inside ``textures/``, sorted, as root-relative POSIX paths."""
    texture_dir = Path(root) / TEXTURES_DIR_NAME
    if not texture_dir.is_dir():
        return []
    names = sorted(child.name for child in texture_dir.iterdir() if child.is_file())
    return [f"{TEXTURES_DIR_NAME}/{name}" for name in names]
