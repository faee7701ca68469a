"""Control object owning the texture catalog for one Bonzomatic root."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from manifest_store import ManifestStore
from path_safety import resolve_inside
from texture_catalog import TextureCatalog, list_texture_directory, reconcile
from texture_errors import TextureIOError, TextureManagerError
from texture_export import ExportResult, export_zip
from texture_import import ImportResult, import_source

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    operation: str
    ok: bool
    message: str
    catalog: TextureCatalog
    error: Optional[TextureManagerError] = None
    detail: Union[ImportResult, ExportResult, None] = None


class TextureManager:
    """Every operation returns an :class:`OperationResult` with the catalog to render.

    Typed failures never escape; the catalog in the result is the last one that
    matches what is on disk.
    """

    def __init__(self, root: Path, store: Optional[ManifestStore] = None) -> None:
        self.root = Path(root)
        self.store = store or ManifestStore(self.root)
        self.catalog = TextureCatalog()

    def _ok(self, operation: str, message: str, detail: Union[ImportResult, ExportResult, None] = None) -> OperationResult:
        return OperationResult(operation, True, message, self.catalog, detail=detail)

    def _failed(self, operation: str, error: TextureManagerError) -> OperationResult:
        logger.warning("%s", error)
        return OperationResult(operation, False, str(error), self.catalog, error=error)

    def _build_catalog(self) -> TextureCatalog:
        manifest = self.store.load()
        try:
            listing = list_texture_directory(self.root)
        except OSError as exc:
            raise TextureIOError("list textures", self.root, str(exc)) from exc
        return reconcile(manifest.textures, listing)

    def reconcile(self) -> OperationResult:
        try:
            self.catalog = self._build_catalog()
        except TextureManagerError as exc:
            return self._failed("reconcile", exc)
        return self._ok("reconcile", f"{len(self.catalog)} texture(s), {len(self.catalog.active_entries())} active")

    def _commit(self, operation: str, candidate: TextureCatalog, message: str) -> OperationResult:
        try:
            self.store.save(candidate.manifest_textures())
            # Saved: the candidate now matches the manifest even if the rebuild fails.
            self.catalog = candidate
            self.catalog = self._build_catalog()
        except TextureManagerError as exc:
            return self._failed(operation, exc)
        return self._ok(operation, message)

    def _edit(
        self,
        operation: str,
        index: int,
        change: Callable[[TextureCatalog], TextureCatalog],
        message: str,
        always_commit: bool = False,
    ) -> OperationResult:
        if not 0 <= index < len(self.catalog):
            return OperationResult(operation, False, f"{operation} failed: no texture at index {index}", self.catalog)
        was_active = self.catalog[index].active
        candidate = change(self.catalog)
        if always_commit or was_active:
            return self._commit(operation, candidate, message)
        # Discovered entries are not in the manifest; keep the edit until activation.
        self.catalog = candidate
        return self._ok(operation, message)

    def set_active(self, index: int, active: bool) -> OperationResult:
        state = "enabled" if active else "disabled"
        return self._edit(
            "set active",
            index,
            lambda catalog: catalog.set_active(index, active),
            f"Texture #{index + 1} {state}.",
            always_commit=True,
        )

    def toggle_active(self, index: int) -> OperationResult:
        if not 0 <= index < len(self.catalog):
            return OperationResult("toggle active", False, f"toggle active failed: no texture at index {index}", self.catalog)
        return self.set_active(index, not self.catalog[index].active)

    def set_uniform_name(self, index: int, uniform_name: str) -> OperationResult:
        uniform_name = uniform_name.strip()
        return self._edit(
            "rename",
            index,
            lambda catalog: catalog.set_uniform_name(index, uniform_name),
            f"Renamed texture #{index + 1} to {uniform_name}.",
        )

    def set_relative_path(self, index: int, relative_path: str) -> OperationResult:
        relative_path = relative_path.strip()
        try:
            resolve_inside(self.root, relative_path, "set path")
        except TextureManagerError as exc:
            return self._failed("set path", exc)
        return self._edit(
            "set path",
            index,
            lambda catalog: catalog.set_relative_path(index, relative_path),
            f"Texture #{index + 1} now points at {relative_path}.",
        )

    def import_file(self, source: Union[str, Path]) -> OperationResult:
        try:
            result = import_source(self.root, Path(source), self.catalog)
        except TextureManagerError as exc:
            return self._failed("import", exc)
        # The directory changed even when some archive entries failed.
        try:
            self.catalog = self._build_catalog()
        except TextureManagerError as exc:
            return self._failed("import", exc)
        return self._ok("import", result.summary(), detail=result)

    def export(self, destination: Union[str, Path, None] = None) -> OperationResult:
        try:
            result = export_zip(self.catalog, self.root, Path(destination) if destination is not None else None)
        except TextureManagerError as exc:
            return self._failed("export", exc)
        return self._ok("export", f"Exported {len(result.files)} texture(s) to {result.destination}.", detail=result)
