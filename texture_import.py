"""Ingestion of dropped image files and texture archives."""
from __future__ import annotations

import logging
import posixpath
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from path_safety import resolve_inside
from texture_catalog import TEXTURES_DIR_NAME, TextureCatalog
from texture_errors import ArchiveError, PathEscape, TextureIOError, UnsupportedFile
from texture_naming import resolve_destination_name

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg"}
ARCHIVE_EXTENSIONS = {".zip"}


@dataclass
class ImportResult:
    source: str
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def summary(self) -> str:
        parts = [f"imported {len(self.written)} file(s)"]
        if self.skipped:
            parts.append(f"skipped {len(self.skipped)}")
        if self.errors:
            parts.append(f"{len(self.errors)} error(s)")
        return f"{Path(self.source).name}: " + ", ".join(parts)


def classify_source(source: Path) -> str:
    ext = source.suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in ARCHIVE_EXTENSIONS:
        return "archive"
    raise UnsupportedFile("import", source, f"unsupported file type '{ext or source.name}'")


def import_source(root: Path, source: Path, catalog: TextureCatalog) -> ImportResult:
    source = Path(source)
    kind = classify_source(source)
    if not source.is_file():
        raise TextureIOError("import", source, "file does not exist")
    if kind == "image":
        return import_image(root, source, catalog)
    return import_archive(root, source)


def import_image(root: Path, source: Path, catalog: TextureCatalog) -> ImportResult:
    root = Path(root)
    texture_dir = root / TEXTURES_DIR_NAME
    dest_name = resolve_destination_name(
        source.name,
        catalog.relative_paths(),
        exists=lambda candidate: (texture_dir / candidate).exists(),
    )
    relative_path = f"{TEXTURES_DIR_NAME}/{dest_name}"
    dest = resolve_inside(root, relative_path, "import")
    try:
        payload = source.read_bytes()
        dest.parent.mkdir(parents=True, exist_ok=True)
        _write_new_file(dest, payload)
    except OSError as exc:
        raise TextureIOError("import", source, f"could not copy to {relative_path}: {exc}") from exc
    logger.info("Copied %s to %s", source, relative_path)
    return ImportResult(source=str(source), written=[relative_path])


@dataclass
class _PlannedEntry:
    info: zipfile.ZipInfo
    relative_path: str
    dest: Path


def _plan_archive(root: Path, archive: zipfile.ZipFile, result: ImportResult) -> list[_PlannedEntry]:
    planned: list[_PlannedEntry] = []
    prefix = f"{TEXTURES_DIR_NAME}/"
    for info in archive.infolist():
        if info.is_dir():
            continue
        name = info.filename.replace("\\", "/")
        if not name.startswith(prefix):
            logger.debug("Skipping %s: outside %s", name, prefix)
            result.skipped.append(name)
            continue
        # Raises PathEscape; the caller aborts before anything is written.
        dest = resolve_inside(root, name, "import archive entry")
        normalized = posixpath.normpath(name)
        if not normalized.startswith(prefix):
            logger.debug("Skipping %s: normalizes outside %s", name, prefix)
            result.skipped.append(name)
            continue
        planned.append(_PlannedEntry(info, normalized, dest))
    return planned


def _write_new_file(dest: Path, payload: bytes) -> None:
    # "xb" refuses to clobber a file that appeared after the name was chosen.
    f = dest.open("xb")
    try:
        with f:
            f.write(payload)
    except OSError:
        dest.unlink(missing_ok=True)
        raise


def import_archive(root: Path, source: Path) -> ImportResult:
    root = Path(root)
    result = ImportResult(source=str(source))
    try:
        with zipfile.ZipFile(source, "r") as archive:
            try:
                planned = _plan_archive(root, archive, result)
            except PathEscape as exc:
                raise PathEscape("import archive", source, f"entry {exc.path} {exc.detail}") from exc
            for entry in planned:
                if entry.dest.exists():
                    logger.debug("Skipping %s: destination exists", entry.relative_path)
                    result.skipped.append(entry.relative_path)
                    continue
                try:
                    # Encrypted entries raise RuntimeError, unknown methods NotImplementedError.
                    payload = archive.read(entry.info)
                    entry.dest.parent.mkdir(parents=True, exist_ok=True)
                    _write_new_file(entry.dest, payload)
                except (OSError, RuntimeError, NotImplementedError, zipfile.BadZipFile) as exc:
                    logger.warning("Failed to extract %s from %s: %s", entry.relative_path, source, exc)
                    result.errors.append(f"{entry.relative_path}: {exc}")
                    continue
                result.written.append(entry.relative_path)
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        raise ArchiveError("import archive", source, f"not a readable zip archive: {exc}") from exc
    except OSError as exc:
        raise ArchiveError("import archive", source, str(exc)) from exc
    logger.info(
        "Imported %s: %d written, %d skipped, %d failed",
        source,
        len(result.written),
        len(result.skipped),
        len(result.errors),
    )
    return result
