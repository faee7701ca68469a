"""Packaging of the active textures into a portable zip."""
from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from path_safety import resolve_inside, to_posix
from texture_catalog import TextureCatalog
from texture_errors import ArchiveError

logger = logging.getLogger(__name__)

EXPORT_FILE_NAME = "texture_pack.zip"
# Fixed metadata keeps repeated exports byte-identical.
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
ZIP_FILE_MODE = 0o644


@dataclass
class ExportResult:
    destination: str
    files: list[str] = field(default_factory=list)


def default_export_path(root: Path) -> Path:
    return Path(root) / EXPORT_FILE_NAME


def _zip_info(arcname: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(arcname, date_time=ZIP_EPOCH)
    info.compress_type = zipfile.ZIP_STORED
    info.external_attr = ZIP_FILE_MODE << 16
    return info


def _default_file_mode() -> int:
    # The mode a plain open() would give; mkstemp alone yields 0600.
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def export_zip(catalog: TextureCatalog, root: Path, destination: Optional[Path] = None) -> ExportResult:
    root = Path(root)
    destination = Path(destination) if destination is not None else default_export_path(root)

    # Read everything first so a missing texture aborts before the archive is touched.
    payloads: list[tuple[str, bytes]] = []
    seen: set[str] = set()
    for entry in catalog.active_entries():
        arcname = to_posix(entry.relative_path)
        if arcname in seen:
            continue
        source = resolve_inside(root, entry.relative_path, "export")
        try:
            payloads.append((arcname, source.read_bytes()))
        except OSError as exc:
            raise ArchiveError("export", entry.relative_path, f"cannot read texture '{entry.uniform_name}': {exc}") from exc
        seen.add(arcname)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        tmp_fd, tmp_name = tempfile.mkstemp(prefix=".texture-pack-", suffix=".zip", dir=str(destination.parent))
    except OSError as exc:
        raise ArchiveError("export", destination, str(exc)) from exc
    os.close(tmp_fd)
    tmp_path = Path(tmp_name)
    try:
        with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_STORED) as zf:
            for arcname, payload in payloads:
                zf.writestr(_zip_info(arcname), payload)
        os.chmod(tmp_path, _default_file_mode())
        os.replace(tmp_path, destination)
    except OSError as exc:
        raise ArchiveError("export", destination, str(exc)) from exc
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                logger.warning("Could not remove temporary file %s", tmp_path)
    logger.info("Exported %d texture(s) to %s", len(payloads), destination)
    return ExportResult(destination=str(destination), files=[arcname for arcname, _payload in payloads])
