"""Reading and rewriting the Bonzomatic ``config.json`` manifest."""
from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from texture_errors import ConfigNotFound, ConfigParseError, TextureIOError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"
BACKUP_FILE_NAME = "_bk_config.json"
TEXTURES_KEY = "textures"


def strip_line_comments(text: str) -> str:
    """Drop trailing ``//`` comments, one line at a time.

    A line is cut at its last ``//`` only when no ``"`` follows it, which keeps
    URLs and other slashes inside string values intact. Line endings survive,
    so a clean document comes back unchanged.
    """
    out: list[str] = []
    # Only \n and \r\n end a line; other separators may sit inside strings.
    for raw in text.split("\n"):
        body = raw[:-1] if raw.endswith("\r") else raw
        ending = raw[len(body):]
        comment = body.rfind("//")
        quote = body.rfind('"')
        if comment != -1 and quote < comment:
            body = body[:comment]
        out.append(body + ending)
    return "\n".join(out)


@dataclass
class Manifest:
    document: dict = field(default_factory=dict)

    @property
    def textures(self) -> dict[str, str]:
        return dict(self.document.get(TEXTURES_KEY) or {})


def parse_manifest(text: str, source: str = CONFIG_FILE_NAME) -> Manifest:
    try:
        document = json.loads(strip_line_comments(text))
    except json.JSONDecodeError as exc:
        raise ConfigParseError("load manifest", source, f"invalid JSON at line {exc.lineno}: {exc.msg}") from exc
    if not isinstance(document, dict):
        raise ConfigParseError("load manifest", source, "top-level value must be an object")
    textures = document.get(TEXTURES_KEY)
    if textures is None:
        return Manifest(document)
    if not isinstance(textures, dict):
        raise ConfigParseError("load manifest", source, f"'{TEXTURES_KEY}' must be an object")
    for name, value in textures.items():
        if not isinstance(value, str):
            raise ConfigParseError("load manifest", source, f"texture '{name}' must map to a string path")
    return Manifest(document)


class ManifestStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.config_path = self.root / CONFIG_FILE_NAME
        self.backup_path = self.config_path.with_name(BACKUP_FILE_NAME)
        self._backup_checked = False

    def load(self) -> Manifest:
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigNotFound("load manifest", self.config_path, "file does not exist") from exc
        except UnicodeDecodeError as exc:
            raise ConfigParseError("load manifest", self.config_path, f"not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise TextureIOError("load manifest", self.config_path, str(exc)) from exc
        manifest = parse_manifest(text, str(self.config_path))
        logger.debug("Loaded %d texture(s) from %s", len(manifest.textures), self.config_path)
        return manifest

    def backup_once(self) -> bool:
        if self._backup_checked:
            return False
        if self.backup_path.exists():
            self._backup_checked = True
            return False
        try:
            shutil.copyfile(self.config_path, self.backup_path)
        except FileNotFoundError as exc:
            raise ConfigNotFound("back up manifest", self.config_path, "file does not exist") from exc
        except OSError as exc:
            raise TextureIOError("back up manifest", self.backup_path, str(exc)) from exc
        self._backup_checked = True
        logger.info("Backed up %s to %s", self.config_path.name, self.backup_path.name)
        return True

    def save(self, textures: Mapping[str, str]) -> Manifest:
        self.backup_once()
        # Re-read so keys edited by hand since the last load are kept.
        manifest = self.load()
        document = dict(manifest.document)
        document[TEXTURES_KEY] = dict(textures)
        payload = json.dumps(document, indent=2, ensure_ascii=False) + "\n"

        tmp_fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".json", dir=str(self.config_path.parent))
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                f.write(payload)
            # mkstemp creates 0600 files; keep the manifest's own permissions.
            try:
                shutil.copymode(self.config_path, tmp_path)
            except FileNotFoundError:
                logger.debug("%s vanished before save; keeping default mode", self.config_path)
            os.replace(tmp_path, self.config_path)
        except OSError as exc:
            raise TextureIOError("save manifest", self.config_path, str(exc)) from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    logger.warning("Could not remove temporary file %s", tmp_path)
        logger.info("Wrote %d texture(s) to %s", len(textures), self.config_path)
        return Manifest(document)
