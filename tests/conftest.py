from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde"
    b"\x00\x00\x00\x0cIDAT\x08\xd7c\xf8\x0f\x00\x01\x05\x01\x02\x9a\x07\x9c\xba"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)

ProjectFactory = Callable[..., Path]


@pytest.fixture
def make_project(tmp_path: Path) -> ProjectFactory:
    """Build a throwaway Bonzomatic root with a config.json and texture files."""

    def _make(
        textures: Optional[dict[str, str]] = None,
        files: Optional[dict[str, bytes]] = None,
        extra: Optional[dict[str, object]] = None,
        name: str = "bonzomatic",
    ) -> Path:
        root = tmp_path / name
        (root / "textures").mkdir(parents=True)
        document: dict[str, object] = dict(extra or {})
        document["textures"] = dict(textures or {})
        (root / "config.json").write_text(json.dumps(document, indent=2), encoding="utf-8")
        for file_name, payload in (files or {}).items():
            (root / "textures" / file_name).write_bytes(payload)
        return root

    return _make
