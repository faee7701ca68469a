from __future__ import annotations

import os
from pathlib import Path
from types import SimpleNamespace

import pytest

pytest.importorskip("tkinter")
pytest.importorskip("PIL")
pytest.importorskip("tkinterdnd2")

import texture_manager_app  # noqa: E402


class _FakeRoot:
    def withdraw(self) -> None:
        pass

    def destroy(self) -> None:
        pass


class _FakePhoto:
    def __init__(self, image) -> None:
        self.size = image.size


def _fake_app(root: Path) -> SimpleNamespace:
    return SimpleNamespace(manager=SimpleNamespace(root=root), _thumb_cache={})


def test_missing_dependencies_stop_without_installing(monkeypatch):
    shown = []
    monkeypatch.setattr(texture_manager_app.importlib.util, "find_spec", lambda name: None)
    monkeypatch.setattr(texture_manager_app.tk, "Tk", _FakeRoot)
    monkeypatch.setattr(texture_manager_app.messagebox, "showerror", lambda title, message, parent=None: shown.append(message))

    with pytest.raises(SystemExit) as excinfo:
        texture_manager_app._check_runtime_dependencies()

    assert "Pillow, tkinterdnd2" in str(excinfo.value)
    assert len(shown) == 1


def test_thumbnail_cache_keeps_one_entry_per_path(monkeypatch, tmp_path):
    monkeypatch.setattr(texture_manager_app.ImageTk, "PhotoImage", _FakePhoto)
    texture = tmp_path / "textures" / "sky.png"
    texture.parent.mkdir()
    texture_manager_app.Image.new("RGB", (4, 4), "orange").save(texture)
    app = _fake_app(tmp_path)

    first = texture_manager_app.TextureManagerApp._thumbnail(app, "textures/sky.png")
    assert texture_manager_app.TextureManagerApp._thumbnail(app, "textures/sky.png") is first

    stamp = texture.stat().st_mtime + 10
    os.utime(texture, (stamp, stamp))
    second = texture_manager_app.TextureManagerApp._thumbnail(app, "textures/sky.png")

    assert second is not first
    assert list(app._thumb_cache) == [str(texture)]
    assert app._thumb_cache[str(texture)] == (texture.stat().st_mtime, second)


def test_thumbnail_cache_drops_deleted_files(monkeypatch, tmp_path):
    monkeypatch.setattr(texture_manager_app.ImageTk, "PhotoImage", _FakePhoto)
    texture = tmp_path / "textures" / "sky.png"
    texture.parent.mkdir()
    texture_manager_app.Image.new("RGB", (4, 4), "orange").save(texture)
    app = _fake_app(tmp_path)

    assert texture_manager_app.TextureManagerApp._thumbnail(app, "textures/sky.png") is not None
    texture.unlink()

    assert texture_manager_app.TextureManagerApp._thumbnail(app, "textures/sky.png") is None
    assert app._thumb_cache == {}
