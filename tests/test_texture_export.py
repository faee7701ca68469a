from __future__ import annotations

import os
import stat
import zipfile

import pytest
from conftest import PNG_BYTES

from texture_catalog import list_texture_directory, reconcile
from texture_errors import ArchiveError, PathEscape
from texture_export import EXPORT_FILE_NAME, export_zip
from texture_import import import_archive
from texture_manager import TextureManager


def test_export_contains_only_active_textures_uncompressed(make_project):
    root = make_project(
        textures={"texSky": "textures/sky.png", "texFog": "textures/fog.png"},
        files={"sky.png": PNG_BYTES, "fog.png": b"fog" * 100, "cloud.png": b"cloud"},
    )
    catalog = reconcile({"texSky": "textures/sky.png", "texFog": "textures/fog.png"}, list_texture_directory(root))

    result = export_zip(catalog, root)

    assert result.destination == str(root / EXPORT_FILE_NAME)
    with zipfile.ZipFile(root / EXPORT_FILE_NAME) as zf:
        assert zf.namelist() == ["textures/sky.png", "textures/fog.png"]
        assert all(info.compress_type == zipfile.ZIP_STORED for info in zf.infolist())
        assert zf.read("textures/sky.png") == PNG_BYTES


def test_export_is_byte_identical_across_runs(make_project, tmp_path):
    root = make_project(textures={"texSky": "textures/sky.png"}, files={"sky.png": PNG_BYTES})
    catalog = reconcile({"texSky": "textures/sky.png"}, list_texture_directory(root))

    export_zip(catalog, root, tmp_path / "one.zip")
    (root / "textures" / "sky.png").touch()
    export_zip(catalog, root, tmp_path / "two.zip")

    assert (tmp_path / "one.zip").read_bytes() == (tmp_path / "two.zip").read_bytes()


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_export_pack_follows_umask(make_project):
    root = make_project(textures={"texSky": "textures/sky.png"}, files={"sky.png": PNG_BYTES})
    catalog = reconcile({"texSky": "textures/sky.png"}, list_texture_directory(root))

    previous = os.umask(0o022)
    try:
        export_zip(catalog, root)
    finally:
        os.umask(previous)

    assert stat.S_IMODE((root / EXPORT_FILE_NAME).stat().st_mode) == 0o644


def test_export_aborts_on_missing_texture(make_project):
    root = make_project(textures={"texSky": "textures/sky.png", "texGone": "textures/gone.png"}, files={"sky.png": b"sky"})
    catalog = reconcile({"texSky": "textures/sky.png", "texGone": "textures/gone.png"}, list_texture_directory(root))

    with pytest.raises(ArchiveError) as excinfo:
        export_zip(catalog, root)

    assert "textures/gone.png" in str(excinfo.value)
    assert not (root / EXPORT_FILE_NAME).exists()
    assert sorted(p.name for p in root.iterdir()) == ["config.json", "textures"]


def test_export_keeps_previous_pack_when_failing(make_project):
    root = make_project(textures={"texGone": "textures/gone.png"})
    (root / EXPORT_FILE_NAME).write_bytes(b"previous pack")
    catalog = reconcile({"texGone": "textures/gone.png"}, [])

    with pytest.raises(ArchiveError):
        export_zip(catalog, root)
    assert (root / EXPORT_FILE_NAME).read_bytes() == b"previous pack"


def test_export_rejects_escaping_paths(make_project, tmp_path):
    (tmp_path / "secret.png").write_bytes(b"secret")
    root = make_project(textures={"texSecret": "../secret.png"})
    catalog = reconcile({"texSecret": "../secret.png"}, [])

    with pytest.raises(PathEscape):
        export_zip(catalog, root)


def test_export_then_reimport_round_trip(make_project):
    declared = {"texSky": "textures/sky.png", "texNoise": "textures/sub/noise.jpg"}
    source = make_project(
        textures=declared,
        files={"sky.png": PNG_BYTES, "cloud.png": b"cloud"},
        name="source",
    )
    (source / "textures" / "sub").mkdir()
    (source / "textures" / "sub" / "noise.jpg").write_bytes(b"noise")
    manager = TextureManager(source)
    assert manager.reconcile().ok
    exported = manager.export()
    assert exported.ok

    fresh = make_project(textures=declared, name="fresh")
    imported = import_archive(fresh, source / EXPORT_FILE_NAME)
    assert sorted(imported.written) == ["textures/sky.png", "textures/sub/noise.jpg"]

    other = TextureManager(fresh)
    assert other.reconcile().ok
    pairs = [(e.uniform_name, e.relative_path) for e in other.catalog.active_entries()]
    assert pairs == [(e.uniform_name, e.relative_path) for e in manager.catalog.active_entries()]
    assert (fresh / "textures" / "sub" / "noise.jpg").read_bytes() == b"noise"
    assert not (fresh / "textures" / "cloud.png").exists()
