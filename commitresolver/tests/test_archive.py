# commitresolver/tests/test_archive.py
import tempfile
import zipfile

import pytest

from commitresolver.services.archive import extract_entry


@pytest.fixture
def package(tmp_path):
    path = tmp_path / "package.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("Microsoft.AspNetCore.App.nuspec", "<package/>")
        zf.writestr("shared/Microsoft.NETCore.App/3.0.0/System.Collections.dll", b"MZ\x90\x00")
    return path


def test_extract_entry_to_given_path(package, tmp_path):
    out = tmp_path / "out.nuspec"
    out.write_text("stale data that should be replaced")

    result = extract_entry(package, "Microsoft.AspNetCore.App.nuspec", out)

    assert result == out
    assert out.read_text() == "<package/>"


def test_extract_entry_accepts_windows_separators(package, tmp_path):
    out = tmp_path / "System.Collections.dll"
    extract_entry(package, "shared\\Microsoft.NETCore.App\\3.0.0\\System.Collections.dll", out)
    assert out.read_bytes() == b"MZ\x90\x00"


def test_extract_entry_creates_temp_file(package, tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    result = extract_entry(package, "Microsoft.AspNetCore.App.nuspec")
    try:
        assert result.parent == tmp_path
        assert result.suffix == ".nuspec"
        assert result.read_text() == "<package/>"
    finally:
        result.unlink()


def test_missing_entry_raises_key_error(package, tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    before = set(tmp_path.iterdir())

    with pytest.raises(KeyError, match="missing.nuspec"):
        extract_entry(package, "missing.nuspec")

    assert set(tmp_path.iterdir()) == before
