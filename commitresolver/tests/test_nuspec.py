# commitresolver/tests/test_nuspec.py
import pytest
from lxml import etree

from commitresolver.parsers.nuspec import read_commit_from_manifest

COMMIT = "abc1230000000000000000000000000000000def"
NUSPEC_NS = "http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd"


def write(tmp_path, text):
    path = tmp_path / "Microsoft.AspNetCore.App.nuspec"
    path.write_text(text, encoding="utf-8")
    return path


def test_minimal_manifest(tmp_path):
    path = write(tmp_path, f'<package xmlns="{NUSPEC_NS}"><metadata><repository commit="{COMMIT}"/></metadata></package>')
    assert read_commit_from_manifest(path) == COMMIT


def test_realistic_manifest(tmp_path):
    path = write(tmp_path, f"""<?xml version="1.0" encoding="utf-8"?>
<package xmlns="{NUSPEC_NS}">
  <metadata>
    <id>Microsoft.AspNetCore.App</id>
    <version>3.0.0-preview-18579-0056</version>
    <authors>Microsoft</authors>
    <repository type="git" url="https://github.com/aspnet/AspNetCore" commit="{COMMIT}" />
    <dependencies>
      <group targetFramework=".NETCoreApp3.0" />
    </dependencies>
  </metadata>
</package>
""")
    assert read_commit_from_manifest(path) == COMMIT


def test_commit_returned_verbatim(tmp_path):
    path = write(tmp_path, f'<package xmlns="{NUSPEC_NS}"><metadata><repository commit="not-a-hash"/></metadata></package>')
    assert read_commit_from_manifest(path) == "not-a-hash"


def test_missing_repository_raises(tmp_path):
    path = write(tmp_path, f'<package xmlns="{NUSPEC_NS}"><metadata><id>x</id></metadata></package>')
    with pytest.raises(ValueError, match="repository"):
        read_commit_from_manifest(path)


def test_missing_commit_attribute_raises(tmp_path):
    path = write(tmp_path, f'<package xmlns="{NUSPEC_NS}"><metadata><repository type="git"/></metadata></package>')
    with pytest.raises(ValueError, match="commit"):
        read_commit_from_manifest(path)


def test_elements_outside_root_namespace_are_ignored(tmp_path):
    path = write(tmp_path, f'<package xmlns="{NUSPEC_NS}" xmlns:o="urn:other">'
                           f'<o:metadata><repository commit="{COMMIT}"/></o:metadata></package>')
    with pytest.raises(ValueError, match="metadata"):
        read_commit_from_manifest(path)


def test_empty_document_raises(tmp_path):
    path = write(tmp_path, "")
    with pytest.raises(etree.XMLSyntaxError):
        read_commit_from_manifest(path)


@pytest.mark.parametrize("text", [
    # truncated after the repository element
    f'<package xmlns="{NUSPEC_NS}"><metadata><repository commit="{"a" * 40}"/>',
    # mismatched end tag
    f'<package xmlns="{NUSPEC_NS}"><metadata><repository commit="{"b" * 40}"/></metadatax></package>',
    # trailing garbage after the root element
    f'<package xmlns="{NUSPEC_NS}"><metadata><repository commit="{"c" * 40}"/></metadata></package><junk',
])
def test_malformed_manifest_raises(tmp_path, text):
    path = write(tmp_path, text)
    with pytest.raises(etree.XMLSyntaxError):
        read_commit_from_manifest(path)
