"""Read the source commit from a NuGet ``.nuspec`` manifest.

A nuspec declares its schema as the root element's default namespace and
records provenance as ``<metadata><repository commit="..."/></metadata>``.
The commit attribute is returned verbatim.  The manifest is parsed strictly:
broken XML raises ``lxml.etree.XMLSyntaxError`` and a manifest without that
structure raises ``ValueError``, both left for the caller to surface.

Usage as a script:
    python3 -m commitresolver.parsers.nuspec <nuspec_path>
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path

from lxml import etree

_parser = etree.XMLParser(resolve_entities=False, no_network=True)


def _child(parent, name: str, namespace: str | None):
    """Return the first direct child called ``name`` in ``namespace``."""
    child = parent.find(etree.QName(namespace, name).text)
    if child is None:
        raise ValueError(f"<{etree.QName(parent).localname}> has no <{name}> element in namespace {namespace!r}")
    return child


def read_commit_from_manifest(path: str | os.PathLike) -> str:
    """Return the ``metadata/repository@commit`` value of a nuspec file.

    Raises:
        lxml.etree.XMLSyntaxError: If the file is not well-formed XML.
        ValueError: If the ``metadata``/``repository`` elements or the
            ``commit`` attribute are missing.
    """
    root = etree.fromstring(Path(path).read_bytes(), _parser)

    xmlns = root.nsmap.get(None)
    metadata = _child(root, "metadata", xmlns)
    repository = _child(metadata, "repository", xmlns)
    commit = repository.get("commit")
    if commit is None:
        raise ValueError(f"<repository> in {path} has no commit attribute")
    return commit


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the commit recorded in a .nuspec manifest.")
    parser.add_argument("nuspec_path", help="Path to the .nuspec file")
    args = parser.parse_args()
    print(read_commit_from_manifest(args.nuspec_path))


if __name__ == "__main__":
    main()
