"""Read the source commit embedded in a .NET assembly.

Runtime assemblies carry an ``AssemblyInformationalVersionAttribute`` whose
text looks like ``3.0.0-preview-27122-01+9a3b5f...``: the build version
followed by the commit the assembly was built from.  The attribute is read
from the ECMA-335 metadata tables with ``dnfile``; nothing in the assembly
is loaded or executed.

Usage as a script:
    python3 -m commitresolver.parsers.assembly <dll_path> [<dll_path> ...]
"""

from __future__ import annotations

import argparse
import os
import re

import dnfile

INFORMATIONAL_VERSION_ATTRIBUTE = "AssemblyInformationalVersionAttribute"
COMMIT_HASH_RE = re.compile(r"[0-9a-f]{40}")


# ---------------------------------------------------------------------------
# Blob decoding
# ---------------------------------------------------------------------------

def _read_compressed_uint(blob: bytes, offset: int) -> tuple[int, int]:
    """Decode an ECMA-335 compressed unsigned integer at ``offset``.

    Returns the value and the offset just past it.
    """
    first = blob[offset]
    if first & 0x80 == 0:
        return first, offset + 1
    if first & 0xC0 == 0x80:
        return ((first & 0x3F) << 8) | blob[offset + 1], offset + 2
    if first & 0xE0 == 0xC0:
        value = int.from_bytes(blob[offset + 1:offset + 4], "big")
        return ((first & 0x1F) << 24) | value, offset + 4
    raise ValueError(f"Invalid compressed integer lead byte 0x{first:02x}")


def decode_string_argument(blob: bytes) -> str | None:
    """Decode the first constructor argument of a custom attribute blob.

    The blob starts with the 0x0001 prolog followed by the argument as a
    ``SerString``: a compressed length and UTF-8 bytes, or 0xFF for null.
    """
    if len(blob) < 3 or blob[0:2] != b"\x01\x00":
        raise ValueError("Custom attribute blob has no 0x0001 prolog")
    if blob[2] == 0xFF:
        return None
    length, start = _read_compressed_uint(blob, 2)
    if start + length > len(blob):
        raise ValueError("Custom attribute string runs past the end of the blob")
    return blob[start:start + length].decode("utf-8")


# ---------------------------------------------------------------------------
# Metadata lookups
# ---------------------------------------------------------------------------

def _text(item) -> str:
    # dnfile wraps heap values in HeapItem objects exposing ``.value``
    return str(getattr(item, "value", item))


def _blob(item) -> bytes:
    return bytes(getattr(item, "value", item))


def _owning_type_name(mdtables, method_index: int) -> str | None:
    """Return the name of the TypeDef whose method list holds ``method_index``."""
    for typedef in mdtables.TypeDef.rows if mdtables.TypeDef else []:
        for method in typedef.MethodList or []:
            if method.row_index == method_index:
                return _text(typedef.TypeName)
    return None


def attribute_type_name(mdtables, attribute) -> str | None:
    """Return the type name of a ``CustomAttribute`` row's attribute class."""
    ctor = attribute.Type
    if ctor is None or ctor.table is None:
        return None
    if ctor.table.name == "MethodDef":
        return _owning_type_name(mdtables, ctor.row_index)
    member = ctor.row
    if member is None or member.Class is None:
        return None
    parent = member.Class.row
    if parent is None:
        return None
    if member.Class.table.name == "MethodDef":
        return _owning_type_name(mdtables, member.Class.row_index)
    if hasattr(parent, "TypeName"):
        return _text(parent.TypeName)
    return None


def read_informational_version(path: str | os.PathLike) -> str | None:
    """Return the informational version string declared by an assembly.

    Raises:
        ValueError: If the file is a PE image without .NET metadata.
        LookupError: If no ``AssemblyInformationalVersionAttribute`` is
            declared.
    """
    pe = dnfile.dnPE(os.fspath(path))
    try:
        if pe.net is None or pe.net.mdtables is None:
            raise ValueError(f"{path} is not a .NET assembly")
        mdtables = pe.net.mdtables
        attributes = mdtables.CustomAttribute.rows if mdtables.CustomAttribute else []
        for attribute in attributes:
            if attribute_type_name(mdtables, attribute) == INFORMATIONAL_VERSION_ATTRIBUTE:
                return decode_string_argument(_blob(attribute.Value))
    finally:
        pe.close()
    raise LookupError(f"{path} has no {INFORMATIONAL_VERSION_ATTRIBUTE}")


# ---------------------------------------------------------------------------
# Commit extraction
# ---------------------------------------------------------------------------

def extract_commit_hash(text: str | None) -> str | None:
    """Return the first 40-character lowercase hex run in ``text``."""
    match = COMMIT_HASH_RE.search(str(text))
    return match.group(0) if match else None


def read_commit_from_module(path: str | os.PathLike) -> str | None:
    """Return the commit hash embedded in an assembly's informational version.

    ``None`` when the attribute is present but carries no hash.  A missing
    attribute raises ``LookupError``.
    """
    return extract_commit_hash(read_informational_version(path))


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the commit embedded in .NET assemblies.")
    parser.add_argument("dll_paths", nargs="+", help="Assemblies to inspect")
    args = parser.parse_args()
    for dll_path in args.dll_paths:
        version = read_informational_version(dll_path)
        print(f"{dll_path}: {extract_commit_hash(version)} ({version})")


if __name__ == "__main__":
    main()
