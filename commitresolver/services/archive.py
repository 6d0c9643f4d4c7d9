"""Extract single entries from downloaded zip packages.

NuGet packages and the runtime zips are both plain zip archives.  Entry
names may be given with Windows separators (``shared\\Microsoft.NETCore.App\\...``);
zip files store ``/`` so both spellings are looked up.
"""

from __future__ import annotations

import os
import shutil
import zipfile
from pathlib import Path

from commitresolver.core.utils import new_temp_file, remove_file


def find_entry(archive: zipfile.ZipFile, entry_name: str) -> zipfile.ZipInfo:
    """Return the ``ZipInfo`` for ``entry_name`` or raise ``KeyError``."""
    candidates = [entry_name]
    normalized = entry_name.replace("\\", "/")
    if normalized != entry_name:
        candidates.append(normalized)
    for name in candidates:
        try:
            return archive.getinfo(name)
        except KeyError:
            continue
    raise KeyError(f"Entry {entry_name!r} not found in archive {archive.filename}")


def extract_entry(
    archive_path: str | os.PathLike,
    entry_name: str,
    output_path: str | os.PathLike | None = None,
) -> Path:
    """Write the bytes of one archive entry to a file.

    Args:
        archive_path: Path of the zip archive, opened read-only.
        entry_name: Exact archive-internal name of the entry.
        output_path: Destination file, overwritten if present.  A new temp
            file is created when omitted.

    Returns:
        Path of the extracted file.  Deleting it is the caller's job.

    Raises:
        KeyError: If the archive has no such entry.
    """
    with zipfile.ZipFile(archive_path, "r") as archive:
        info = find_entry(archive, entry_name)
        if output_path is not None:
            target = Path(output_path)
        else:
            target = new_temp_file(Path(info.filename).suffix)
        try:
            with archive.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except BaseException:
            if output_path is None:
                remove_file(target, quiet=True)
            raise
    return target
