"""Download release artifacts with a bounded number of retries.

All requests go through one ``requests.Session`` created when this module
is imported and shared for the whole run, so connections to the package
feeds are pooled between versions.  A download attempt that times out,
fails at the network level or returns a non-2xx status is logged and
retried immediately; after the last attempt the caller gets ``False``
instead of an exception.

Usage as a script:
    python3 -m commitresolver.services.fetch <url> <output_path> [--retries N] [--timeout S]
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path

import requests

from commitresolver.core.utils import write_log
from commitresolver.version import VERSION

CHUNK_SIZE = 64 * 1024

# Process-wide HTTP client
http_session = requests.Session()
http_session.headers["User-Agent"] = f"commit-resolver/{VERSION}"


def download_file(
    url: str,
    output_path: str | os.PathLike,
    max_retries: int = 3,
    timeout: float = 5,
    session: requests.Session | None = None,
) -> bool:
    """Download ``url`` into ``output_path``.

    Args:
        url: Artifact URL.
        output_path: Destination file; an existing file is overwritten.
        max_retries: Number of attempts before giving up.
        timeout: Seconds allowed per attempt, covering the connection and
            the full body transfer.
        session: HTTP session to use instead of the shared one.

    Returns:
        True once the whole body has been written, False when every attempt
        failed.
    """
    session = session or http_session
    output_path = Path(output_path)
    for attempt in range(1, max_retries + 1):
        try:
            _download_once(session, url, output_path, timeout)
            return True
        except (requests.RequestException, OSError) as exc:
            write_log(f"[!] Error while downloading {url} (attempt {attempt}/{max_retries}): {exc}")
    write_log(f"[!] Giving up on {url} after {max_retries} attempts")
    return False


def _download_once(session: requests.Session, url: str, output_path: Path, timeout: float) -> None:
    deadline = time.monotonic() + timeout
    with session.get(url, stream=True, timeout=timeout) as resp:
        resp.raise_for_status()
        with open(output_path, "wb") as f:
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise requests.Timeout(f"Download exceeded {timeout}s")
                f.write(chunk)


def main() -> None:
    parser = argparse.ArgumentParser(description="Download a file with retries.")
    parser.add_argument("url", help="URL to download")
    parser.add_argument("output_path", help="Where to write the response body")
    parser.add_argument("--retries", type=int, default=3, help="Number of attempts (default: 3)")
    parser.add_argument("--timeout", type=float, default=5, help="Seconds per attempt (default: 5)")
    args = parser.parse_args()

    write_log(f"[↓] Downloading: {args.url}")
    if not download_file(args.url, args.output_path, max_retries=args.retries, timeout=args.timeout):
        sys.exit(1)
    write_log(f"[✓] Saved: {args.output_path}")


if __name__ == "__main__":
    main()
