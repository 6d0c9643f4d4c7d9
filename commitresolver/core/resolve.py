"""Resolve ASP.NET Core and .NET Core runtime versions to source commits.

For every requested version the matching release artifact is downloaded,
the file that records provenance is extracted from it and the commit hash
is read out.  With a single version the commit link is printed; with
several versions a compare link is printed for each consecutive pair so a
regression can be bisected across releases.

ASP.NET Core versions are resolved through the ``Microsoft.AspNetCore.App``
package nuspec.  Runtime versions are resolved through two assemblies of
the Windows x64 runtime zip: ``System.Collections.dll`` for CoreFX and
``SOS.NETCore.dll`` for CoreCLR.

Usage:
    python3 -m commitresolver.core.resolve --aspnet <version> [<version> ...]
    python3 -m commitresolver.core.resolve --runtime <version> [<version> ...]

Exactly one of --aspnet and --runtime may be given.  A version that cannot
be downloaded fails the whole run.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import pandas as pd

from commitresolver.core.utils import configure_log, temp_path, write_log
from commitresolver.parsers.assembly import read_commit_from_module
from commitresolver.parsers.nuspec import read_commit_from_manifest
from commitresolver.services.archive import extract_entry
from commitresolver.services.fetch import download_file
from commitresolver.version import VERSION, get_git_revision

# === CONFIG ===
ASPNET_FEED = os.getenv(
    "COMMIT_RESOLVER_ASPNET_FEED",
    "https://dotnet.myget.org/F/aspnetcore-dev/api/v2/package/Microsoft.AspNetCore.App/",
)
RUNTIME_FEED = os.getenv(
    "COMMIT_RESOLVER_RUNTIME_FEED",
    "https://dotnetcli.azureedge.net/dotnet/Runtime/{0}/dotnet-runtime-{0}-win-x64.zip",
)
MAX_RETRIES = int(os.getenv("COMMIT_RESOLVER_RETRIES", "3"))
TIMEOUT = float(os.getenv("COMMIT_RESOLVER_TIMEOUT", "5"))
LOG_FILE = os.getenv("COMMIT_RESOLVER_LOG")

ASPNET_NUSPEC = "Microsoft.AspNetCore.App.nuspec"
RUNTIME_ASSEMBLY_DIR = "shared\\Microsoft.NETCore.App\\{version}\\{assembly}"
CORECLR_ASSEMBLY = "SOS.NETCore.dll"
COREFX_ASSEMBLY = "System.Collections.dll"

ASPNET_TITLE = "Microsoft.AspNetCore.App"
COREFX_TITLE = "Microsoft.NetCore.App / Core FX"
CORECLR_TITLE = "Microsoft.NetCore.App / Core CLR"
ASPNET_REPO = "https://github.com/aspnet/AspNetCore"
COREFX_REPO = "https://github.com/dotnet/corefx"
CORECLR_REPO = "https://github.com/dotnet/coreclr"

USAGE_ERROR = "Either -a|--aspnet or -r|--runtime parameters is required"


class DownloadError(RuntimeError):
    """A release artifact could not be downloaded after all retries."""


# ---------------------------------------------------------------------------
# Per-version flows
# ---------------------------------------------------------------------------

def _download_package(url: str, package_path: Path, retries: int, timeout: float) -> None:
    write_log(f"[↓] Downloading: {url}")
    if not download_file(url, package_path, max_retries=retries, timeout=timeout):
        raise DownloadError(f"Could not download {url}")


def get_aspnet_commit_hash(
    version: str,
    feed: str = ASPNET_FEED,
    retries: int = MAX_RETRIES,
    timeout: float = TIMEOUT,
) -> str:
    """Return the AspNetCore commit a ``Microsoft.AspNetCore.App`` version was built from."""
    with temp_path(".nupkg") as package_path:
        _download_package(feed + version, package_path, retries, timeout)
        with temp_path(".nuspec", quiet=True) as nuspec_path:
            extract_entry(package_path, ASPNET_NUSPEC, nuspec_path)
            commit = read_commit_from_manifest(nuspec_path)
    write_log(f"[✓] {ASPNET_TITLE} {version}: {commit}")
    return commit


def get_runtime_assembly_commit_hash(package_path: Path, version: str, assembly: str) -> str | None:
    """Return the commit embedded in one assembly of a downloaded runtime zip."""
    entry = RUNTIME_ASSEMBLY_DIR.format(version=version, assembly=assembly)
    with temp_path(".dll", quiet=True) as assembly_path:
        extract_entry(package_path, entry, assembly_path)
        return read_commit_from_module(assembly_path)


def get_runtime_commit_hashes(
    version: str,
    feed: str = RUNTIME_FEED,
    retries: int = MAX_RETRIES,
    timeout: float = TIMEOUT,
) -> tuple[str | None, str | None]:
    """Return the ``(corefx, coreclr)`` commits of a .NET Core runtime version."""
    with temp_path(".zip") as package_path:
        _download_package(feed.format(version), package_path, retries, timeout)
        corefx = get_runtime_assembly_commit_hash(package_path, version, COREFX_ASSEMBLY)
        coreclr = get_runtime_assembly_commit_hash(package_path, version, CORECLR_ASSEMBLY)
    write_log(f"[✓] Microsoft.NetCore.App {version}: corefx {corefx}, coreclr {coreclr}")
    return corefx, coreclr


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def format_links(repo_url: str, commits: list[str | None]) -> list[str]:
    """Build the commit link for one version or compare links for consecutive pairs."""
    if len(commits) == 1:
        return [f"{repo_url}/commit/{commits[0]}"]
    return [
        f"{repo_url}/compare/{commits[i - 1]}...{commits[i]}"
        for i in range(1, len(commits))
    ]


def format_block(title: str, repo_url: str, commits: list[str | None]) -> list[str]:
    return [title, *format_links(repo_url, commits)]


def export_csv(csv_path: str | os.PathLike, rows: list[dict]) -> Path:
    """Write resolved ``version, component, commit`` rows to a CSV file."""
    csv_path = Path(csv_path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows, columns=["version", "component", "commit"])
    df.to_csv(csv_path, index=False)
    return csv_path


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------

def resolve_aspnet(versions: list[str], args: argparse.Namespace) -> tuple[list[str], list[dict]]:
    commits = [
        get_aspnet_commit_hash(v, feed=args.aspnet_feed, retries=args.retries, timeout=args.timeout)
        for v in versions
    ]
    rows = [{"version": v, "component": "aspnetcore", "commit": c} for v, c in zip(versions, commits)]
    return format_block(ASPNET_TITLE, ASPNET_REPO, commits), rows


def resolve_runtime(versions: list[str], args: argparse.Namespace) -> tuple[list[str], list[dict]]:
    corefx_commits: list[str | None] = []
    coreclr_commits: list[str | None] = []
    rows: list[dict] = []
    for v in versions:
        corefx, coreclr = get_runtime_commit_hashes(
            v, feed=args.runtime_feed, retries=args.retries, timeout=args.timeout
        )
        corefx_commits.append(corefx)
        coreclr_commits.append(coreclr)
        rows.append({"version": v, "component": "corefx", "commit": corefx})
        rows.append({"version": v, "component": "coreclr", "commit": coreclr})
    lines = format_block(COREFX_TITLE, COREFX_REPO, corefx_commits)
    lines.append("")
    lines += format_block(CORECLR_TITLE, CORECLR_REPO, coreclr_commits)
    return lines, rows


# ---------------------------------------------------------------------------
# CLI entry
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commit-resolver",
        description="Resolve ASP.NET Core or .NET Core runtime versions to their source commits.",
    )
    parser.add_argument("-a", "--aspnet", metavar="VERSION", nargs="+", action="extend",
                        help="The ASP.NET Core versions")
    parser.add_argument("-r", "--runtime", metavar="VERSION", nargs="+", action="extend",
                        help="The .NET Core Runtime versions")
    parser.add_argument("--retries", type=int, default=MAX_RETRIES,
                        help=f"Download attempts per artifact (default: {MAX_RETRIES})")
    parser.add_argument("--timeout", type=float, default=TIMEOUT,
                        help=f"Seconds allowed per download attempt (default: {TIMEOUT:g})")
    parser.add_argument("--aspnet-feed", default=ASPNET_FEED,
                        help="URL prefix of the Microsoft.AspNetCore.App package feed")
    parser.add_argument("--runtime-feed", default=RUNTIME_FEED,
                        help="URL template of the runtime zip; {0} is replaced by the version")
    parser.add_argument("--log-file", default=LOG_FILE, help="Also append the run log to this file")
    parser.add_argument("--csv", dest="csv_path", help="Write resolved commits to this CSV file")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {VERSION} ({get_git_revision()})")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if bool(args.aspnet) == bool(args.runtime):
        write_log(f"[🛑 ERROR] {USAGE_ERROR}")
        parser.print_usage()
        return 0
    if args.retries < 1:
        parser.error("--retries must be at least 1")

    configure_log(args.log_file)
    write_log(f"[INFO] Commit Resolver version {VERSION} ({get_git_revision()})")

    try:
        if args.aspnet:
            lines, rows = resolve_aspnet(args.aspnet, args)
        else:
            lines, rows = resolve_runtime(args.runtime, args)
    except DownloadError as exc:
        write_log(f"[🛑 ERROR] {exc}")
        return 1

    for line in lines:
        print(line)
    if args.csv_path:
        write_log(f"[✓] CSV saved to: {export_csv(args.csv_path, rows)}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        import traceback
        print("[❌ ERROR] Commit resolver crashed:")
        traceback.print_exc()
        sys.exit(1)
