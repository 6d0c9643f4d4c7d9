"""Version information for the commit resolver.

``VERSION`` is the released version of the tool.  ``get_git_revision()``
returns the short hash of the checkout the tool runs from so that run logs
record exactly which build produced a set of links.
"""

VERSION = "0.1.0"


def get_git_revision() -> str:
    """Return the short git commit hash of this checkout, or 'unknown'."""
    import subprocess
    from pathlib import Path

    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=Path(__file__).resolve().parent,
            stderr=subprocess.DEVNULL,
        ).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"
