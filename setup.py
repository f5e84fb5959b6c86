"""Build hook recording the git commit into srvkit/_build_info.py.

Project metadata lives in pyproject.toml. This only swaps in a build_py
command that writes the build info into the build directory (never into
the source tree), so ``srvkit --version`` can report the commit.
"""

import subprocess
import sys
from datetime import UTC, datetime
from pathlib import Path

from setuptools import setup
from setuptools.command.build_py import build_py

PACKAGE = "srvkit"

_BUILD_INFO = '''\
"""Build information - generated at build time, do not edit."""

COMMIT_HASH = "{commit}"
COMMIT_SHORT = "{short}"
BUILD_TIME = "{built}"
MODIFIED = {modified}
'''


def _git(*args: str) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=Path(__file__).parent,
        )
    except (subprocess.SubprocessError, OSError):
        return None
    return result.stdout.strip() if result.returncode == 0 else None


def write_build_info(package_dir: Path) -> bool:
    commit = _git("rev-parse", "HEAD")
    if not commit:
        print(f"{PACKAGE}: no git checkout, _build_info.py not written", file=sys.stderr)
        return False
    status = _git("status", "--porcelain")
    (package_dir / "_build_info.py").write_text(
        _BUILD_INFO.format(
            commit=commit,
            short=commit[:7],
            built=datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            modified=bool(status),
        )
    )
    return True


class BuildPy(build_py):
    def run(self):
        super().run()
        if self.build_lib:
            package_dir = Path(self.build_lib) / PACKAGE
            if package_dir.is_dir():
                write_build_info(package_dir)


setup(cmdclass={"build_py": BuildPy})
