"""
Version and build information.

``setup.py`` writes ``_build_info.py`` into the built package when git is
available; source checkouts have none.
"""

import importlib
import importlib.util
from importlib.metadata import PackageNotFoundError, version

PACKAGE = "srvkit"
BUILD_INFO_MODULE = f"{PACKAGE}._build_info"


def package_version() -> str:
    try:
        return version(PACKAGE)
    except PackageNotFoundError:
        # Not installed (running from a checkout)
        return "0.1.0-dev"


def build_commit() -> str | None:
    """Short commit hash the package was built from, if recorded."""
    if importlib.util.find_spec(BUILD_INFO_MODULE) is None:
        return None
    build_info = importlib.import_module(BUILD_INFO_MODULE)
    return getattr(build_info, "COMMIT_SHORT", None) or None


def version_string() -> str:
    commit = build_commit()
    return f"{PACKAGE} {package_version()}" + (f" ({commit})" if commit else "")
