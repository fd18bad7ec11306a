"""Extension matching for discovered files."""

from __future__ import annotations

import os
from collections.abc import Collection
from pathlib import Path


def file_extension(path: str | Path) -> str:
    """Get the extension of a path, including the leading dot.

    The extension starts at the last "." of the base name, so a file named
    ".pdf" has the extension ".pdf". Names without a dot have no extension.

    Args:
        path: File path.

    Returns:
        The extension, or "" if there is none.
    """
    name = os.path.basename(path)
    dot = name.rfind(".")
    if dot < 0:
        return ""
    return name[dot:]


def matches(path: str | Path, extensions: Collection[str]) -> bool:
    """Check whether a path's extension is one of the given extensions.

    Comparison is exact: no case folding, no wildcards.
    """
    ext = file_extension(path)
    return bool(ext) and ext in extensions
