"""
Physical file access for bundle sources.

All paths handed to the provider are relative to the web root. They are
canonicalized with ``Path.resolve()`` and rejected when they escape the
root, the same traversal guard the static file middleware applies.
"""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import List, Protocol, Union, runtime_checkable

from .faults import PathTraversalFault

__all__ = ["FileProvider", "LocalFileProvider"]


@runtime_checkable
class FileProvider(Protocol):
    """Read/stat access to files below a web root."""

    def secure_combine(self, relative_path: str) -> Path: ...

    def exists(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...

    def list_files(self, directory: Path, mask: str) -> List[str]: ...


class LocalFileProvider:
    """
    File provider backed by the local file system.

    Args:
        root: Web root directory. Relative source paths (``~/css/a.css``,
            ``/css/a.css`` or ``css/a.css``) are resolved below it.
        encoding: Text encoding for :meth:`read_text`. The default strips a
            UTF-8 byte order mark so it never lands mid-bundle.
    """

    def __init__(self, root: Union[str, Path], encoding: str = "utf-8-sig"):
        self._root = Path(root).resolve()
        self._encoding = encoding

    @property
    def root(self) -> Path:
        return self._root

    def secure_combine(self, relative_path: str) -> Path:
        """
        Join *relative_path* onto the root.

        Raises:
            PathTraversalFault: if the canonical result is outside the root.
        """
        normalized = relative_path.replace("\\", "/")
        if normalized.startswith("~/"):
            normalized = normalized[2:]
        normalized = normalized.lstrip("/")

        candidate = (self._root / normalized).resolve()
        try:
            candidate.relative_to(self._root)
        except ValueError:
            raise PathTraversalFault(relative_path, str(self._root))
        return candidate

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def read_text(self, path: Path) -> str:
        with open(path, "r", encoding=self._encoding) as f:
            return f.read()

    def list_files(self, directory: Path, mask: str) -> List[str]:
        """File names in *directory* matching the glob *mask*, sorted."""
        directory = Path(directory)
        if not directory.is_dir():
            return []

        pattern = mask.lower()
        return sorted(
            entry.name
            for entry in directory.iterdir()
            if entry.is_file() and fnmatch.fnmatchcase(entry.name.lower(), pattern)
        )
