"""
Version variable resolution.

Source references may name the newest release of a file instead of a
fixed one::

    ~/lib/select2-{version}.min.css  ->  ~/lib/select2-4.0.13.min.css

The directory is scanned for files matching ``select2-*.min.css``; the
wildcard segment must be dot-separated integers and candidates are
ordered numerically segment by segment, so ``10`` beats ``9``.

Resolved URLs are memoized in a :class:`VersionCache` owned by the bundle
manager. Misses are memoized too (as the unexpanded template) so a missing
file costs one directory scan per cache generation, not one per request.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from .faults import Fault, InvalidVersionMaskFault
from .files import FileProvider

__all__ = ["VersionCache", "VersionResolver", "parse_version", "VERSION_TEMPLATE"]

logger = logging.getLogger("bundlekit.versions")

VERSION_TEMPLATE = "{version}"


def parse_version(value: str) -> Optional[Tuple[int, ...]]:
    """
    Parse ``"1.10.2"`` into ``(1, 10, 2)``.

    Returns None unless every dot-separated segment is a non-negative
    integer.
    """
    if not value:
        return None
    segments = value.split(".")
    if not all(s.isascii() and s.isdigit() for s in segments):
        return None
    return tuple(int(s) for s in segments)


class VersionCache:
    """
    Thread-safe memo of template URL -> resolved URL.

    Entries never expire on their own; :meth:`clear` drops all of them when
    the underlying files change.
    """

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, template: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(template)

    def set(self, template: str, resolved: str) -> None:
        with self._lock:
            self._entries[template] = resolved

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, template: object) -> bool:
        with self._lock:
            return template in self._entries


class VersionResolver:
    """
    Resolves ``{version}`` tokens against files below the web root.

    Args:
        files: File provider rooted at the web root.
        cache: Memo for resolved URLs; a private one is created if omitted.
    """

    def __init__(self, files: FileProvider, cache: Optional[VersionCache] = None):
        self.files = files
        self.cache = cache if cache is not None else VersionCache()

    def get_latest_version(self, directory: Path, mask: str) -> Optional[str]:
        """
        Find the highest version captured by the ``*`` in *mask*.

        Args:
            directory: Directory to scan.
            mask: File name mask with exactly one ``*``, not at position 0.

        Returns:
            The captured version string (e.g. ``"10"`` for ``app.10.js``
            under ``app.*.js``), or None if no file qualifies.

        Raises:
            InvalidVersionMaskFault: if the mask is malformed.
        """
        if not mask:
            return None

        idx = mask.find("*")
        if idx <= 0 or mask.count("*") != 1:
            raise InvalidVersionMaskFault(mask)

        before = mask[:idx]
        after = mask[idx + 1:]

        best: Optional[Tuple[Tuple[int, ...], str]] = None
        for filename in self.files.list_files(directory, mask):
            captured = filename[len(before):len(filename) - len(after)]
            version = parse_version(captured)
            if version is None:
                continue
            if best is None or version > best[0]:
                best = (version, captured)

        return best[1] if best is not None else None

    def expand_version_variable(self, url: str) -> str:
        """
        Substitute the newest matching version for ``{version}`` in *url*.

        The token is matched case-insensitively. The text before it names a
        directory and file name prefix, the text after it the file name
        suffix. If nothing matches, *url* is returned (and cached) as is.
        """
        if not url:
            return url

        idx = url.lower().find(VERSION_TEMPLATE)
        if idx < 0:
            return url

        cached = self.cache.get(url)
        if cached is not None:
            return cached

        before = url[:idx]
        after = url[idx + len(VERSION_TEMPLATE):]

        relative = before[2:] if before.startswith("~/") else before
        directory, _, name_prefix = relative.rpartition("/")

        latest = None
        if name_prefix and "/" not in after:
            try:
                latest = self.get_latest_version(
                    self.files.secure_combine(directory),
                    name_prefix + "*" + after,
                )
            except Fault as fault:
                fault.log(logger, f"Cannot resolve version for {url}")

        if latest is None:
            logger.debug("No versioned file found for %s", url)
            self.cache.set(url, url)
            return url

        result = before + latest + after
        self.cache.set(url, result)
        return result
