"""
Dynamic script registry.

Dynamic scripts are named, regenerable text artifacts (bundles among
them) served from a single route. The registry:

- stores scripts under case-insensitive names
- materializes a script's text lazily on first read and caches it
- drops the cached text and notifies listeners when told a script changed
- runs a script's rights check before it is served

Listeners are how bundles learn that a script they include has changed;
the cached text itself is only ever invalidated through :meth:`changed`.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Callable, List, Optional, Protocol, Sequence, runtime_checkable

from ._datastructures import CaseInsensitiveDict
from .faults import AccessDeniedFault, ScriptNotFoundFault
from .graph import RecursionGuard

__all__ = [
    "ChangeListener",
    "ConcatenatedScript",
    "DynamicScript",
    "DynamicScriptManager",
    "TextScript",
]

logger = logging.getLogger("bundlekit.scripts")

ChangeListener = Callable[[str], None]
ContentProducer = Callable[[RecursionGuard], str]


@runtime_checkable
class DynamicScript(Protocol):
    """
    Contract for registered scripts.

    Both methods receive the recursion guard of the materialization in
    progress so scripts that pull in other scripts can extend it.
    """

    def get_text(self, guard: RecursionGuard) -> str: ...

    def check_rights(self, guard: RecursionGuard) -> bool: ...


class TextScript:
    """
    Script with fixed text.

    Args:
        text: Script content.
        permission: Optional callable deciding whether the current caller
            may read the script.
    """

    def __init__(self, text: str, permission: Optional[Callable[[], bool]] = None):
        self.text = text
        self.permission = permission

    def get_text(self, guard: RecursionGuard) -> str:
        return self.text

    def check_rights(self, guard: RecursionGuard) -> bool:
        return self.permission is None or bool(self.permission())


class ConcatenatedScript:
    """
    Script whose text is the ordered concatenation of producer outputs.

    Args:
        parts: Producers called with the active recursion guard.
        separator: Inserted between parts.
        rights: Optional check raising a fault when the caller may not
            read one of the underlying scripts.
    """

    def __init__(
        self,
        parts: Sequence[ContentProducer],
        separator: str = "\n\n",
        rights: Optional[Callable[[RecursionGuard], None]] = None,
    ):
        self.parts = tuple(parts)
        self.separator = separator
        self.rights = rights

    def get_text(self, guard: RecursionGuard) -> str:
        return self.separator.join(part(guard) for part in self.parts)

    def check_rights(self, guard: RecursionGuard) -> bool:
        if self.rights is not None:
            self.rights(guard)
        return True


class DynamicScriptManager:
    """
    In-process registry of dynamic scripts with text caching and change
    notification.

    Thread-safe. Concurrent first reads of the same script may both
    produce its text; the first stored result wins until the next
    :meth:`changed`.
    """

    def __init__(self) -> None:
        self._scripts: CaseInsensitiveDict[DynamicScript] = CaseInsensitiveDict()
        self._texts: CaseInsensitiveDict[str] = CaseInsensitiveDict()
        self._generations: CaseInsensitiveDict[int] = CaseInsensitiveDict()
        self._listeners: List[ChangeListener] = []
        self._lock = threading.RLock()

    # ── Registration ──────────────────────────────────────────────────────

    def register(self, name: str, script: DynamicScript) -> None:
        """Register (or replace) *script* under *name*."""
        with self._lock:
            self._scripts[name] = script
            self._texts.pop(name, None)
            self._generations[name] = self._generations.get(name, 0) + 1
        logger.debug("Registered dynamic script %s", name)

    def unregister(self, name: str) -> None:
        with self._lock:
            self._scripts.pop(name, None)
            self._texts.pop(name, None)
            self._generations[name] = self._generations.get(name, 0) + 1

    def is_registered(self, name: str) -> bool:
        with self._lock:
            return name in self._scripts

    def names(self) -> List[str]:
        with self._lock:
            return list(self._scripts)

    # ── Change notification ───────────────────────────────────────────────

    def subscribe(self, listener: ChangeListener) -> None:
        """Call *listener* with the script name whenever a script changes."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def changed(self, name: str) -> None:
        """Invalidate the cached text of *name* and notify listeners."""
        with self._lock:
            self._texts.pop(name, None)
            self._generations[name] = self._generations.get(name, 0) + 1
            listeners = list(self._listeners)

        logger.debug("Dynamic script %s changed", name)
        for listener in listeners:
            try:
                listener(name)
            except Exception:
                logger.exception("Change listener failed for dynamic script %s", name)

    # ── Access ────────────────────────────────────────────────────────────

    def get_script_text(self, name: str, guard: Optional[RecursionGuard] = None) -> Optional[str]:
        """
        Text of *name*, materialized on first access.

        Returns:
            The text, or None if no such script is registered.
        """
        with self._lock:
            script = self._scripts.get(name)
            if script is None:
                return None
            cached = self._texts.get(name)
            if cached is not None:
                return cached
            generation = self._generations.get(name, 0)

        text = script.get_text(guard if guard is not None else RecursionGuard())

        with self._lock:
            if self._generations.get(name, 0) == generation:
                self._texts[name] = text
        return text

    def check_script_rights(self, name: str, guard: Optional[RecursionGuard] = None) -> None:
        """
        Verify the current caller may read *name*.

        Raises:
            ScriptNotFoundFault: if no such script is registered.
            AccessDeniedFault: if the script's rights check fails.
        """
        with self._lock:
            script = self._scripts.get(name)
        if script is None:
            raise ScriptNotFoundFault(name)
        if not script.check_rights(guard if guard is not None else RecursionGuard()):
            raise AccessDeniedFault(name)

    def read_script(self, name: str) -> str:
        """
        Rights-checked text of *name*, as served to clients.

        Raises:
            ScriptNotFoundFault, AccessDeniedFault
        """
        self.check_script_rights(name)
        text = self.get_script_text(name)
        if text is None:
            raise ScriptNotFoundFault(name)
        return text

    def get_script_include(self, name: str, extension: str = ".js") -> str:
        """
        Cache-busting include name, e.g. ``CssBundle.Site.css?v=1a2b3c4d5e6f``.

        The hash follows the current text, so the include changes whenever
        the script does.
        """
        include = name + extension
        text = self.get_script_text(name)
        if text is None:
            return include
        digest = hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()[:12]
        return f"{include}?v={digest}"
