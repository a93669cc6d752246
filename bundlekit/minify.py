"""
Minifiers for bundle content.

The bundle manager treats a minifier as an opaque ``minify(text) -> text``
function that raises :class:`~bundlekit.faults.MinifyFault` on failure.
Stylesheets go through ``cssmin``, scripts through ``jsmin``.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

import cssmin
import jsmin

from .faults import MinifyFault

__all__ = ["Minifier", "CssMinifier", "JsMinifier", "NullMinifier", "get_minifier"]

logger = logging.getLogger("bundlekit.minify")


@runtime_checkable
class Minifier(Protocol):
    """Minifier contract."""

    def minify(self, text: str) -> str: ...


class CssMinifier:
    """
    Stylesheet minifier backed by ``cssmin``.

    Args:
        line_break: Wrap output lines after roughly this many characters,
            keeping error positions in large bundles readable.
    """

    kind = "css"

    def __init__(self, line_break: Optional[int] = 1000):
        self.line_break = line_break

    def minify(self, text: str) -> str:
        try:
            return cssmin.cssmin(text, wrap=self.line_break)
        except Exception as exc:
            raise MinifyFault(self.kind, str(exc)) from exc


class JsMinifier:
    """Script minifier backed by ``jsmin``."""

    kind = "script"

    def __init__(self, quote_chars: str = "'\"`"):
        self.quote_chars = quote_chars

    def minify(self, text: str) -> str:
        try:
            return jsmin.jsmin(text, quote_chars=self.quote_chars)
        except Exception as exc:
            raise MinifyFault(self.kind, str(exc)) from exc


class NullMinifier:
    """Returns its input unchanged."""

    kind = "none"

    def minify(self, text: str) -> str:
        return text


def get_minifier(kind: str) -> Minifier:
    """Minifier for a bundle kind name (``"css"`` or ``"script"``)."""
    kind = kind.lower()
    if kind == "css":
        return CssMinifier()
    if kind in ("script", "js"):
        return JsMinifier()
    logger.debug("No minifier for kind %r, content will be left as is", kind)
    return NullMinifier()
