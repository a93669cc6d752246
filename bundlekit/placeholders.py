"""
Placeholder substitution for bundle source references.

A source reference may carry ``{key}`` and ``{!key}`` tokens that are
resolved against the configured replacement values when bundles are
loaded::

    expand("~/css/theme{rtl}.css", {"rtl": ".rtl"})   -> "~/css/theme.rtl.css"
    expand("~/css/debug.css{!production}", {"production": True})  -> None

A ``None`` result means the reference does not apply under the current
replacement values and is dropped from its bundle. ``{version}`` is left
in place for :mod:`bundlekit.versions`.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

__all__ = ["expand", "VERSION_TOKEN"]

VERSION_TOKEN = "version"


def expand(template: str, replacements: Optional[Mapping[str, Any]]) -> Optional[str]:
    """
    Resolve placeholder tokens in *template*.

    Plain tokens need a present value other than ``False``; ``True``
    substitutes an empty string, anything else its ``str()`` form.
    Negated tokens (``{!key}``) substitute an empty string only when the
    value is missing, ``None`` or ``False``.

    Returns:
        The expanded string, or None when any token fails to resolve or
        a token name is empty.
    """
    if not template:
        return template

    idx = 0
    while idx < len(template):
        start = template.find("{", idx)
        if start < 0:
            break

        end = template.find("}", start + 1)
        if end < 0:
            break

        key = template[start + 1:end]
        if not key:
            return None

        if key.lower() == VERSION_TOKEN:
            idx = end + 1
            continue

        falsey = key.startswith("!")
        if falsey:
            key = key[1:]
            if not key:
                return None

        value = replacements.get(key) if replacements else None

        if falsey:
            if value is not None and value is not False:
                return None
            replace = ""
        else:
            if value is None or value is False:
                return None
            replace = "" if value is True else str(value)

        template = template[:start] + replace + template[end + 1:]
        idx = start + len(replace)

    return template
