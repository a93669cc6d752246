"""
Bundle graph expansion.

Bundles may include other bundles by listing ``<self prefix><key>``
(e.g. ``dynamic://CssBundle.Site``). :func:`expand_includes` flattens
those references depth-first so every bundle maps to the plain source
references it ultimately contains, in order.

:class:`RecursionGuard` is the immutable chain of names currently being
expanded. It is threaded through every recursive call rather than kept
in shared state, so concurrent expansions never see each other's chain.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from ._datastructures import CaseInsensitiveDict
from .faults import BundleRecursionFault, RecursionFault

__all__ = ["MAX_DEPTH", "RecursionGuard", "expand_includes"]

MAX_DEPTH = 100


class RecursionGuard:
    """
    Immutable, case-insensitive chain of names being expanded.

    ``enter`` never mutates the guard it is called on, so the same guard
    can be handed to sibling calls safely.
    """

    __slots__ = ("_chain", "_folded")

    def __init__(self, chain: Iterable[str] = ()):
        self._chain: Tuple[str, ...] = tuple(chain)
        self._folded = frozenset(name.lower() for name in self._chain)

    @property
    def chain(self) -> Tuple[str, ...]:
        return self._chain

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._folded

    def __len__(self) -> int:
        return len(self._chain)

    def __repr__(self) -> str:
        return f"RecursionGuard({list(self._chain)!r})"

    def rejects(self, name: str) -> bool:
        """True if entering *name* would close a cycle or exceed the depth cap."""
        return name in self or len(self._chain) >= MAX_DEPTH

    def enter(self, name: str) -> "RecursionGuard":
        """
        Return a guard extended by *name*.

        Raises:
            RecursionFault: if :meth:`rejects` holds for *name*.
        """
        if self.rejects(name):
            raise RecursionFault(self._chain + (name,))
        return RecursionGuard(self._chain + (name,))


def expand_includes(
    bundles: Mapping[str, Optional[Sequence[str]]],
    self_prefix: str,
    kind: str,
) -> CaseInsensitiveDict[List[str]]:
    """
    Flatten bundle-of-bundle references.

    Args:
        bundles: Bundle key -> raw source references.
        self_prefix: Prefix marking a reference to another bundle.
        kind: Bundle kind name, used in error messages.

    Returns:
        Bundle key -> flat list of source references with no self-bundle
        references left. Each key is expanded once per call.

    Raises:
        BundleRecursionFault: on a cycle or a chain deeper than MAX_DEPTH.
    """
    definitions = bundles if isinstance(bundles, CaseInsensitiveDict) else CaseInsensitiveDict(bundles)
    folded_prefix = self_prefix.lower()
    expanded: CaseInsensitiveDict[List[str]] = CaseInsensitiveDict()
    # Names along the longest nesting chain below each expanded key.
    deepest: CaseInsensitiveDict[Tuple[str, ...]] = CaseInsensitiveDict()

    def visit(bundle_key: str, guard: RecursionGuard) -> List[str]:
        if bundle_key in expanded:
            below = deepest[bundle_key]
            if len(guard) + len(below) > MAX_DEPTH:
                raise BundleRecursionFault(kind, (guard.chain + below)[:MAX_DEPTH + 1])
            return expanded[bundle_key]

        includes: List[str] = []
        longest: Tuple[str, ...] = ()
        for source in definitions.get(bundle_key) or ():
            if not source:
                continue

            if not source.lower().startswith(folded_prefix):
                includes.append(source)
                continue

            sub_key = source[len(self_prefix):]
            if guard.rejects(sub_key):
                raise BundleRecursionFault(kind, guard.chain + (sub_key,))
            includes.extend(visit(sub_key, guard.enter(sub_key)))
            path = (sub_key,) + deepest[sub_key]
            if len(path) > len(longest):
                longest = path

        expanded[bundle_key] = includes
        deepest[bundle_key] = longest
        return includes

    result: CaseInsensitiveDict[List[str]] = CaseInsensitiveDict()
    for bundle_key in definitions:
        result[bundle_key] = list(visit(bundle_key, RecursionGuard((bundle_key,))))
    return result
