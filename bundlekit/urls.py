"""
URL utilities for Bundlekit.

- Virtual path resolution (``~/css/site.css`` -> ``/app/css/site.css``)
- Rewriting of relative ``url(...)`` references inside stylesheets so they
  keep pointing at the right files once the stylesheet is served from a
  bundle URL instead of its own location.
"""

from __future__ import annotations

import posixpath
import re

__all__ = [
    "VirtualPathResolver",
    "join_paths",
    "rewrite_urls_to_absolute",
    "url_to_absolute",
]

_CSS_URL_RE = re.compile(r"""url\((?P<prefix>['"]?)(?P<url>[^)]+?)(?P<suffix>['"]?)\)""")


def join_paths(*parts: str) -> str:
    """
    Robustly join URL path segments.

    Example:
        join_paths("/app/", "/css", "site.css") -> "/app/css/site.css"
    """
    clean_parts = [part.strip("/") for part in parts if part and part.strip("/")]
    joined = "/" + "/".join(clean_parts)

    # Preserve trailing slash of the last segment, except for the root
    if parts and parts[-1].endswith("/") and joined != "/":
        joined += "/"

    return joined


class VirtualPathResolver:
    """
    Maps application-relative (``~/``) paths onto the public base path.

    Args:
        base_path: URL path the application is mounted at.
    """

    def __init__(self, base_path: str = "/"):
        self.base_path = join_paths(base_path or "/", "/")

    @property
    def root_url(self) -> str:
        return self.base_path

    def to_absolute(self, path: str) -> str:
        """Resolve ``~`` and ``~/...``; other paths are returned unchanged."""
        if not path:
            return path
        if path == "~":
            return self.base_path
        if path.startswith("~/"):
            rest = path[2:]
            return self.base_path + rest.lstrip("/") if rest else self.base_path
        return path


def url_to_absolute(absolute_dir: str, url: str, prefix: str = "", suffix: str = "") -> str:
    """
    Rewrite a single ``url()`` argument relative to *absolute_dir*.

    Absolute URLs, root-relative paths, fragment references and ``data:``
    URIs are returned unchanged. *absolute_dir* must end with ``/``.
    """
    if not url or not url.strip() or "://" in url:
        return prefix + url + suffix

    url = url.lstrip()
    if url.startswith(("/", "#")) or url.lower().startswith("data:"):
        return prefix + url + suffix

    cut = len(url)
    for marker in ("?", "#"):
        pos = url.find(marker)
        if 0 <= pos < cut:
            cut = pos

    path, rest = url[:cut], url[cut:]
    normalized = posixpath.normpath(absolute_dir + path) if path else absolute_dir
    return prefix + normalized + rest + suffix


def rewrite_urls_to_absolute(virtual_path: str, content: str) -> str:
    """
    Make relative ``url(...)`` references in *content* absolute.

    Args:
        virtual_path: Public URL of the source file, or of its directory
            when it ends with ``/``.
        content: Stylesheet text.
    """
    if not content or not virtual_path:
        return content

    absolute_dir = virtual_path.replace("\\", "/")
    if not absolute_dir.endswith("/"):
        absolute_dir = posixpath.dirname(absolute_dir)

    if not absolute_dir.strip():
        return content

    if not absolute_dir.endswith("/"):
        absolute_dir += "/"

    return _CSS_URL_RE.sub(
        lambda match: "url(" + url_to_absolute(
            absolute_dir,
            match.group("url"),
            match.group("prefix"),
            match.group("suffix"),
        ) + ")",
        content,
    )
