"""
Content producers - one per source reference of a bundle.

Producers are built once per registry generation and called lazily when
the bundle's text is first materialized. Each captures exactly what it
needs; none of them shares mutable state with another.

Broken references never break the bundle: a missing file or script is
replaced by a visible error comment and a failing minifier leaves the
original text in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .faults import Fault, RecursionFault
from .files import FileProvider
from .graph import RecursionGuard
from .minify import Minifier
from .scripts import DynamicScriptManager
from .urls import rewrite_urls_to_absolute

__all__ = ["DynamicScriptProducer", "StaticFileProducer", "error_comment", "minify_text"]

logger = logging.getLogger("bundlekit.producers")

ERROR_LINES = "\n/*\n!!!ERROR: {0}!!!\n*/\n"


def error_comment(message: str) -> str:
    """Inline marker for a part that could not be produced."""
    return ERROR_LINES.format(message)


def minify_text(minifier: Minifier, text: str, source: str) -> str:
    """Minify *text*, keeping it unchanged if the minifier fails."""
    try:
        return minifier.minify(text)
    except Fault as fault:
        fault.log(logger, f"Minification of {source} failed")
    except Exception:
        logger.warning("Minification of %s failed", source, exc_info=True)
    return text


@dataclass(frozen=True)
class StaticFileProducer:
    """
    Reads a physical file below the web root.

    Attributes:
        source_url: Public URL of the file, used to rewrite relative urls.
        relative_path: Path of the file below the web root.
        files: File provider.
        minifier: Minifier to apply, or None to keep the file as is.
        minified_suffix: Suffix of precomputed minified siblings
            (``.min.css``).
        use_minified_file: Prefer an existing minified sibling over
            running the minifier.
        rewrite_urls: Rewrite relative ``url(...)`` references.
    """

    source_url: str
    relative_path: str
    files: FileProvider
    minifier: Optional[Minifier] = None
    minified_suffix: str = ".min.css"
    use_minified_file: bool = False
    rewrite_urls: bool = True

    def __call__(self, guard: RecursionGuard) -> str:
        try:
            path = self.files.secure_combine(self.relative_path)
        except Fault as fault:
            return error_comment(fault.message)

        if not self.files.exists(path):
            logger.warning("Bundle source %s is missing", path)
            return error_comment(f"File {path} is not found!")

        try:
            code = None
            if self.minifier is not None and self.use_minified_file:
                minified_path = path.with_suffix(self.minified_suffix)
                if self.files.exists(minified_path):
                    code = self.files.read_text(minified_path)

            if code is None:
                code = self.files.read_text(path)
                if self.minifier is not None:
                    code = minify_text(self.minifier, code, self.source_url)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read bundle source %s: %s", path, exc)
            return error_comment(f"File {path} can not be read: {exc}")

        if self.rewrite_urls:
            code = rewrite_urls_to_absolute(self.source_url, code)
        return code


@dataclass(frozen=True)
class DynamicScriptProducer:
    """
    Pulls the text of a dynamic script (possibly another bundle).

    Attributes:
        script_name: Registered name of the script.
        scripts: Registry to read from.
        script_url: Public URL the script is served from.
        minifier: Minifier to apply, or None.
        rewrite_urls: Rewrite relative ``url(...)`` references.
    """

    script_name: str
    scripts: DynamicScriptManager
    script_url: str
    minifier: Optional[Minifier] = None
    rewrite_urls: bool = True

    def __call__(self, guard: RecursionGuard) -> str:
        try:
            inner = guard.enter(self.script_name)
        except RecursionFault as fault:
            fault.log(logger, f"Including dynamic script {self.script_name}")
            return error_comment(fault.message)

        code = self.scripts.get_script_text(self.script_name, inner)
        if code is None:
            return error_comment(f"Dynamic script with name '{self.script_name}' is not found!")

        if self.minifier is not None:
            code = minify_text(self.minifier, code, self.script_name)

        if self.rewrite_urls:
            code = rewrite_urls_to_absolute(self.script_url, code)
        return code
