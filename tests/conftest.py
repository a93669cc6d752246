"""
Shared test fixtures and helpers for the Bundlekit test suite.
"""

from pathlib import Path
from typing import Dict, List

import pytest

from bundlekit.config import BundlingConfig
from bundlekit.faults import MinifyFault
from bundlekit.files import LocalFileProvider
from bundlekit.manager import CSS_BUNDLES, BundleManager
from bundlekit.minify import NullMinifier
from bundlekit.scripts import DynamicScriptManager


# ============================================================================
# File tree
# ============================================================================

WEB_FILES: Dict[str, str] = {
    "css/reset.css": "body { margin: 0; }\n",
    "css/theme/site.css": "a { background: url(img/x.png); }\n",
    "css/theme/site.min.css": "a{background:url(img/x.png)}",
    "css/vendor/tiny.css": "b { color: red; }\n",
    "lib/select2-4.0.3.css": "/* select2 4.0.3 */\n",
    "lib/select2-4.0.13.css": "/* select2 4.0.13 */\n",
    "lib/select2-4.0.13.min.css": "/* select2 4.0.13 min */\n",
    "js/app.js": "var bg = 'url(img/x.png)';\n",
}


def write_files(root: Path, files: Dict[str, str]) -> None:
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture
def write_tree():
    return write_files


@pytest.fixture
def web_root(tmp_path) -> Path:
    """Web root populated with WEB_FILES."""
    root = tmp_path / "wwwroot"
    write_files(root, WEB_FILES)
    return root


@pytest.fixture
def files(web_root) -> LocalFileProvider:
    return LocalFileProvider(web_root)


# ============================================================================
# Collaborators
# ============================================================================


class RecordingMinifier:
    """Wraps text in ``min(...)`` and records every call."""

    def __init__(self):
        self.calls: List[str] = []

    def minify(self, text: str) -> str:
        self.calls.append(text)
        return f"min({text.strip()})"


class FailingMinifier:
    kind = "css"

    def minify(self, text: str) -> str:
        raise MinifyFault(self.kind, "unexpected token")


class ChangeRecorder:
    """Change listener collecting notified script names."""

    def __init__(self):
        self.names: List[str] = []

    def __call__(self, name: str) -> None:
        self.names.append(name)


@pytest.fixture
def scripts() -> DynamicScriptManager:
    return DynamicScriptManager()


@pytest.fixture
def recording_minifier() -> RecordingMinifier:
    return RecordingMinifier()


@pytest.fixture
def failing_minifier() -> FailingMinifier:
    return FailingMinifier()


@pytest.fixture
def recorder(scripts) -> ChangeRecorder:
    listener = ChangeRecorder()
    scripts.subscribe(listener)
    yield listener
    scripts.unsubscribe(listener)


@pytest.fixture
def make_manager(web_root, scripts):
    """
    Factory building a BundleManager over the test web root.

    Keyword options are passed to BundlingConfig, except ``minifier``
    (defaults to NullMinifier) and ``kind``.
    """
    created: List[BundleManager] = []

    def factory(bundles=None, **options) -> BundleManager:
        minifier = options.pop("minifier", NullMinifier())
        kind = options.pop("kind", CSS_BUNDLES)
        options.setdefault("enabled", True)
        options.setdefault("web_root", str(web_root))
        config = BundlingConfig(bundles=bundles or {}, **options)
        manager = BundleManager(config, scripts, minifier=minifier, kind=kind)
        created.append(manager)
        return manager

    yield factory

    for manager in created:
        manager.close()
