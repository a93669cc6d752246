"""
Bundlekit - in-memory stylesheet and script bundling.

Resolves named bundles of source references (static files, ``{version}``
templated paths and dynamic scripts) into flat, cycle-checked inclusion
lists, and materializes each bundle lazily: sources are concatenated,
optionally minified and have their relative ``url(...)`` references made
absolute. Bundle text is cached by the dynamic script registry until a
change notification invalidates it.

Usage::

    from bundlekit import BundleManager, BundlingConfig, DynamicScriptManager

    config = BundlingConfig(
        enabled=True,
        web_root="wwwroot",
        bundles={
            "Base": ["~/css/reset.css", "~/lib/select2-{version}.css"],
            "Site": ["dynamic://CssBundle.Base", "~/css/site.css"],
        },
    )
    scripts = DynamicScriptManager()
    bundles = BundleManager(config, scripts)

    bundles.resolve("~/css/site.css")   # -> "/DynJS.axd/CssBundle.Site.css?v=..."
    bundles.materialize("Site")         # -> concatenated stylesheet text
"""

__version__ = "0.3.0"

from .config import BundlingConfig, ConfigLoader
from .faults import (
    AccessDeniedFault,
    BundleNotFoundFault,
    BundleRecursionFault,
    ConfigInvalidFault,
    Fault,
    FaultDomain,
    MinifyFault,
    RecursionFault,
    ScriptNotFoundFault,
    Severity,
)
from .files import FileProvider, LocalFileProvider
from .graph import MAX_DEPTH, RecursionGuard, expand_includes
from .manager import CSS_BUNDLES, SCRIPT_BUNDLES, BundleKind, BundleManager
from .minify import CssMinifier, JsMinifier, Minifier, NullMinifier, get_minifier
from .placeholders import expand
from .scripts import ConcatenatedScript, DynamicScript, DynamicScriptManager, TextScript
from .urls import VirtualPathResolver, rewrite_urls_to_absolute
from .versions import VersionCache, VersionResolver

__all__ = [
    "__version__",
    # Configuration
    "BundlingConfig",
    "ConfigLoader",
    # Bundles
    "BundleKind",
    "BundleManager",
    "CSS_BUNDLES",
    "SCRIPT_BUNDLES",
    "expand",
    "expand_includes",
    "MAX_DEPTH",
    "RecursionGuard",
    "VersionCache",
    "VersionResolver",
    "rewrite_urls_to_absolute",
    "VirtualPathResolver",
    # Collaborators
    "ConcatenatedScript",
    "DynamicScript",
    "DynamicScriptManager",
    "TextScript",
    "FileProvider",
    "LocalFileProvider",
    "Minifier",
    "CssMinifier",
    "JsMinifier",
    "NullMinifier",
    "get_minifier",
    # Faults
    "AccessDeniedFault",
    "BundleNotFoundFault",
    "BundleRecursionFault",
    "ConfigInvalidFault",
    "Fault",
    "FaultDomain",
    "MinifyFault",
    "RecursionFault",
    "ScriptNotFoundFault",
    "Severity",
]
