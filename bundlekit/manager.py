"""
Bundle manager - the bundle registry and its lifecycle.

Configuration flows through the pipeline once per :meth:`BundleManager.reset`:

    raw references -> placeholders.expand -> graph.expand_includes
        -> one producer per reference -> ConcatenatedScript registered
           as ``<kind prefix><bundle key>`` in the dynamic script registry

Each reset builds a new immutable :class:`BundleGeneration` and swaps it
in under the manager lock. Readers take the current generation once,
without the lock, and work on that snapshot; a reset never exposes a
half-built registry and change listeners never wait on one.

Bundle text is produced lazily by the dynamic script registry and cached
there; the manager only tells the registry when a bundle changed.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ._datastructures import CaseInsensitiveDict, CaseInsensitiveSet
from .config import BundlingConfig
from .faults import BundleNotFoundFault
from .files import FileProvider, LocalFileProvider
from .graph import RecursionGuard, expand_includes
from .minify import Minifier, get_minifier
from .placeholders import expand
from .producers import DynamicScriptProducer, StaticFileProducer
from .scripts import ConcatenatedScript, DynamicScriptManager
from .urls import VirtualPathResolver
from .versions import VersionCache, VersionResolver

__all__ = [
    "BundleGeneration",
    "BundleKind",
    "BundleManager",
    "CSS_BUNDLES",
    "DYNAMIC_PREFIX",
    "SCRIPT_BUNDLES",
]

logger = logging.getLogger("bundlekit.manager")

DYNAMIC_PREFIX = "dynamic://"


@dataclass(frozen=True)
class BundleKind:
    """
    Per-kind constants.

    Attributes:
        name: Kind name used in messages (``"css"``).
        script_prefix: Prefix of the registered bundle script names.
        extension: Extension appended to include URLs.
        minified_suffix: Name suffix of already-minified files.
        rewrite_urls: Rewrite relative ``url(...)`` references in content.
    """
    name: str
    script_prefix: str
    extension: str
    minified_suffix: str
    rewrite_urls: bool

    @property
    def self_prefix(self) -> str:
        return DYNAMIC_PREFIX + self.script_prefix


CSS_BUNDLES = BundleKind("css", "CssBundle.", ".css", ".min.css", rewrite_urls=True)
SCRIPT_BUNDLES = BundleKind("script", "Bundle.", ".js", ".min.js", rewrite_urls=False)


@dataclass(frozen=True)
class BundleGeneration:
    """
    One immutable snapshot of the bundle registry.

    Attributes:
        includes: Bundle key -> flattened source references.
        enabled: Whether bundles are being served.
        bundle_keys: Keys registered as bundle scripts.
        bundle_key_by_source: Source URL -> the single bundle serving it.
        bundle_keys_by_source: Source URL -> every bundle containing it.
    """
    includes: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    enabled: bool = False
    bundle_keys: CaseInsensitiveSet = field(default_factory=CaseInsensitiveSet)
    bundle_key_by_source: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    bundle_keys_by_source: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)


@dataclass(frozen=True)
class BundleRightsCheck:
    """Verifies the caller may read every dynamic script a bundle pulls in."""
    script_names: Tuple[str, ...]
    scripts: DynamicScriptManager

    def __call__(self, guard: RecursionGuard) -> None:
        for name in self.script_names:
            inner = guard.enter(name)
            # Missing scripts render as inline errors, nothing to protect
            if self.scripts.is_registered(name):
                self.scripts.check_script_rights(name, inner)


class BundleManager:
    """
    Registry of named bundles of one kind.

    Args:
        config: Bundling options.
        scripts: Dynamic script registry bundles are registered in.
        files: File provider for static sources; defaults to the
            config's web root.
        paths: Virtual path resolver; defaults to the config's base path.
        minifier: Minifier for the kind; defaults to :func:`get_minifier`.
        kind: Bundle kind (stylesheets by default).
        version_cache: Cache of ``{version}`` lookups owned by this manager.

    Raises:
        BundleRecursionFault: if the initial configuration has cycles.
    """

    def __init__(
        self,
        config: BundlingConfig,
        scripts: DynamicScriptManager,
        *,
        files: Optional[FileProvider] = None,
        paths: Optional[VirtualPathResolver] = None,
        minifier: Optional[Minifier] = None,
        kind: BundleKind = CSS_BUNDLES,
        version_cache: Optional[VersionCache] = None,
    ):
        self._lock = threading.RLock()
        self.config = config
        self.scripts = scripts
        self.kind = kind
        self._own_files = files is None
        self._own_paths = paths is None
        self.files = files if files is not None else LocalFileProvider(config.web_root)
        self.paths = paths if paths is not None else VirtualPathResolver(config.base_path)
        self.minifier = minifier if minifier is not None else get_minifier(kind.name)
        self.versions = VersionResolver(self.files, version_cache)
        self._generation = BundleGeneration()

        self.reset()
        scripts.subscribe(self.on_underlying_script_changed)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def reset(self, config: Optional[BundlingConfig] = None) -> None:
        """
        Rebuild the registry from configuration.

        On failure the previous configuration and generation stay active.

        Args:
            config: Replacement options; the current ones are reused if
                omitted. File provider and path resolver follow its
                ``web_root`` and ``base_path`` unless they were injected.

        Raises:
            ConfigInvalidFault: if the configuration in use has the wrong shape.
            BundleRecursionFault: on cycles or over-deep bundle nesting.
        """
        with self._lock:
            settings = config if config is not None else self.config
            settings.validate()

            bundles: CaseInsensitiveDict[List[str]] = CaseInsensitiveDict()
            for bundle_key, sources in settings.bundles.items():
                resolved = []
                for source in sources or ():
                    if not source:
                        continue
                    value = expand(source, settings.replacements)
                    if value:
                        resolved.append(value)
                bundles[bundle_key] = resolved

            includes = expand_includes(bundles, self.kind.self_prefix, self.kind.name)

            if config is not None:
                self._apply_config(config)

            if not settings.enabled or not any(bundles.values()):
                self._swap(BundleGeneration(includes=includes))
                logger.info("%s bundling disabled", self.kind.name)
                return

            self._swap(self._build_generation(bundles, includes, settings))
            logger.info(
                "Registered %d %s bundles",
                len(self._generation.bundle_keys),
                self.kind.name,
            )

    def _apply_config(self, config: BundlingConfig) -> None:
        self.config = config
        if self._own_files:
            self.files = LocalFileProvider(config.web_root)
            self.versions = VersionResolver(self.files, self.versions.cache)
        if self._own_paths:
            self.paths = VirtualPathResolver(config.base_path)

    def _swap(self, generation: BundleGeneration) -> None:
        previous = self._generation
        self._generation = generation
        for bundle_key in previous.bundle_keys:
            if bundle_key not in generation.bundle_keys:
                self.scripts.unregister(self.kind.script_prefix + bundle_key)

    def _build_generation(
        self,
        bundles: CaseInsensitiveDict,
        includes: CaseInsensitiveDict,
        settings: BundlingConfig,
    ) -> BundleGeneration:
        kind = self.kind
        root_url = self.paths.root_url
        no_minimize = CaseInsensitiveSet(settings.no_minimize)
        minifier = self.minifier if settings.minimize else None

        bundle_keys = CaseInsensitiveSet()
        key_by_source: CaseInsensitiveDict[str] = CaseInsensitiveDict()
        keys_by_source: CaseInsensitiveDict[CaseInsensitiveSet] = CaseInsensitiveDict()

        for bundle_key, sources in bundles.items():
            if not sources:
                continue

            # Keys with a path separator are never the primary bundle of a source
            primary = "/" not in bundle_key
            parts = []
            script_names = CaseInsensitiveSet()

            for source in sources:
                if source.lower().startswith(DYNAMIC_PREFIX):
                    script_name = source[len(DYNAMIC_PREFIX):]
                    source_url = source
                    script_names.add(script_name)
                    is_bundle = script_name.lower().startswith(kind.script_prefix.lower())
                    parts.append(DynamicScriptProducer(
                        script_name=script_name,
                        scripts=self.scripts,
                        script_url=self._dynamic_url(script_name),
                        minifier=None if is_bundle else minifier,
                        rewrite_urls=kind.rewrite_urls,
                    ))
                else:
                    source_url = self.paths.to_absolute(self.versions.expand_version_variable(source))
                    if not source_url or not source_url.startswith(root_url):
                        logger.debug("Skipping %s in bundle %s: not below %s", source, bundle_key, root_url)
                        continue
                    skip_minify = (
                        source in no_minimize
                        or source.lower().endswith(kind.minified_suffix)
                    )
                    parts.append(StaticFileProducer(
                        source_url=source_url,
                        relative_path=source_url[len(root_url):],
                        files=self.files,
                        minifier=None if skip_minify else minifier,
                        minified_suffix=kind.minified_suffix,
                        use_minified_file=settings.use_minified_files,
                        rewrite_urls=kind.rewrite_urls,
                    ))

                if primary and source_url not in key_by_source:
                    key_by_source[source_url] = bundle_key
                keys_by_source.setdefault(source_url, CaseInsensitiveSet()).add(bundle_key)

            bundle = ConcatenatedScript(
                parts,
                separator="\n\n",
                rights=BundleRightsCheck(tuple(script_names), self.scripts),
            )
            self.scripts.register(kind.script_prefix + bundle_key, bundle)
            bundle_keys.add(bundle_key)

        return BundleGeneration(
            includes=includes,
            enabled=True,
            bundle_keys=bundle_keys,
            bundle_key_by_source=key_by_source,
            bundle_keys_by_source=keys_by_source,
        )

    def close(self) -> None:
        """Stop listening to script changes."""
        self.scripts.unsubscribe(self.on_underlying_script_changed)

    # ── Change propagation ────────────────────────────────────────────────

    def on_underlying_script_changed(self, script_name: str) -> None:
        """
        Mark every bundle that includes ``dynamic://<script_name>`` as
        changed in the script registry.

        Bundles nested in other bundles propagate further through the
        registry's own notification of the inner bundle.
        """
        generation = self._snapshot()
        bundle_keys = generation.bundle_keys_by_source.get(DYNAMIC_PREFIX + script_name)
        for bundle_key in bundle_keys or ():
            self.scripts.changed(self.kind.script_prefix + bundle_key)

    def on_source_tree_changed(self) -> None:
        """
        Static sources changed on disk: forget resolved versions, mark every
        bundle as changed and rebuild the registry.
        """
        with self._lock:
            self.versions.cache.clear()
            for bundle_key in self._generation.bundle_keys:
                self.scripts.changed(self.kind.script_prefix + bundle_key)
            self.reset()

    # ── Queries ───────────────────────────────────────────────────────────

    def _snapshot(self) -> BundleGeneration:
        # Generations are immutable and replaced by a single assignment
        return self._generation

    def is_enabled(self) -> bool:
        return self._snapshot().enabled

    def bundle_keys(self) -> List[str]:
        return list(self._snapshot().bundle_keys)

    def get_includes(self, bundle_key: str) -> List[str]:
        """Flattened source references of *bundle_key*, empty if unknown."""
        includes = self._snapshot().includes.get(bundle_key)
        return list(includes) if includes else []

    def resolve(self, source_url: str) -> str:
        """
        URL to include for a single source.

        Returns the URL of the bundle serving *source_url* when bundling is
        active and the source belongs to a primary bundle, otherwise the
        source's own resolved URL.
        """
        by_source = self._snapshot().bundle_key_by_source

        if source_url and source_url.lower().startswith(DYNAMIC_PREFIX):
            bundle_key = by_source.get(source_url)
            if bundle_key is None:
                script_name = source_url[len(DYNAMIC_PREFIX):]
                return self._dynamic_url(self.scripts.get_script_include(script_name, self.kind.extension))
        else:
            source_url = self.paths.to_absolute(self.versions.expand_version_variable(source_url))
            bundle_key = by_source.get(source_url) if source_url else None
            if bundle_key is None:
                return source_url

        include = self.scripts.get_script_include(self.kind.script_prefix + bundle_key, self.kind.extension)
        return self._dynamic_url(include)

    def materialize(self, bundle_key: str) -> str:
        """
        Rights-checked text of *bundle_key*.

        Raises:
            BundleNotFoundFault: if bundling is off or the key is unknown.
            AccessDeniedFault: if the caller may not read an included script.
            RecursionFault: if included scripts nest cyclically.
        """
        generation = self._snapshot()
        if not generation.enabled or bundle_key not in generation.bundle_keys:
            raise BundleNotFoundFault(bundle_key)
        return self.scripts.read_script(self.kind.script_prefix + bundle_key)

    def _dynamic_url(self, include: str) -> str:
        dynamic_path = self.config.dynamic_path.strip("/")
        return self.paths.to_absolute(f"~/{dynamic_path}/{include}")
