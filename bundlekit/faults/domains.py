"""
Bundlekit faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults (invalid options, bundle graph cycles)
- BUNDLE faults (missing bundles/scripts, dynamic recursion)
- SECURITY faults (script rights, path traversal)
- IO faults (minifier failures)

Every concrete fault accepts an extra ``metadata`` keyword that is merged
over the fields it records itself.
"""

from typing import Any, Optional, Sequence

from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=severity,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


class BundleRecursionFault(ConfigFault):
    """Bundle definitions reference each other in a cycle, or nest too deep."""

    def __init__(self, kind: str, chain: Sequence[str], **kwargs):
        chain = list(chain)
        super().__init__(
            code="BUNDLE_RECURSION",
            message=(
                f"Caught infinite recursion with {kind} bundles "
                f"'{', '.join(chain)}'!"
            ),
            metadata={"kind": kind, "chain": chain, **kwargs.get("metadata", {})},
        )


class InvalidVersionMaskFault(ConfigFault):
    """Version mask must contain a single '*' that is not the first character."""

    def __init__(self, mask: str, **kwargs):
        super().__init__(
            code="VERSION_MASK_INVALID",
            message=f"Version mask '{mask}' must contain '*' after a literal prefix",
            severity=Severity.ERROR,
            metadata={"mask": mask, **kwargs.get("metadata", {})},
        )


# ============================================================================
# BUNDLE Faults
# ============================================================================

class BundleFault(Fault):
    """Base class for bundle registry and materialization faults."""

    def __init__(self, code: str, message: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(code=code, message=message, domain=FaultDomain.BUNDLE, metadata=metadata)


class BundleNotFoundFault(BundleFault):
    """No bundle is registered under the requested key."""

    def __init__(self, bundle_key: str, **kwargs):
        super().__init__(
            code="BUNDLE_NOT_FOUND",
            message=f"Bundle '{bundle_key}' is not registered",
            metadata={"bundle_key": bundle_key, **kwargs.get("metadata", {})},
        )


class ScriptNotFoundFault(BundleFault):
    """No dynamic script is registered under the requested name."""

    def __init__(self, name: str, **kwargs):
        super().__init__(
            code="SCRIPT_NOT_FOUND",
            message=f"Dynamic script with name '{name}' is not found!",
            metadata={"name": name, **kwargs.get("metadata", {})},
        )


class RecursionFault(BundleFault):
    """Dynamic scripts include each other while being materialized."""

    def __init__(self, chain: Sequence[str], **kwargs):
        chain = list(chain)
        super().__init__(
            code="SCRIPT_RECURSION",
            message=f"Caught infinite recursion with dynamic scripts '{', '.join(chain)}'!",
            metadata={"chain": chain, **kwargs.get("metadata", {})},
        )


# ============================================================================
# SECURITY Faults
# ============================================================================

class SecurityFault(Fault):
    """Base class for security faults."""

    def __init__(self, code: str, message: str, *, metadata: Optional[dict[str, Any]] = None):
        super().__init__(code=code, message=message, domain=FaultDomain.SECURITY, metadata=metadata)


class AccessDeniedFault(SecurityFault):
    """Caller may not read a dynamic script."""

    def __init__(self, name: str, reason: str = "access denied", **kwargs):
        super().__init__(
            code="SCRIPT_ACCESS_DENIED",
            message=f"Access to dynamic script '{name}' denied: {reason}",
            metadata={"name": name, "reason": reason, **kwargs.get("metadata", {})},
        )


class PathTraversalFault(SecurityFault):
    """Relative path escapes the configured root directory."""

    def __init__(self, path: str, root: str, **kwargs):
        super().__init__(
            code="PATH_TRAVERSAL",
            message=f"Path '{path}' resolves outside of '{root}'",
            metadata={"path": path, "root": root, **kwargs.get("metadata", {})},
        )


# ============================================================================
# IO Faults
# ============================================================================

class MinifyFault(Fault):
    """Minifier rejected its input."""

    def __init__(self, kind: str, reason: str, **kwargs):
        super().__init__(
            code="MINIFY_FAILED",
            message=f"{kind} minification failed: {reason}",
            domain=FaultDomain.IO,
            metadata={"kind": kind, "reason": reason, **kwargs.get("metadata", {})},
        )
