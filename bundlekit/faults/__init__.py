"""
Bundlekit faults - typed fault signals.

Faults carry a stable code, a domain and a severity so hosts can decide
whether a failure is a startup-time configuration error (cycles in bundle
definitions), a per-request denial (script rights), or a degradable I/O
problem (minifier failures).

Core exports:
- Fault: Base fault class
- FaultDomain: Domain taxonomy
- Severity: Severity levels
"""

from .core import (
    DOMAIN_SEVERITY,
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    AccessDeniedFault,
    BundleFault,
    BundleNotFoundFault,
    BundleRecursionFault,
    ConfigFault,
    ConfigInvalidFault,
    InvalidVersionMaskFault,
    MinifyFault,
    PathTraversalFault,
    RecursionFault,
    ScriptNotFoundFault,
    SecurityFault,
)

__all__ = [
    # Core types
    "DOMAIN_SEVERITY",
    "Fault",
    "FaultDomain",
    "Severity",

    # Domain faults
    "AccessDeniedFault",
    "BundleFault",
    "BundleNotFoundFault",
    "BundleRecursionFault",
    "ConfigFault",
    "ConfigInvalidFault",
    "InvalidVersionMaskFault",
    "MinifyFault",
    "PathTraversalFault",
    "RecursionFault",
    "ScriptNotFoundFault",
    "SecurityFault",
]
