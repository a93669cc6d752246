"""
Bundlekit faults - Core types and fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels, which pick the log level a fault is reported at
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """Fault severity levels."""
    INFO = "info"
    WARN = "warn"       # Degraded output, bundle still served
    ERROR = "error"
    FATAL = "fatal"     # Registry cannot be built

    @property
    def log_level(self) -> int:
        return _LOG_LEVELS[self]


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


class FaultDomain:
    """
    Functional area a fault belongs to.

    Compares equal to other domains and to plain strings by name.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain({self.name!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return self.name == other

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Bundle definitions and options")
FaultDomain.IO = FaultDomain("io", "Reading and minifying sources")
FaultDomain.SECURITY = FaultDomain("security", "Script rights and path containment")
FaultDomain.BUNDLE = FaultDomain("bundle", "Bundle registry and materialization")


DOMAIN_SEVERITY = {
    FaultDomain.CONFIG: Severity.FATAL,
    FaultDomain.IO: Severity.WARN,
    FaultDomain.SECURITY: Severity.ERROR,
    FaultDomain.BUNDLE: Severity.ERROR,
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class.

    Attributes:
        code: Stable machine-readable identifier (e.g., "BUNDLE_NOT_FOUND")
        message: Human-readable summary, also used for inline error comments
        domain: Fault domain
        severity: Defaults to the domain's entry in ``DOMAIN_SEVERITY``
        metadata: Names, paths and chains the fault is about

    Example:
        ```python
        raise Fault(
            code="BUNDLE_NOT_FOUND",
            message="Bundle 'site' is not registered",
            domain=FaultDomain.BUNDLE,
        )
        ```
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        domain: FaultDomain,
        severity: Optional[Severity] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.domain = domain
        self.severity = severity or DOMAIN_SEVERITY.get(domain, Severity.ERROR)
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, domain={self.domain.name})"

    def log(self, logger: logging.Logger, context: str) -> None:
        """Report the fault on *logger* at the level its severity maps to."""
        logger.log(self.severity.log_level, "%s: %s", context, self, extra={"fault_code": self.code})
