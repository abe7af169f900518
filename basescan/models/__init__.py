"""Data models for basescan."""

from .vulnerability import (
    VulnSeverity,
    Vulnerability,
    VulnerabilitySummary,
    DigestRecord,
    Platform,
)
from .diagnostic import (
    SourceRange,
    FromInstruction,
    DiagnosticSeverity,
    Diagnostic,
    TextDocument,
)

__all__ = [
    "VulnSeverity",
    "Vulnerability",
    "VulnerabilitySummary",
    "DigestRecord",
    "Platform",
    "SourceRange",
    "FromInstruction",
    "DiagnosticSeverity",
    "Diagnostic",
    "TextDocument",
]
