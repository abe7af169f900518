"""Turn vulnerability lists and scan errors into diagnostics."""

from typing import Dict, List, Optional

from ..models import (
    Diagnostic,
    DiagnosticSeverity,
    FromInstruction,
    Vulnerability,
    VulnerabilitySummary,
)
from .errors import ScanError


def dedupe(vulnerabilities: List[Vulnerability]) -> List[Vulnerability]:
    """Collapse records sharing an identifier; the last one wins."""
    unique: Dict[str, Vulnerability] = {}
    for vuln in vulnerabilities:
        unique[vuln.identifier] = vuln
    return list(unique.values())


def summarize(vulnerabilities: List[Vulnerability]) -> VulnerabilitySummary:
    """
    Count distinct vulnerabilities per severity bucket.

    Args:
        vulnerabilities: Raw records, possibly with repeated identifiers

    Returns:
        VulnerabilitySummary
    """
    summary = VulnerabilitySummary()
    for vuln in dedupe(vulnerabilities):
        summary.counts[vuln.severity] += 1
    return summary


def format_message(image: str, summary: VulnerabilitySummary) -> str:
    """Human readable summary, e.g. ``img: 3 vulnerabilities (Critical: 1, Low: 2)``."""
    if summary.total == 0:
        return f"{image}: no known vulnerabilities"
    buckets = ", ".join(f"{severity.label}: {count}" for severity, count in summary.non_empty())
    noun = "vulnerability" if summary.total == 1 else "vulnerabilities"
    return f"{image}: {summary.total} {noun} ({buckets})"


def vulnerability_diagnostic(
    instruction: FromInstruction,
    vulnerabilities: List[Vulnerability],
    report_clean_images: bool = False,
) -> Optional[Diagnostic]:
    """
    Build the diagnostic for one scanned FROM line.

    Severity follows the highest non-empty bucket. An image without
    vulnerabilities yields None unless report_clean_images is set, in
    which case an informational diagnostic is returned.
    """
    summary = summarize(vulnerabilities)
    highest = summary.highest

    if highest is None:
        if not report_clean_images:
            return None
        return Diagnostic(
            image=instruction.image,
            message=format_message(instruction.image, summary),
            severity=DiagnosticSeverity.INFORMATION,
            range=instruction.range,
        )

    return Diagnostic(
        image=instruction.image,
        message=format_message(instruction.image, summary),
        severity=DiagnosticSeverity.for_vulnerability(highest),
        range=instruction.range,
        code=highest.value,
    )


def error_diagnostic(instruction: FromInstruction, error: ScanError) -> Diagnostic:
    """Error-severity diagnostic carrying the raw error text."""
    return Diagnostic(
        image=instruction.image,
        message=f"{instruction.image}: {error}",
        severity=DiagnosticSeverity.ERROR,
        range=instruction.range,
        code=error.kind,
    )
