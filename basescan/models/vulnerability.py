"""Data models for vulnerability data and resolved images."""

import platform as _platform
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class VulnSeverity(Enum):
    """Vulnerability severity buckets, highest first."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "VulnSeverity":
        """Convert a registry severity string to VulnSeverity."""
        if not value:
            return cls.UNKNOWN
        value = value.strip().upper()
        # Clair/Quay specific names
        aliases = {
            "DEFCON1": cls.CRITICAL,
            "NEGLIGIBLE": cls.LOW,
        }
        if value in aliases:
            return aliases[value]
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @classmethod
    def ordered(cls) -> List["VulnSeverity"]:
        """All buckets from most to least severe."""
        return [cls.CRITICAL, cls.HIGH, cls.MEDIUM, cls.LOW, cls.UNKNOWN]

    @property
    def rank(self) -> int:
        order = {
            VulnSeverity.UNKNOWN: 0,
            VulnSeverity.LOW: 1,
            VulnSeverity.MEDIUM: 2,
            VulnSeverity.HIGH: 3,
            VulnSeverity.CRITICAL: 4,
        }
        return order[self]

    @property
    def label(self) -> str:
        """Human readable bucket name, e.g. ``Critical``."""
        return self.value.capitalize()

    def __lt__(self, other: "VulnSeverity") -> bool:
        """Compare severity levels."""
        return self.rank < other.rank


@dataclass
class Vulnerability:
    """A single vulnerability reported for an image."""
    identifier: str
    severity: VulnSeverity
    link: Optional[str] = None
    package: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "severity": self.severity.value,
            "link": self.link,
            "package": self.package,
        }


@dataclass
class VulnerabilitySummary:
    """Per-severity vulnerability counts for one image."""
    counts: Dict[VulnSeverity, int] = field(
        default_factory=lambda: {s: 0 for s in VulnSeverity.ordered()}
    )

    @property
    def total(self) -> int:
        """Total number of distinct vulnerabilities."""
        return sum(self.counts.values())

    @property
    def highest(self) -> Optional[VulnSeverity]:
        """Highest bucket with a non-zero count."""
        for severity in VulnSeverity.ordered():
            if self.counts.get(severity, 0) > 0:
                return severity
        return None

    def non_empty(self) -> List[tuple]:
        """(severity, count) pairs for non-empty buckets, highest first."""
        return [
            (severity, self.counts[severity])
            for severity in VulnSeverity.ordered()
            if self.counts.get(severity, 0) > 0
        ]


@dataclass(frozen=True)
class Platform:
    """OCI platform of an image (os/architecture[/variant])."""
    os: str
    architecture: str
    variant: Optional[str] = None

    _ARCH_ALIASES = {
        "x86_64": ("amd64", None),
        "amd64": ("amd64", None),
        "aarch64": ("arm64", None),
        "arm64": ("arm64", None),
        "armv7l": ("arm", "v7"),
        "armv6l": ("arm", "v6"),
        "i386": ("386", None),
        "i686": ("386", None),
    }

    @classmethod
    def host(cls) -> "Platform":
        """Platform the local container runtime pulls for."""
        system = _platform.system().lower()
        os_name = "windows" if system == "windows" else "linux"
        machine = _platform.machine().lower()
        arch, variant = cls._ARCH_ALIASES.get(machine, (machine, None))
        return cls(os=os_name, architecture=arch, variant=variant)

    @classmethod
    def parse(cls, value: str) -> "Platform":
        """Parse ``os/arch[/variant]``."""
        parts = [p for p in value.strip().split("/") if p]
        if len(parts) not in (2, 3):
            raise ValueError(f"Invalid platform '{value}', expected os/arch[/variant]")
        return cls(
            os=parts[0].lower(),
            architecture=parts[1].lower(),
            variant=parts[2].lower() if len(parts) == 3 else None,
        )

    def matches(self, os_name: Optional[str], architecture: Optional[str],
                variant: Optional[str] = None) -> bool:
        """Check a manifest-list platform entry against this platform."""
        if (os_name or "").lower() != self.os:
            return False
        if (architecture or "").lower() != self.architecture:
            return False
        if self.variant and variant:
            return variant.lower() == self.variant
        return True

    def __str__(self) -> str:
        if self.variant:
            return f"{self.os}/{self.architecture}/{self.variant}"
        return f"{self.os}/{self.architecture}"


@dataclass
class DigestRecord:
    """Repository plus manifest digest, the key for vulnerability queries."""
    repository: str
    digest: str
    platform: Optional[Platform] = None

    @property
    def reference(self) -> str:
        return f"{self.repository}@{self.digest}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository": self.repository,
            "digest": self.digest,
            "platform": str(self.platform) if self.platform else None,
        }
