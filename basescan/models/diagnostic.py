"""Editor-facing models: documents, source ranges and diagnostics."""

import json
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

from .vulnerability import VulnSeverity


@dataclass(frozen=True)
class SourceRange:
    """Zero-based line/column span; end column is exclusive."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": {"line": self.start_line, "character": self.start_column},
            "end": {"line": self.end_line, "character": self.end_column},
        }


@dataclass(frozen=True)
class FromInstruction:
    """A ``FROM`` line: the image it names and where that name sits."""
    image: str
    range: SourceRange
    stage: Optional[str] = None
    platform: Optional[str] = None

    @property
    def line(self) -> int:
        return self.range.start_line


class DiagnosticSeverity(Enum):
    """Severity scale of the editor."""
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4

    @classmethod
    def for_vulnerability(cls, severity: VulnSeverity) -> "DiagnosticSeverity":
        """Critical and High are errors, everything else a warning."""
        if severity in (VulnSeverity.CRITICAL, VulnSeverity.HIGH):
            return cls.ERROR
        return cls.WARNING

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass
class Diagnostic:
    """An annotation published for one FROM line."""
    image: str
    message: str
    severity: DiagnosticSeverity
    range: SourceRange
    source: str = "basescan"
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "image": self.image,
            "message": self.message,
            "severity": self.severity.label,
            "range": self.range.to_dict(),
            "source": self.source,
            "code": self.code,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


DOCKERFILE_NAMES = ("dockerfile", "containerfile")


@dataclass
class TextDocument:
    """An open editor document."""
    uri: str
    text: str
    version: int = 0

    @classmethod
    def from_path(cls, path: str, text: Optional[str] = None, version: int = 0) -> "TextDocument":
        """Build a document for a file on disk, reading it unless text is given."""
        path = os.path.abspath(path)
        if text is None:
            with open(path, encoding="utf-8") as f:
                text = f.read()
        return cls(uri=f"file://{path}", text=text, version=version)

    @property
    def path(self) -> Optional[str]:
        """Filesystem path for file:// URIs."""
        parsed = urlparse(self.uri)
        if parsed.scheme not in ("", "file"):
            return None
        return unquote(parsed.path)

    @property
    def basename(self) -> str:
        return os.path.basename(self.path or urlparse(self.uri).path)

    @property
    def is_dockerfile(self) -> bool:
        """Dockerfile, Dockerfile.*, *.dockerfile or Containerfile."""
        name = self.basename.lower()
        if name in DOCKERFILE_NAMES:
            return True
        if name.startswith("dockerfile.") or name.startswith("containerfile."):
            return True
        return name.endswith(".dockerfile") or name.endswith(".containerfile")
