"""
basescan - Dockerfile base image vulnerability annotator

Scans the FROM lines of Dockerfiles and reports known vulnerabilities of
each base image. Provides:
- Dockerfile parsing with exact source ranges
- Digest resolution via the registry API or local docker pulls
- Vulnerability lookup via the registry security API or a backend proxy
- Editor-style diagnostics with debounced rescans on document changes
"""

__version__ = "0.1.0"

from .core.scanner import DockerfileScanner, build_scanner
from .core.watcher import DocumentWatcher
from .core.diagnostics import DiagnosticCollection
from .config import ScannerConfig, load_config

__all__ = [
    "DockerfileScanner",
    "build_scanner",
    "DocumentWatcher",
    "DiagnosticCollection",
    "ScannerConfig",
    "load_config",
]
