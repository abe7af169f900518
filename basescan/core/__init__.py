"""Core functionality for basescan."""

from .errors import (
    ScanError,
    ImagePullError,
    RegistryConnectionError,
    RegistryAPIError,
    VulnerabilityNotFoundError,
    ManifestNotFoundError,
    UnexpectedResponseError,
)
from .dockerfile import parse_from_instructions, base_images
from .quay import QuayClient
from .resolver import ImageResolver, LocalPullResolver, RemoteManifestResolver
from .security import QuaySecurityClient, BackendProxyClient
from .cache import ReportCache
from .diagnostics import DiagnosticCollection
from .scanner import DockerfileScanner, build_scanner, build_resolver
from .watcher import DocumentWatcher

__all__ = [
    "ScanError",
    "ImagePullError",
    "RegistryConnectionError",
    "RegistryAPIError",
    "VulnerabilityNotFoundError",
    "ManifestNotFoundError",
    "UnexpectedResponseError",
    "parse_from_instructions",
    "base_images",
    "QuayClient",
    "ImageResolver",
    "LocalPullResolver",
    "RemoteManifestResolver",
    "QuaySecurityClient",
    "BackendProxyClient",
    "ReportCache",
    "DiagnosticCollection",
    "DockerfileScanner",
    "build_scanner",
    "build_resolver",
    "DocumentWatcher",
]
