"""Dockerfile scanning.

Parses a Dockerfile, looks up vulnerabilities for every base image that
passes the filter and returns one diagnostic per FROM line that produced
a result.
"""

from typing import List, Optional

import requests

from ..config import ScannerConfig
from ..models import Diagnostic, FromInstruction, Platform, TextDocument, Vulnerability
from ..utils.logging import get_logger
from ..utils.registry import ImageFilter, ImageReference, parse_image_reference
from .cache import ReportCache
from .dockerfile import base_images, parse_from_instructions
from .errors import ScanError
from .quay import QuayClient
from .report import error_diagnostic, vulnerability_diagnostic
from .resolver import ImageResolver, LocalPullResolver, RemoteManifestResolver
from .security import BackendProxyClient, QuaySecurityClient

logger = get_logger(__name__)


class VulnerabilityLookup:
    """Answers "which vulnerabilities does this image have"."""

    def lookup(
        self,
        reference: ImageReference,
        platform: Optional[Platform] = None,
    ) -> Optional[List[Vulnerability]]:
        """
        Look up vulnerabilities.

        Args:
            reference: Image to look up
            platform: Platform from ``FROM --platform``, if any

        Returns:
            Vulnerability list, or None when the image cannot be resolved
            for the target platform and should be skipped

        Raises:
            ScanError: lookup failed
        """
        raise NotImplementedError


class RegistryLookup(VulnerabilityLookup):
    """Resolve the digest first, then ask the registry security API."""

    def __init__(self, resolver: ImageResolver, security: QuaySecurityClient):
        self.resolver = resolver
        self.security = security

    def lookup(
        self,
        reference: ImageReference,
        platform: Optional[Platform] = None,
    ) -> Optional[List[Vulnerability]]:
        record = self.resolver.resolve(reference, platform)
        if record is None:
            logger.warning(f"Skipping {reference.raw}: no manifest for the target platform")
            return None
        return self.security.get_vulnerabilities(record)


class BackendLookup(VulnerabilityLookup):
    """Hand the raw reference to the backend proxy."""

    def __init__(self, backend: BackendProxyClient):
        self.backend = backend

    def lookup(
        self,
        reference: ImageReference,
        platform: Optional[Platform] = None,
    ) -> Optional[List[Vulnerability]]:
        if platform is not None:
            logger.debug(f"Backend lookup ignores platform {platform} for {reference.raw}")
        return self.backend.get_vulnerabilities(reference.raw)


def requested_platform(instruction: FromInstruction) -> Optional[Platform]:
    """Platform named by ``FROM --platform``, unless it still holds a variable."""
    value = instruction.platform
    if not value or "$" in value:
        return None
    try:
        return Platform.parse(value)
    except ValueError:
        logger.debug(f"Ignoring unreadable platform '{value}' on line {instruction.line + 1}")
        return None


class DockerfileScanner:
    """Scans Dockerfile text and produces diagnostics."""

    def __init__(
        self,
        lookup: VulnerabilityLookup,
        image_filter: ImageFilter,
        cache: Optional[ReportCache] = None,
        report_clean_images: bool = False,
    ):
        """
        Initialize scanner.

        Args:
            lookup: Vulnerability lookup strategy
            image_filter: Decides which images are scanned
            cache: Optional result cache
            report_clean_images: Emit an informational diagnostic for
                images without vulnerabilities
        """
        self.lookup = lookup
        self.image_filter = image_filter
        self.cache = cache or ReportCache(ttl_seconds=0)
        self.report_clean_images = report_clean_images

    @staticmethod
    def _cache_key(reference: ImageReference, platform: Optional[Platform]) -> str:
        return f"{reference.raw}|{platform}" if platform else reference.raw

    def _vulnerabilities(
        self,
        reference: ImageReference,
        platform: Optional[Platform],
    ) -> Optional[List[Vulnerability]]:
        key = self._cache_key(reference, platform)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        vulnerabilities = self.lookup.lookup(reference, platform)
        if vulnerabilities is not None:
            self.cache.set(key, vulnerabilities)
        return vulnerabilities

    def scan_instruction(self, instruction: FromInstruction) -> Optional[Diagnostic]:
        """
        Scan the image of a single FROM line.

        Returns:
            Diagnostic, or None when the image is skipped or clean
        """
        if not self.image_filter.matches(instruction.image):
            return None

        reference = parse_image_reference(instruction.image)
        if reference is None:
            logger.debug(f"Skipping unparsable reference {instruction.image}")
            return None

        logger.debug(f"Scanning {instruction.image} (line {instruction.line + 1})")
        try:
            vulnerabilities = self._vulnerabilities(reference, requested_platform(instruction))
        except ScanError as e:
            logger.warn_verbose(f"{instruction.image}: {e}")
            return error_diagnostic(instruction, e)

        if vulnerabilities is None:
            return None
        return vulnerability_diagnostic(instruction, vulnerabilities, self.report_clean_images)

    def scan_text(self, text: str) -> List[Diagnostic]:
        """Scan Dockerfile content."""
        diagnostics = []
        for instruction in base_images(parse_from_instructions(text)):
            diagnostic = self.scan_instruction(instruction)
            if diagnostic is not None:
                diagnostics.append(diagnostic)
        return diagnostics

    def scan_document(self, document: TextDocument) -> List[Diagnostic]:
        """Scan an open document."""
        logger.debug(f"Scanning document {document.uri} (version {document.version})")
        return self.scan_text(document.text)

    def forget_document(self, document: TextDocument) -> int:
        """
        Drop cached results for the images a document refers to.

        Returns:
            Number of cache entries removed
        """
        removed = 0
        for instruction in base_images(parse_from_instructions(document.text)):
            if not self.image_filter.matches(instruction.image):
                continue
            reference = parse_image_reference(instruction.image)
            if reference is None:
                continue
            key = self._cache_key(reference, requested_platform(instruction))
            if self.cache.invalidate(key):
                removed += 1
        if removed:
            logger.debug(f"Dropped {removed} cached result(s) for {document.uri}")
        return removed


def build_resolver(config: ScannerConfig, session: Optional[requests.Session] = None) -> ImageResolver:
    """Create the resolver for the configured strategy (remote or local)."""
    manifests = RemoteManifestResolver(QuayClient(config.registry, session), config.target_platform)
    if config.strategy == "local":
        return LocalPullResolver(manifests, timeout=config.docker_timeout)
    return manifests


def build_scanner(config: ScannerConfig, session: Optional[requests.Session] = None) -> DockerfileScanner:
    """
    Wire a scanner for the configured strategy.

    Args:
        config: Scanner configuration
        session: Shared HTTP session (a fresh one per client when None)

    Returns:
        DockerfileScanner
    """
    if config.strategy == "backend":
        lookup: VulnerabilityLookup = BackendLookup(BackendProxyClient(config.backend, session))
    else:
        security = QuaySecurityClient(QuayClient(config.registry, session))
        lookup = RegistryLookup(build_resolver(config, session), security)

    return DockerfileScanner(
        lookup=lookup,
        image_filter=ImageFilter(config.image_pattern),
        cache=ReportCache(ttl_seconds=config.cache_ttl_seconds),
        report_clean_images=config.report_clean_images,
    )
