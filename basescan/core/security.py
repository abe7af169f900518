"""Vulnerability sources: the registry security API and the backend proxy."""

from typing import Any, Dict, List, Optional

import requests

from ..config import BackendConfig
from ..models import DigestRecord, Vulnerability, VulnSeverity
from ..utils.logging import get_logger
from .errors import UnexpectedResponseError, VulnerabilityNotFoundError
from .quay import QuayClient, request_json

logger = get_logger(__name__)


class QuaySecurityClient:
    """Reads vulnerabilities from the Quay security scan of a manifest."""

    def __init__(self, client: QuayClient):
        self.client = client

    @staticmethod
    def parse_security_report(report: Dict[str, Any], source: Optional[str] = None) -> List[Vulnerability]:
        """
        Flatten a security report into vulnerabilities.

        Args:
            report: Response of ``.../manifest/{digest}/security``
            source: Reference named in errors

        Returns:
            One entry per reported vulnerability and affected feature

        Raises:
            UnexpectedResponseError: the report does not have the Clair layout
        """
        if not isinstance(report, dict):
            raise UnexpectedResponseError("security report is not an object", source)
        status = report.get("status")
        if status != "scanned":
            logger.debug(f"Security scan status is '{status}', no data yet")
            return []

        data = report.get("data") or {}
        layer = (data.get("Layer") or {}) if isinstance(data, dict) else None
        if not isinstance(layer, dict):
            raise UnexpectedResponseError("'data.Layer' is not an object", source)
        features = layer.get("Features") or []
        if not isinstance(features, list):
            raise UnexpectedResponseError("'Features' is not a list", source)

        vulnerabilities = []
        for feature in features:
            if not isinstance(feature, dict):
                raise UnexpectedResponseError("feature entry is not an object", source)
            feature_vulns = feature.get("Vulnerabilities") or []
            if not isinstance(feature_vulns, list):
                raise UnexpectedResponseError("'Vulnerabilities' is not a list", source)
            for vuln in feature_vulns:
                if not isinstance(vuln, dict):
                    raise UnexpectedResponseError("vulnerability entry is not an object", source)
                name = vuln.get("Name")
                if not name:
                    continue
                vulnerabilities.append(Vulnerability(
                    identifier=name,
                    severity=VulnSeverity.from_string(vuln.get("Severity")),
                    link=vuln.get("Link") or None,
                    package=feature.get("Name"),
                ))
        return vulnerabilities

    def get_vulnerabilities(self, record: DigestRecord) -> List[Vulnerability]:
        """Query the security endpoint for a resolved digest."""
        report = self.client.get_security(record.repository, record.digest)
        vulnerabilities = self.parse_security_report(report, record.reference)
        logger.debug(f"{record.reference}: {len(vulnerabilities)} vulnerability record(s)")
        return vulnerabilities


class BackendProxyClient:
    """Client for the backend proxy that answers by raw image reference."""

    def __init__(self, config: BackendConfig, session: Optional[requests.Session] = None):
        self.base_url = config.url.rstrip("/")
        self.timeout = config.timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    @staticmethod
    def parse_records(payload: Any, source: Optional[str] = None) -> List[Vulnerability]:
        """
        Convert ``[{id, severity, link?}]`` records to vulnerabilities.

        Raises:
            UnexpectedResponseError: payload or a record has the wrong type
        """
        if isinstance(payload, dict):
            payload = payload.get("vulnerabilities") or []
        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise UnexpectedResponseError(f"expected a list, got {type(payload).__name__}", source)
        vulnerabilities = []
        for record in payload:
            if not isinstance(record, dict):
                raise UnexpectedResponseError("vulnerability record is not an object", source)
            identifier = record.get("id")
            if not identifier:
                continue
            vulnerabilities.append(Vulnerability(
                identifier=str(identifier),
                severity=VulnSeverity.from_string(record.get("severity")),
                link=record.get("link") or None,
            ))
        return vulnerabilities

    def get_vulnerabilities(self, image: str) -> List[Vulnerability]:
        """
        Query vulnerabilities for an image reference.

        Raises:
            VulnerabilityNotFoundError: backend has no data for the image
            RegistryAPIError: any other non-success status
        """
        payload = request_json(
            self.session,
            f"{self.base_url}/image/vulnerabilities",
            params={"image": image},
            timeout=self.timeout,
            on_not_found=lambda r: VulnerabilityNotFoundError(r.text, image),
        )
        vulnerabilities = self.parse_records(payload, image)
        logger.debug(f"{image}: {len(vulnerabilities)} vulnerability record(s) from backend")
        return vulnerabilities
