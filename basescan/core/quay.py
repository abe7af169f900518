"""Quay registry REST API client.

Only the three endpoints the scanner needs are wrapped: tag lookup,
manifest lookup and the security scan of a manifest.
"""

from typing import Any, Callable, Dict, Optional

import requests

from ..config import RegistryConfig
from ..utils.logging import get_logger
from .errors import (
    ManifestNotFoundError,
    RegistryAPIError,
    RegistryConnectionError,
    ScanError,
    UnexpectedResponseError,
    VulnerabilityNotFoundError,
)

logger = get_logger(__name__)


def request_json(
    session: requests.Session,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: int = 30,
    on_not_found: Optional[Callable[[requests.Response], ScanError]] = None,
) -> Any:
    """
    GET a URL and decode the JSON body.

    Args:
        session: HTTP session to use
        url: Absolute URL
        params: Query parameters
        timeout: Request timeout in seconds
        on_not_found: Builds the exception raised for a 404

    Returns:
        Decoded JSON

    Raises:
        RegistryConnectionError: network failure
        RegistryAPIError: any non-success status
    """
    logger.debug(f"GET {url} {params or ''}")
    try:
        response = session.get(url, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise RegistryConnectionError(f"Request to {url} failed: {e}") from e

    if response.status_code == 404:
        if on_not_found is not None:
            raise on_not_found(response)
        raise RegistryAPIError(404, response.text, url)
    if not response.ok:
        raise RegistryAPIError(response.status_code, response.text, url)

    try:
        return response.json()
    except ValueError as e:
        raise RegistryAPIError(response.status_code, f"invalid JSON: {e}", url) from e


def expect_mapping(data: Any, url: str) -> Dict[str, Any]:
    """Return data if it is a JSON object, otherwise raise UnexpectedResponseError."""
    if not isinstance(data, dict):
        raise UnexpectedResponseError(f"expected an object, got {type(data).__name__}", url)
    return data


class QuayClient:
    """Client for the Quay ``/api/v1`` endpoints."""

    def __init__(self, config: RegistryConfig, session: Optional[requests.Session] = None):
        """
        Initialize client.

        Args:
            config: Registry settings
            session: Pre-built session (tests pass a mock)
        """
        self.base_url = config.url.rstrip("/")
        self.timeout = config.timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if config.token:
            self.session.headers.update({"Authorization": f"Bearer {config.token}"})

    def _url(self, repository: str, suffix: str) -> str:
        return f"{self.base_url}/api/v1/repository/{repository}/{suffix}"

    def get_tag_digest(self, repository: str, tag: str) -> str:
        """
        Look up the manifest digest an active tag points to.

        Raises:
            ManifestNotFoundError: repository or tag unknown
        """
        url = self._url(repository, "tag/")
        reference = f"{repository}:{tag}"
        data = request_json(
            self.session,
            url,
            params={"specificTag": tag, "onlyActiveTags": "true"},
            timeout=self.timeout,
            on_not_found=lambda r: ManifestNotFoundError(reference, url),
        )
        tags = expect_mapping(data, url).get("tags") or []
        if not isinstance(tags, list):
            raise UnexpectedResponseError("'tags' is not a list", url)
        for entry in tags:
            if not isinstance(entry, dict):
                raise UnexpectedResponseError("tag entry is not an object", url)
            if entry.get("name") == tag and entry.get("manifest_digest"):
                return entry["manifest_digest"]
        raise ManifestNotFoundError(reference, url)

    def get_manifest(self, repository: str, digest: str) -> Dict[str, Any]:
        """
        Fetch manifest metadata for a digest.

        Raises:
            ManifestNotFoundError: digest unknown to the registry
        """
        url = self._url(repository, f"manifest/{digest}")
        data = request_json(
            self.session,
            url,
            timeout=self.timeout,
            on_not_found=lambda r: ManifestNotFoundError(f"{repository}@{digest}", url),
        )
        return expect_mapping(data, url)

    def get_security(self, repository: str, digest: str) -> Dict[str, Any]:
        """
        Fetch the security scan of a manifest including vulnerabilities.

        Raises:
            VulnerabilityNotFoundError: no scan data for the digest
        """
        url = self._url(repository, f"manifest/{digest}/security")
        data = request_json(
            self.session,
            url,
            params={"vulnerabilities": "true"},
            timeout=self.timeout,
            on_not_found=lambda r: VulnerabilityNotFoundError(r.text, f"{repository}@{digest}"),
        )
        return expect_mapping(data, url)
