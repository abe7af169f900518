"""Exceptions raised while scanning base images.

Every ScanError is turned into a single error diagnostic at the FROM line
of the image that caused it.
"""

from typing import Optional


class ScanError(Exception):
    """Base class for failures while scanning one image."""

    kind = "scan-error"


class ImagePullError(ScanError):
    """Raised when the local container runtime cannot pull or inspect an image."""

    kind = "pull-failed"

    def __init__(self, image: str, reason: str):
        self.image = image
        self.reason = reason
        super().__init__(f"Failed to pull {image}: {reason}")


class RegistryConnectionError(ScanError):
    """Raised when the registry or backend cannot be reached."""

    kind = "connection-failed"


class RegistryAPIError(ScanError):
    """Raised for a non-success HTTP status from the registry or backend."""

    kind = "http-error"

    def __init__(self, status_code: int, body: str, url: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(self.format_message())

    def format_message(self) -> str:
        body = (self.body or "").strip()
        if len(body) > 200:
            body = body[:200] + "..."
        message = f"{self.status_code}: registry request failed"
        if self.url:
            message += f" ({self.url})"
        if body:
            message += f": {body}"
        return message


class VulnerabilityNotFoundError(RegistryAPIError):
    """Raised when the security endpoint answers 404 for a digest."""

    kind = "not-found"

    def __init__(self, body: str = "", url: Optional[str] = None):
        super().__init__(404, body, url)

    def format_message(self) -> str:
        target = f" for {self.url}" if self.url else ""
        return f"404: no security data found{target}"


class ManifestNotFoundError(RegistryAPIError):
    """Raised when a tag or manifest does not exist in the registry."""

    kind = "not-found"

    def __init__(self, reference: str, url: Optional[str] = None):
        self.reference = reference
        super().__init__(404, "", url)

    def format_message(self) -> str:
        return f"404: manifest not found for {self.reference}"


class UnexpectedResponseError(RegistryAPIError):
    """Raised when a response decodes but does not have the expected shape."""

    kind = "bad-response"

    def __init__(self, detail: str, url: Optional[str] = None, status_code: int = 200):
        self.detail = detail
        super().__init__(status_code, detail, url)

    def format_message(self) -> str:
        source = f" from {self.url}" if self.url else ""
        return f"unexpected response{source}: {self.detail}"
