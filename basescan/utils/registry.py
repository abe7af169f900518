"""Image reference parsing and scan filtering."""

import re
from dataclasses import dataclass
from typing import Optional

from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_DOMAIN = "docker.io"
DEFAULT_NAMESPACE = "library"

# domain/namespace/repo[:tag][@digest]; domain only when the first path
# component looks like a host (contains '.' or ':' or is localhost).
IMAGE_REFERENCE_RE = re.compile(
    r"^"
    r"(?:(?P<domain>localhost(?::\d+)?|[a-zA-Z0-9-]+(?:\.[a-zA-Z0-9-]+)+(?::\d+)?|[a-zA-Z0-9-]+:\d+)/)?"
    r"(?:(?P<namespace>[a-z0-9]+(?:[._-][a-z0-9]+)*(?:/[a-z0-9]+(?:[._-][a-z0-9]+)*)*)/)?"
    r"(?P<repository>[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*)"
    r"(?::(?P<tag>[\w][\w.-]{0,127}))?"
    r"(?:@(?P<digest>[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}))?"
    r"$"
)


@dataclass(frozen=True)
class ImageReference:
    """A parsed image reference."""
    raw: str
    domain: str
    namespace: Optional[str]
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    @property
    def repository_path(self) -> str:
        """Repository path inside the registry, e.g. ``org/app``."""
        if self.namespace:
            return f"{self.namespace}/{self.repository}"
        return self.repository

    @property
    def name(self) -> str:
        """Fully qualified name without tag or digest."""
        return f"{self.domain}/{self.repository_path}"

    @property
    def effective_tag(self) -> str:
        return self.tag or "latest"


def parse_image_reference(image: str) -> Optional[ImageReference]:
    """
    Parse an image reference.

    Args:
        image: Reference such as ``quay.io/org/app:1.0`` or ``ubuntu``

    Returns:
        ImageReference, or None when the string is not a valid reference
        (for example when it still contains an unexpanded ``$ARG``)
    """
    if not image:
        return None
    match = IMAGE_REFERENCE_RE.match(image.strip())
    if not match:
        logger.debug(f"Not a valid image reference: {image}")
        return None

    domain = match.group("domain") or DEFAULT_DOMAIN
    namespace = match.group("namespace")
    if namespace is None and domain == DEFAULT_DOMAIN:
        namespace = DEFAULT_NAMESPACE

    return ImageReference(
        raw=image,
        domain=domain.lower(),
        namespace=namespace,
        repository=match.group("repository"),
        tag=match.group("tag"),
        digest=match.group("digest"),
    )


class ImageFilter:
    """Decides which image references are scanned at all."""

    def __init__(self, pattern: str):
        """
        Initialize filter.

        Args:
            pattern: Regular expression matched case-insensitively against
                the raw reference
        """
        self.pattern = pattern
        self._regex = re.compile(pattern, re.IGNORECASE)

    def matches(self, image: str) -> bool:
        """Check whether an image should be scanned."""
        if self._regex.search(image):
            return True
        logger.debug(f"Skipping {image}: does not match {self.pattern}")
        return False
