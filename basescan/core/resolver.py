"""Digest resolution for base images.

Two strategies turn an image reference into the manifest digest the
security endpoint is keyed by:

* RemoteManifestResolver asks the registry API for the tag's digest.
* LocalPullResolver pulls the image with the local docker daemon and uses
  the RepoDigests and platform reported by ``docker image inspect``.

Both finish in the registry manifest API, where a multi-arch manifest
list is narrowed down to the entry for the wanted platform.
"""

import json
from typing import Any, Dict, List, Optional, Union

from ..models import DigestRecord, Platform
from ..utils.logging import get_logger
from ..utils.registry import ImageReference, parse_image_reference
from ..utils.subprocess import run_command
from .errors import ImagePullError, UnexpectedResponseError
from .quay import QuayClient

logger = get_logger(__name__)


def select_platform_manifest(
    manifest_data: Union[str, Dict[str, Any], None],
    platform: Platform,
    source: Optional[str] = None,
) -> Optional[str]:
    """
    Pick the digest of the manifest-list entry matching a platform.

    Args:
        manifest_data: The manifest list, as the JSON string the registry
            embeds or already decoded
        platform: Wanted platform
        source: Reference named in errors

    Returns:
        Digest of the matching entry, or None

    Raises:
        UnexpectedResponseError: manifest_data is not a manifest list
    """
    if not manifest_data:
        return None
    if isinstance(manifest_data, str):
        try:
            manifest_data = json.loads(manifest_data)
        except json.JSONDecodeError as e:
            raise UnexpectedResponseError(f"unreadable manifest list: {e}", source)

    if not isinstance(manifest_data, dict):
        raise UnexpectedResponseError("manifest list is not an object", source)
    entries = manifest_data.get("manifests") or []
    if not isinstance(entries, list):
        raise UnexpectedResponseError("'manifests' is not a list", source)

    for entry in entries:
        if not isinstance(entry, dict):
            raise UnexpectedResponseError("manifest list entry is not an object", source)
        entry_platform = entry.get("platform") or {}
        if not isinstance(entry_platform, dict):
            continue
        if platform.matches(
            entry_platform.get("os"),
            entry_platform.get("architecture"),
            entry_platform.get("variant"),
        ):
            return entry.get("digest")
    return None


class ImageResolver:
    """Resolves an image reference to a DigestRecord."""

    def resolve(
        self,
        reference: ImageReference,
        platform: Optional[Platform] = None,
    ) -> Optional[DigestRecord]:
        """
        Resolve a reference.

        Args:
            reference: Image to resolve
            platform: Platform requested by the FROM line, overriding the
                configured one

        Returns:
            DigestRecord, or None when no manifest fits the platform

        Raises:
            ScanError: when the registry or runtime fails
        """
        raise NotImplementedError


class RemoteManifestResolver(ImageResolver):
    """Resolve digests purely through the registry API."""

    def __init__(self, client: QuayClient, platform: Platform):
        self.client = client
        self.platform = platform

    def candidate_digests(self, reference: ImageReference) -> List[str]:
        """Digest pinned in the reference, otherwise the tag's current digest."""
        if reference.digest:
            return [reference.digest]
        return [self.client.get_tag_digest(reference.repository_path, reference.effective_tag)]

    def resolve(
        self,
        reference: ImageReference,
        platform: Optional[Platform] = None,
    ) -> Optional[DigestRecord]:
        candidates = self.candidate_digests(reference)
        return self.resolve_digests(reference.repository_path, candidates, platform or self.platform)

    def resolve_digests(
        self,
        repository: str,
        digests: List[str],
        platform: Platform,
    ) -> Optional[DigestRecord]:
        """
        Turn candidate digests into a single-platform manifest digest.

        The first candidate that yields a result wins. A plain manifest is
        taken as-is; a manifest list must contain an entry for platform.
        """
        for digest in digests:
            manifest = self.client.get_manifest(repository, digest)

            if manifest.get("is_manifest_list"):
                selected = select_platform_manifest(
                    manifest.get("manifest_data"), platform, f"{repository}@{digest}"
                )
                if selected:
                    logger.debug(f"Selected {selected} for {platform} from {repository}@{digest}")
                    return DigestRecord(repository=repository, digest=selected, platform=platform)
                logger.debug(f"No {platform} entry in manifest list {repository}@{digest}")
                continue

            return DigestRecord(repository=repository, digest=manifest.get("digest") or digest)

        logger.warning(f"No manifest for platform {platform} found in {repository}")
        return None


class LocalPullResolver(ImageResolver):
    """Resolve digests by pulling the image with the local docker daemon."""

    def __init__(self, manifests: RemoteManifestResolver, timeout: int = 600):
        """
        Initialize resolver.

        Args:
            manifests: Used to resolve the pulled RepoDigests
            timeout: Timeout for ``docker pull`` in seconds
        """
        self.manifests = manifests
        self.timeout = timeout

    def pull(self, image: str, platform: Optional[Platform] = None) -> None:
        """
        Pull an image, for a specific platform when one is given.

        Raises:
            ImagePullError: docker is missing or the pull failed
        """
        logger.debug(f"Pulling {image}")
        cmd = ["docker", "pull"]
        if platform is not None:
            cmd += ["--platform", str(platform)]
        result = run_command(cmd + [image], timeout=self.timeout)
        if not result.success:
            raise ImagePullError(image, result.error_text)

    def inspect(self, image: str) -> Dict[str, Any]:
        """
        Inspect a local image.

        Raises:
            ImagePullError: inspection failed or returned nothing usable
        """
        result = run_command(["docker", "image", "inspect", image], timeout=60)
        if not result.success:
            raise ImagePullError(image, result.error_text)
        try:
            data = result.json()
        except json.JSONDecodeError as e:
            raise ImagePullError(image, f"unreadable inspect output: {e}")
        if not data or not isinstance(data, list) or not isinstance(data[0], dict):
            raise ImagePullError(image, "image not found after pull")
        return data[0]

    @staticmethod
    def repo_digests(reference: ImageReference, entries: List[str]) -> List[str]:
        """Digests from RepoDigests that belong to the reference's repository."""
        digests = []
        for entry in entries:
            if not isinstance(entry, str):
                continue
            parsed = parse_image_reference(entry)
            if parsed and parsed.digest and parsed.name == reference.name:
                digests.append(parsed.digest)
        return digests

    def resolve(
        self,
        reference: ImageReference,
        platform: Optional[Platform] = None,
    ) -> Optional[DigestRecord]:
        self.pull(reference.raw, platform)
        details = self.inspect(reference.raw)

        pulled = Platform(
            os=(details.get("Os") or "linux").lower(),
            architecture=(details.get("Architecture") or "").lower(),
            variant=(details.get("Variant") or None),
        )
        candidates = self.repo_digests(reference, details.get("RepoDigests") or [])
        if not candidates:
            logger.warning(f"No repository digest recorded for {reference.raw}")
            return None

        logger.debug(f"{reference.raw}: {len(candidates)} candidate digest(s), platform {pulled}")
        return self.manifests.resolve_digests(reference.repository_path, candidates, pulled)
