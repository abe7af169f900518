"""Unit tests for basescan/core/resolver.py"""

import json
from unittest.mock import MagicMock, patch

import pytest

from basescan.core.errors import ImagePullError, ManifestNotFoundError, UnexpectedResponseError
from basescan.core.resolver import (
    LocalPullResolver,
    RemoteManifestResolver,
    select_platform_manifest,
)
from basescan.models import Platform
from basescan.utils.registry import parse_image_reference
from basescan.utils.subprocess import CommandResult

from conftest import AMD64_DIGEST, ARM64_DIGEST, LIST_DIGEST, manifest_list

LINUX_AMD64 = Platform("linux", "amd64")
LINUX_ARM64 = Platform("linux", "arm64")


class TestSelectPlatformManifest:
    """Tests for select_platform_manifest"""

    def test_selects_matching_entry(self):
        """Test the entry for the wanted os/arch is returned"""
        data = manifest_list((AMD64_DIGEST, "linux", "amd64"), (ARM64_DIGEST, "linux", "arm64"))
        assert select_platform_manifest(data["manifest_data"], LINUX_ARM64) == ARM64_DIGEST

    def test_accepts_decoded_data(self):
        data = json.loads(manifest_list((AMD64_DIGEST, "linux", "amd64"))["manifest_data"])
        assert select_platform_manifest(data, LINUX_AMD64) == AMD64_DIGEST

    def test_no_match(self):
        """Test None when no entry fits"""
        data = manifest_list((AMD64_DIGEST, "windows", "amd64"))
        assert select_platform_manifest(data["manifest_data"], LINUX_AMD64) is None

    def test_missing_data(self):
        assert select_platform_manifest(None, LINUX_AMD64) is None

    @pytest.mark.parametrize("data", [
        "{not json",
        "[1, 2]",
        {"manifests": {"digest": AMD64_DIGEST}},
        {"manifests": ["sha256:x"]},
    ])
    def test_malformed_data_raises(self, data):
        """Test payloads without the manifest-list layout raise"""
        with pytest.raises(UnexpectedResponseError, match="unexpected response from org/app"):
            select_platform_manifest(data, LINUX_AMD64, "org/app@sha256:list")

    def test_variant_only_compared_when_both_set(self):
        """Test variants narrow the match only when both sides have one"""
        data = {"manifests": [
            {"digest": "sha256:v6", "platform": {"os": "linux", "architecture": "arm", "variant": "v6"}},
            {"digest": "sha256:v7", "platform": {"os": "linux", "architecture": "arm", "variant": "v7"}},
        ]}
        assert select_platform_manifest(data, Platform("linux", "arm", "v7")) == "sha256:v7"
        assert select_platform_manifest(data, Platform("linux", "arm")) == "sha256:v6"


class TestRemoteManifestResolver:
    """Tests for RemoteManifestResolver"""

    @pytest.fixture
    def client(self):
        return MagicMock()

    def test_tag_resolved_through_tag_api(self, client):
        """Test a tag reference is looked up and its manifest list narrowed"""
        client.get_tag_digest.return_value = LIST_DIGEST
        client.get_manifest.return_value = manifest_list(
            (AMD64_DIGEST, "linux", "amd64"), (ARM64_DIGEST, "linux", "arm64")
        )
        resolver = RemoteManifestResolver(client, LINUX_AMD64)

        record = resolver.resolve(parse_image_reference("quay.io/org/app:1.0"))

        client.get_tag_digest.assert_called_once_with("org/app", "1.0")
        client.get_manifest.assert_called_once_with("org/app", LIST_DIGEST)
        assert record.repository == "org/app"
        assert record.digest == AMD64_DIGEST
        assert record.platform == LINUX_AMD64

    def test_pinned_digest_skips_tag_api(self, client):
        """Test a digest reference is used directly"""
        client.get_manifest.return_value = {"digest": AMD64_DIGEST, "is_manifest_list": False}
        resolver = RemoteManifestResolver(client, LINUX_AMD64)

        record = resolver.resolve(parse_image_reference(f"quay.io/org/app@{AMD64_DIGEST}"))

        client.get_tag_digest.assert_not_called()
        assert record.digest == AMD64_DIGEST

    def test_plain_manifest_uses_response_digest(self, client):
        """Test a single-platform manifest's digest is the final reference"""
        client.get_tag_digest.return_value = LIST_DIGEST
        client.get_manifest.return_value = {"digest": AMD64_DIGEST, "is_manifest_list": False}
        record = RemoteManifestResolver(client, LINUX_ARM64).resolve(
            parse_image_reference("quay.io/org/app")
        )
        client.get_tag_digest.assert_called_once_with("org/app", "latest")
        assert record.digest == AMD64_DIGEST

    def test_no_platform_match_returns_none(self, client):
        """Test resolution yields None when the list lacks the platform"""
        client.get_tag_digest.return_value = LIST_DIGEST
        client.get_manifest.return_value = manifest_list((AMD64_DIGEST, "linux", "amd64"))
        resolver = RemoteManifestResolver(client, Platform("linux", "s390x"))
        assert resolver.resolve(parse_image_reference("quay.io/org/app:1.0")) is None

    def test_unknown_tag_propagates(self, client):
        """Test a missing tag raises ManifestNotFoundError"""
        client.get_tag_digest.side_effect = ManifestNotFoundError("org/app:nope")
        resolver = RemoteManifestResolver(client, LINUX_AMD64)
        with pytest.raises(ManifestNotFoundError, match="404"):
            resolver.resolve(parse_image_reference("quay.io/org/app:nope"))

    def test_platform_override(self, client):
        """Test an explicit platform replaces the configured one"""
        client.get_tag_digest.return_value = LIST_DIGEST
        client.get_manifest.return_value = manifest_list(
            (AMD64_DIGEST, "linux", "amd64"), (ARM64_DIGEST, "linux", "arm64")
        )
        resolver = RemoteManifestResolver(client, LINUX_AMD64)

        record = resolver.resolve(parse_image_reference("quay.io/org/app:1.0"), LINUX_ARM64)

        assert record.digest == ARM64_DIGEST
        assert record.platform == LINUX_ARM64

    def test_first_candidate_with_result_wins(self, client):
        """Test later candidates are tried when earlier ones lack the platform"""
        client.get_manifest.side_effect = [
            manifest_list((ARM64_DIGEST, "linux", "arm64")),
            {"digest": AMD64_DIGEST, "is_manifest_list": False},
        ]
        record = RemoteManifestResolver(client, LINUX_AMD64).resolve_digests(
            "org/app", [LIST_DIGEST, AMD64_DIGEST], LINUX_AMD64
        )
        assert record.digest == AMD64_DIGEST
        assert client.get_manifest.call_count == 2


class TestLocalPullResolver:
    """Tests for LocalPullResolver"""

    @pytest.fixture
    def manifests(self):
        return MagicMock()

    def _inspect_output(self, repo_digests, arch="arm64"):
        return json.dumps([{
            "Id": "sha256:local",
            "RepoDigests": repo_digests,
            "Os": "linux",
            "Architecture": arch,
        }])

    def test_pull_then_inspect(self, manifests):
        """Test pulled RepoDigests and platform feed manifest resolution"""
        outputs = [
            CommandResult(0, "pulled", ""),
            CommandResult(0, self._inspect_output([
                f"quay.io/org/app@{LIST_DIGEST}",
                f"quay.io/other/app@{AMD64_DIGEST}",
            ]), ""),
        ]
        manifests.resolve_digests.return_value = "record"
        resolver = LocalPullResolver(manifests, timeout=10)

        with patch("basescan.core.resolver.run_command", side_effect=outputs) as run:
            result = resolver.resolve(parse_image_reference("quay.io/org/app:1.0"))

        assert result == "record"
        assert run.call_args_list[0].args[0] == ["docker", "pull", "quay.io/org/app:1.0"]
        assert run.call_args_list[1].args[0] == ["docker", "image", "inspect", "quay.io/org/app:1.0"]
        manifests.resolve_digests.assert_called_once_with(
            "org/app", [LIST_DIGEST], Platform("linux", "arm64")
        )

    def test_pull_failure_raises(self, manifests):
        """Test a failing pull raises ImagePullError with the runtime text"""
        resolver = LocalPullResolver(manifests)
        failed = CommandResult(1, "", "manifest unknown")
        with patch("basescan.core.resolver.run_command", return_value=failed):
            with pytest.raises(ImagePullError, match="manifest unknown"):
                resolver.resolve(parse_image_reference("quay.io/org/app:1.0"))
        manifests.resolve_digests.assert_not_called()

    def test_missing_docker_is_pull_failure(self, manifests):
        """Test an absent docker binary surfaces as a pull error"""
        resolver = LocalPullResolver(manifests)
        missing = CommandResult(127, "", "No such file or directory: 'docker'")
        with patch("basescan.core.resolver.run_command", return_value=missing):
            with pytest.raises(ImagePullError):
                resolver.resolve(parse_image_reference("quay.io/org/app:1.0"))

    def test_no_repo_digest_returns_none(self, manifests):
        """Test a locally built image without RepoDigests is skipped"""
        outputs = [CommandResult(0, "", ""), CommandResult(0, self._inspect_output([]), "")]
        with patch("basescan.core.resolver.run_command", side_effect=outputs):
            assert LocalPullResolver(manifests).resolve(parse_image_reference("quay.io/org/app")) is None

    def test_platform_passed_to_pull(self, manifests):
        """Test a FROM --platform request pulls that platform"""
        outputs = [
            CommandResult(0, "pulled", ""),
            CommandResult(0, self._inspect_output([f"quay.io/org/app@{LIST_DIGEST}"]), ""),
        ]
        with patch("basescan.core.resolver.run_command", side_effect=outputs) as run:
            LocalPullResolver(manifests).resolve(parse_image_reference("quay.io/org/app:1.0"), LINUX_ARM64)

        assert run.call_args_list[0].args[0] == [
            "docker", "pull", "--platform", "linux/arm64", "quay.io/org/app:1.0",
        ]

    def test_unusable_inspect_output(self, manifests):
        outputs = [CommandResult(0, "", ""), CommandResult(0, json.dumps({"Id": "x"}), "")]
        with patch("basescan.core.resolver.run_command", side_effect=outputs):
            with pytest.raises(ImagePullError, match="not found after pull"):
                LocalPullResolver(manifests).resolve(parse_image_reference("quay.io/org/app"))
