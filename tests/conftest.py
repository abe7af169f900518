"""
Pytest configuration file.

Shared fixtures for HTTP responses, registry payloads and sample Dockerfiles.
"""
import json
from unittest.mock import MagicMock

import pytest

from basescan.models import (
    Diagnostic,
    DiagnosticSeverity,
    SourceRange,
    Vulnerability,
    VulnSeverity,
)

AMD64_DIGEST = "sha256:" + "a" * 64
ARM64_DIGEST = "sha256:" + "b" * 64
LIST_DIGEST = "sha256:" + "c" * 64


def make_response(status_code=200, payload=None, text=None):
    """Build a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = text if text is not None else json.dumps(payload or {})
    if payload is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


def security_report(*features, status="scanned"):
    """Quay security payload; features are (name, [(cve, severity), ...])."""
    return {
        "status": status,
        "data": {
            "Layer": {
                "Name": "layer",
                "Features": [
                    {
                        "Name": name,
                        "Vulnerabilities": [
                            {"Name": cve, "Severity": severity, "Link": f"https://cve.example/{cve}"}
                            for cve, severity in vulns
                        ],
                    }
                    for name, vulns in features
                ],
            }
        },
    }


def manifest_list(*platforms):
    """Manifest-list manifest response; platforms are (digest, os, arch)."""
    data = {
        "schemaVersion": 2,
        "manifests": [
            {"digest": digest, "platform": {"os": os_name, "architecture": arch}}
            for digest, os_name, arch in platforms
        ],
    }
    return {"digest": LIST_DIGEST, "is_manifest_list": True, "manifest_data": json.dumps(data)}


@pytest.fixture
def mock_session():
    """A requests.Session stand-in with real header storage."""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def vuln():
    """Factory for Vulnerability objects."""
    def _make(identifier, severity="HIGH"):
        return Vulnerability(identifier=identifier, severity=VulnSeverity.from_string(severity))
    return _make


@pytest.fixture
def diagnostic():
    """Factory for Diagnostic objects on a given line."""
    def _make(message="msg", line=0, severity=DiagnosticSeverity.ERROR):
        return Diagnostic(
            image="quay.io/org/app:1.0",
            message=message,
            severity=severity,
            range=SourceRange(line, 5, line, 24),
        )
    return _make


SAMPLE_DOCKERFILE = """\
# build stage
FROM quay.io/org/builder:2.1 AS build
RUN make

FROM docker.io/library/alpine:3.19
COPY --from=build /out /out

FROM quay.io/org/runtime:1.0
"""
