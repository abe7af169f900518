"""Unit tests for basescan/core/diagnostics.py"""

from unittest.mock import MagicMock

from basescan.core.diagnostics import DiagnosticCollection

URI = "file:///project/Dockerfile"


class TestDiagnosticCollection:
    """Tests for DiagnosticCollection"""

    def test_set_replaces(self, diagnostic):
        collection = DiagnosticCollection()
        collection.set(URI, [diagnostic("a"), diagnostic("b", line=3)])
        collection.set(URI, [diagnostic("c")])
        assert [d.message for d in collection.get(URI)] == ["c"]

    def test_empty_set_removes_entry(self, diagnostic):
        collection = DiagnosticCollection()
        collection.set(URI, [diagnostic()])
        collection.set(URI, [])
        assert URI not in collection
        assert collection.get(URI) == []

    def test_publisher_sees_every_change(self, diagnostic):
        publisher = MagicMock()
        collection = DiagnosticCollection(publisher=publisher)
        first = diagnostic("a")

        collection.set(URI, [first])
        collection.delete(URI)

        assert publisher.call_args_list[0].args == (URI, [first])
        assert publisher.call_args_list[1].args == (URI, [])

    def test_clear(self, diagnostic):
        publisher = MagicMock()
        collection = DiagnosticCollection(publisher=publisher)
        collection.set("file:///a/Dockerfile", [diagnostic()])
        collection.set("file:///b/Dockerfile", [diagnostic()])

        collection.clear()

        assert len(collection) == 0
        assert list(collection) == []
        publisher.assert_any_call("file:///a/Dockerfile", [])
        publisher.assert_any_call("file:///b/Dockerfile", [])

    def test_get_returns_copy(self, diagnostic):
        collection = DiagnosticCollection()
        collection.set(URI, [diagnostic()])
        collection.get(URI).clear()
        assert len(collection.get(URI)) == 1
