"""Unit tests for basescan/core/cache.py"""

from basescan.core.cache import ReportCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestReportCache:
    """Tests for ReportCache"""

    def test_hit_within_ttl(self, vuln):
        clock = FakeClock()
        cache = ReportCache(ttl_seconds=60, clock=clock)
        cache.set("quay.io/org/app:1.0", [vuln("CVE-1")])

        clock.now += 59
        cached = cache.get("quay.io/org/app:1.0")
        assert [v.identifier for v in cached] == ["CVE-1"]
        assert cache.get_stats().hits == 1

    def test_expired_entry_is_a_miss(self, vuln):
        clock = FakeClock()
        cache = ReportCache(ttl_seconds=60, clock=clock)
        cache.set("quay.io/org/app:1.0", [vuln("CVE-1")])

        clock.now += 60
        assert cache.get("quay.io/org/app:1.0") is None
        stats = cache.get_stats()
        assert stats.expired == 1
        assert stats.misses == 1
        assert stats.entries == 0

    def test_empty_list_is_cached(self):
        """Test a clean image is remembered as clean, not as unknown"""
        cache = ReportCache(ttl_seconds=60)
        cache.set("quay.io/org/app:1.0", [])
        assert cache.get("quay.io/org/app:1.0") == []

    def test_disabled_with_zero_ttl(self, vuln):
        cache = ReportCache(ttl_seconds=0)
        cache.set("quay.io/org/app:1.0", [vuln("CVE-1")])
        assert cache.get("quay.io/org/app:1.0") is None
        assert cache.get_stats().entries == 0

    def test_invalidate(self, vuln):
        cache = ReportCache()
        cache.set("a", [vuln("CVE-1")])
        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        assert cache.get("a") is None

    def test_clear(self, vuln):
        cache = ReportCache()
        cache.set("a", [vuln("CVE-1")])
        cache.set("b", [])
        cache.clear()
        assert cache.get_stats().entries == 0

    def test_returned_list_is_a_copy(self, vuln):
        cache = ReportCache()
        cache.set("a", [vuln("CVE-1")])
        cache.get("a").append(vuln("CVE-2"))
        assert len(cache.get("a")) == 1
