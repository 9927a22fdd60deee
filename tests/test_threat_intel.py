"""Tests for the threat database, feed sources and refresher."""

import asyncio

import httpx
import pytest

from pagesentinel.analyzer.metrics import metrics
from pagesentinel.analyzer.threat_intel import (
    FileFeedSource,
    HttpFeedSource,
    StaticFeedSource,
    ThreatDatabase,
)
from pagesentinel.analyzer.threat_intel_updater import ThreatIntelRefresher
from pagesentinel.errors import ThreatFeedError


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FailingSource:
    name = "failing"

    def __init__(self):
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        raise ThreatFeedError(self.name, "boom")


class TestThreatDatabase:
    def test_starts_empty_and_stale(self):
        db = ThreatDatabase()
        assert db.snapshot().version == 0
        assert len(db.snapshot()) == 0
        assert db.is_stale(86400)

    def test_publish_replaces_wholesale(self):
        db = ThreatDatabase()
        db.publish(["a.com", "b.com"])
        db.publish(["C.com "])
        snap = db.snapshot()
        assert snap.version == 2
        assert snap.domains == frozenset({"c.com"})

    def test_publish_normalizes_url_entries(self):
        db = ThreatDatabase()
        snap = db.publish(["https://Bad.Example:8443/login", "", "  "])
        assert snap.domains == frozenset({"bad.example"})
        assert snap.contains("BAD.example")

    def test_old_snapshot_unchanged_after_publish(self):
        db = ThreatDatabase()
        first = db.publish(["a.com"])
        db.publish(["b.com"])
        assert first.contains("a.com")
        assert not first.contains("b.com")

    def test_staleness_uses_clock(self):
        clock = FakeClock()
        db = ThreatDatabase(clock=clock)
        db.publish(["a.com"])
        assert not db.is_stale(100)
        clock.now += 101
        assert db.is_stale(100)


class TestFeedSources:
    @pytest.mark.asyncio
    async def test_static_source(self):
        source = StaticFeedSource(["Phishing-Example.com"])
        assert await source.fetch() == {"phishing-example.com"}

    @pytest.mark.asyncio
    async def test_file_source_plain_list(self, tmp_path):
        path = tmp_path / "threats.txt"
        path.write_text("# known bad\nbad.example\n\nWorse.example\n")
        assert await FileFeedSource(path).fetch() == {"bad.example", "worse.example"}

    @pytest.mark.asyncio
    async def test_file_source_yaml(self, tmp_path):
        path = tmp_path / "threats.yaml"
        path.write_text("domains:\n  - bad.example\n  - domain: other.example\n    note: reported\n")
        assert await FileFeedSource(path).fetch() == {"bad.example", "other.example"}

    @pytest.mark.asyncio
    async def test_file_source_missing(self, tmp_path):
        with pytest.raises(ThreatFeedError) as excinfo:
            await FileFeedSource(tmp_path / "nope.txt").fetch()
        assert excinfo.value.source.startswith("file:")

    @pytest.mark.asyncio
    async def test_file_source_bad_yaml(self, tmp_path):
        path = tmp_path / "threats.yaml"
        path.write_text("domains: [unclosed\n")
        with pytest.raises(ThreatFeedError):
            await FileFeedSource(path).fetch()

    @pytest.mark.asyncio
    async def test_http_source(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/feed.txt"
            return httpx.Response(200, text="# feed\nbad.example\nEVIL.example\n")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            source = HttpFeedSource("https://feeds.test/feed.txt", client=client)
            assert await source.fetch() == {"bad.example", "evil.example"}

    @pytest.mark.asyncio
    async def test_http_source_status_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            source = HttpFeedSource("https://feeds.test/feed.txt", client=client)
            with pytest.raises(ThreatFeedError, match="HTTP 503"):
                await source.fetch()

    @pytest.mark.asyncio
    async def test_http_source_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            source = HttpFeedSource("https://feeds.test/feed.txt", client=client)
            with pytest.raises(ThreatFeedError, match="timed out"):
                await source.fetch()


class TestRefresher:
    @pytest.mark.asyncio
    async def test_refresh_publishes(self):
        db = ThreatDatabase()
        refresher = ThreatIntelRefresher(db, StaticFeedSource(["bad.example"]))
        assert await refresher.refresh() is True
        assert db.snapshot().contains("bad.example")
        assert metrics.get_summary()["threat_refresh"] == {"succeeded": 1, "failed": 0}

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_snapshot(self):
        db = ThreatDatabase()
        before = db.publish(["bad.example"], source="seed")
        refresher = ThreatIntelRefresher(db, FailingSource())
        assert await refresher.refresh() is False
        assert db.snapshot() is before
        assert refresher.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_empty_feed_counts_as_failure(self):
        db = ThreatDatabase()
        before = db.publish(["bad.example"])
        refresher = ThreatIntelRefresher(db, StaticFeedSource([]))
        assert await refresher.refresh() is False
        assert db.snapshot() is before

    @pytest.mark.asyncio
    async def test_backoff_doubles_and_caps_at_poll_interval(self):
        refresher = ThreatIntelRefresher(
            ThreatDatabase(), FailingSource(), poll_seconds=100, retry_base_seconds=30
        )
        assert refresher.next_delay() == 100
        delays = []
        for _ in range(4):
            await refresher.refresh()
            delays.append(refresher.next_delay())
        assert delays == [30, 60, 100, 100]

    @pytest.mark.asyncio
    async def test_success_resets_backoff(self):
        db = ThreatDatabase()
        source = StaticFeedSource(["bad.example"])
        refresher = ThreatIntelRefresher(db, FailingSource(), poll_seconds=100)
        await refresher.refresh()
        refresher.source = source
        await refresher.refresh()
        assert refresher.consecutive_failures == 0
        assert refresher.next_delay() == 100

    @pytest.mark.asyncio
    async def test_tick_skips_fresh_snapshot(self):
        clock = FakeClock()
        db = ThreatDatabase(clock=clock)
        db.publish(["bad.example"])
        source = FailingSource()
        refresher = ThreatIntelRefresher(db, source, staleness_seconds=50, poll_seconds=10)
        await refresher.tick()
        assert source.calls == 0
        clock.now += 51
        await refresher.tick()
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        db = ThreatDatabase()
        refresher = ThreatIntelRefresher(db, StaticFeedSource(["bad.example"]), poll_seconds=3600)
        await refresher.start()
        assert db.snapshot().version == 1
        await refresher.stop()
        await asyncio.sleep(0)
        assert refresher._task is None
