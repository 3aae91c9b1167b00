"""Tests for the Redis-backed graph store."""

import threading

import fakeredis
import pytest

from graphcrawler.crawler.scheduler import CrawlerScheduler
from graphcrawler.storage.redis_store import RedisGraphStore
from graphcrawler.utils.config import RedisConfig

from .support import FakeFetcher, wiki


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(redis_client):
    return RedisGraphStore(redis_client, key_prefix="test")


class TestRedisGraphStore:

    def test_register_page(self, store, redis_client):
        assert store.register_page("https://example.org/a") == 0
        assert store.register_page("https://example.org/b") == 1
        assert store.register_page("https://example.org/a") == 0
        assert redis_client.hget("test:pages", "https://example.org/b") == "1"

    def test_get_page_id(self, store):
        assert store.get_page_id("https://example.org/a") is None
        store.register_page("https://example.org/a")
        assert store.get_page_id("https://example.org/a") == 0

    def test_links(self, store):
        assert store.add_link(0, 1) is True
        assert store.add_link(0, 1) is False
        assert store.add_link(1, 0) is True
        assert store.has_link(1, 0)
        assert store.link_count() == 2
        assert sorted(store.links()) == [(0, 1), (1, 0)]

    def test_pages_iteration(self, store):
        store.register_page("https://example.org/a")
        store.register_page("https://example.org/b")
        assert dict(store.pages()) == {"https://example.org/a": 0, "https://example.org/b": 1}
        assert store.size() == 2

    def test_reset_clears_previous_graph(self, redis_client):
        first = RedisGraphStore(redis_client, key_prefix="test")
        first.register_page("https://example.org/a")
        first.add_link(0, 0)

        second = RedisGraphStore(redis_client, key_prefix="test")
        assert second.size() == 0
        assert second.link_count() == 0

    def test_keep_existing_graph(self, redis_client):
        first = RedisGraphStore(redis_client, key_prefix="test")
        first.register_page("https://example.org/a")

        second = RedisGraphStore(redis_client, key_prefix="test", reset=False)
        assert second.get_page_id("https://example.org/a") == 0

    def test_bytes_responses_are_decoded(self):
        store = RedisGraphStore(fakeredis.FakeRedis(), key_prefix="raw")
        store.register_page("https://example.org/a")
        store.add_link(0, 0)
        assert list(store.pages()) == [("https://example.org/a", 0)]
        assert list(store.links()) == [(0, 0)]
        assert store.get_page_id("https://example.org/a") == 0

    def test_concurrent_registration(self, store):
        results = [[] for _ in range(4)]
        barrier = threading.Barrier(4)

        def register(slot):
            barrier.wait()
            for i in range(30):
                results[slot].append(store.register_page(f"https://example.org/{i}"))

        threads = [threading.Thread(target=register, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(result == results[0] for result in results)
        assert sorted(results[0]) == list(range(30))

    def test_from_config(self, monkeypatch):
        server = fakeredis.FakeServer()
        created = {}

        def fake_redis(**kwargs):
            created.update(kwargs)
            return fakeredis.FakeRedis(server=server, decode_responses=kwargs['decode_responses'])

        monkeypatch.setattr("graphcrawler.storage.redis_store.redis.Redis", fake_redis)
        store = RedisGraphStore.from_config(RedisConfig(host="redis.local", port=6380, key_prefix="cfg"))

        assert created['host'] == "redis.local"
        assert created['port'] == 6380
        assert store.pages_key == "cfg:pages"

    def test_crawl_into_redis(self, store, crawler_config):
        crawler_config.num_workers = 3
        crawler_config.depth = 3
        fetcher = FakeFetcher({
            wiki("A"): ["/wiki/B", "/wiki/C"],
            wiki("B"): ["/wiki/A", "/wiki/C"],
            wiki("C"): ["/wiki/A"],
        })

        CrawlerScheduler(crawler_config, store=store, fetcher=fetcher).crawl()

        ids = dict(store.pages())
        assert set(ids) == {wiki("A"), wiki("B"), wiki("C")}
        expected = {
            (ids[wiki("A")], ids[wiki("B")]), (ids[wiki("A")], ids[wiki("C")]),
            (ids[wiki("B")], ids[wiki("A")]), (ids[wiki("B")], ids[wiki("C")]),
            (ids[wiki("C")], ids[wiki("A")]),
        }
        assert set(store.links()) == expected
