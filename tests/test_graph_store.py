"""Tests for the in-memory and thread-safe graph stores."""

import threading

import pytest

from graphcrawler.storage.graph_store import ConcurrentGraphStore, InMemoryGraphStore


@pytest.fixture(params=[InMemoryGraphStore, ConcurrentGraphStore])
def store(request):
    return request.param()


class TestGraphStore:
    """Behaviour shared by every in-process store."""

    def test_register_page_assigns_ids_in_discovery_order(self, store):
        assert store.register_page("https://example.org/a") == 0
        assert store.register_page("https://example.org/b") == 1
        assert store.size() == 2

    def test_register_page_is_idempotent(self, store):
        first = store.register_page("https://example.org/a")
        store.register_page("https://example.org/b")
        assert store.register_page("https://example.org/a") == first
        assert store.size() == 2

    def test_get_page_id(self, store):
        assert store.get_page_id("https://example.org/a") is None
        page_id = store.register_page("https://example.org/a")
        assert store.get_page_id("https://example.org/a") == page_id

    def test_add_link_is_idempotent(self, store):
        assert store.add_link(0, 1) is True
        assert store.add_link(0, 1) is False
        assert store.add_link(1, 0) is True
        assert store.link_count() == 2
        assert sorted(store.links()) == [(0, 1), (1, 0)]

    def test_has_link(self, store):
        store.add_link(3, 4)
        assert store.has_link(3, 4)
        assert not store.has_link(4, 3)

    def test_pages_and_stats(self, store):
        store.register_page("https://example.org/a")
        store.register_page("https://example.org/b")
        store.add_link(0, 1)

        assert dict(store.pages()) == {"https://example.org/a": 0, "https://example.org/b": 1}
        assert store.get_stats() == {'pages': 2, 'links': 1}

    def test_transaction_yields_store(self, store):
        with store.transaction() as tx:
            page_id = tx.register_page("https://example.org/a")
            tx.add_link(page_id, page_id)
        assert store.has_link(0, 0)


class TestConcurrentGraphStore:
    """Thread-safety of the shared store."""

    def test_concurrent_registration_yields_one_id_per_url(self):
        store = ConcurrentGraphStore()
        urls = [f"https://example.org/page{i}" for i in range(50)]
        results = [[] for _ in range(8)]
        barrier = threading.Barrier(8)

        def register(slot):
            barrier.wait()
            for url in urls:
                results[slot].append(store.register_page(url))

        threads = [threading.Thread(target=register, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Every thread saw the same id for every URL
        assert all(result == results[0] for result in results)
        assert len(set(results[0])) == len(urls)
        assert store.size() == len(urls)

    def test_concurrent_duplicate_links_are_stored_once(self):
        store = ConcurrentGraphStore()
        barrier = threading.Barrier(6)

        def insert():
            barrier.wait()
            for target in range(100):
                store.add_link(0, target)

        threads = [threading.Thread(target=insert) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.link_count() == 100

    def test_readers_never_see_a_partial_page(self):
        store = ConcurrentGraphStore()
        links_per_page = 5
        done = threading.Event()
        observed = []

        def writer():
            for page in range(200):
                with store.transaction() as tx:
                    source = tx.register_page(f"https://example.org/p{page}")
                    for i in range(links_per_page):
                        target = tx.register_page(f"https://example.org/p{page}/t{i}")
                        tx.add_link(source, target)
            done.set()

        def reader():
            while not done.is_set():
                observed.append(store.link_count())

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(count % links_per_page == 0 for count in observed)
        assert store.link_count() == 200 * links_per_page
