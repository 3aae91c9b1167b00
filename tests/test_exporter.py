"""Tests for the CSV graph exporter."""

import pytest

from graphcrawler.crawler.errors import ExportError
from graphcrawler.storage.exporter import GraphExporter
from graphcrawler.storage.graph_store import InMemoryGraphStore

from .support import wiki


@pytest.fixture
def store():
    store = InMemoryGraphStore()
    for title in ["A", "B", "C"]:
        store.register_page(wiki(title))
    store.add_link(1, 0)
    store.add_link(0, 1)
    store.add_link(0, 2)
    return store


class TestGraphExporter:

    def test_output_paths(self, tmp_path):
        exporter = GraphExporter(str(tmp_path / "crawl"))
        assert exporter.nodes_path == tmp_path / "crawl_nodes.csv"
        assert exporter.edges_path == tmp_path / "crawl_edges.csv"

    def test_export_directed(self, tmp_path, store):
        exporter = GraphExporter(str(tmp_path / "crawl"))

        assert exporter.export(store) == (3, 3)

        assert exporter.nodes_path.read_text(encoding='utf-8').splitlines() == [
            'node_id,url',
            f'0,"{wiki("A")}"',
            f'1,"{wiki("B")}"',
            f'2,"{wiki("C")}"',
        ]
        assert exporter.edges_path.read_text(encoding='utf-8').splitlines() == [
            'source,target',
            '0,1',
            '0,2',
            '1,0',
        ]

    def test_export_undirected(self, tmp_path, store):
        exporter = GraphExporter(str(tmp_path / "crawl"), undirected=True)

        assert exporter.export(store) == (2, 2)

        assert exporter.nodes_path.read_text(encoding='utf-8').splitlines() == [
            'node_id,url',
            f'0,"{wiki("A")}"',
            f'1,"{wiki("B")}"',
        ]
        assert exporter.edges_path.read_text(encoding='utf-8').splitlines() == [
            'source,target',
            '0,1',
            '1,0',
        ]

    def test_urls_with_quotes_are_escaped(self, tmp_path):
        store = InMemoryGraphStore()
        store.register_page('https://example.org/say_"hi"')
        exporter = GraphExporter(str(tmp_path / "crawl"))

        exporter.export(store)

        lines = exporter.nodes_path.read_text(encoding='utf-8').splitlines()
        assert lines[1] == '0,"https://example.org/say_""hi"""'

    def test_creates_missing_directories(self, tmp_path, store):
        exporter = GraphExporter(str(tmp_path / "out" / "crawl"))
        exporter.export(store)
        assert exporter.edges_path.exists()

    @pytest.mark.parametrize("existing", ["crawl_nodes.csv", "crawl_edges.csv"])
    def test_refuses_to_overwrite(self, tmp_path, store, existing):
        (tmp_path / existing).write_text("old results")
        exporter = GraphExporter(str(tmp_path / "crawl"))

        with pytest.raises(ExportError, match="already exists"):
            exporter.check_output_paths()
        with pytest.raises(ExportError):
            exporter.export(store)

        assert (tmp_path / existing).read_text() == "old results"

    def test_write_failure(self, tmp_path, store):
        (tmp_path / "blocker").write_text("not a directory")
        exporter = GraphExporter(str(tmp_path / "blocker" / "crawl"))

        with pytest.raises(ExportError, match="Could not write graph"):
            exporter.export(store)
