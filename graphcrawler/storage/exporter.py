"""
CSV export of a crawled graph.
Writes <prefix>_nodes.csv (node_id,url) and <prefix>_edges.csv (source,target).
"""

import csv
import logging
from pathlib import Path
from typing import Tuple

from .graph_store import GraphStore
from .projection import ProjectedGraph, full_graph, undirected_projection
from ..crawler.errors import ExportError


class GraphExporter:
    """Writes the page table and the link table of a crawl."""

    def __init__(self, output_prefix: str, undirected: bool = False):
        self.output_prefix = output_prefix
        self.undirected = undirected
        self.logger = logging.getLogger(__name__)

    @property
    def nodes_path(self) -> Path:
        return Path(f"{self.output_prefix}_nodes.csv")

    @property
    def edges_path(self) -> Path:
        return Path(f"{self.output_prefix}_edges.csv")

    def check_output_paths(self):
        """
        Refuse to overwrite earlier results.
        Called before crawling so that a long crawl is not wasted.
        """
        for path in (self.edges_path, self.nodes_path):
            if path.exists():
                raise ExportError(
                    f"File {path} already exists. Delete it and run the program again "
                    f"if you want to use that path."
                )

    def project(self, store: GraphStore) -> ProjectedGraph:
        if self.undirected:
            return undirected_projection(store)
        return full_graph(store)

    def export(self, store: GraphStore) -> Tuple[int, int]:
        """
        Write both tables.

        Returns:
            (pages written, links written)
        """
        self.check_output_paths()
        graph = self.project(store)

        try:
            self.nodes_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.nodes_path, 'w', newline='', encoding='utf-8') as f:
                csv.writer(f).writerow(['node_id', 'url'])
                writer = csv.writer(f, quoting=csv.QUOTE_NONNUMERIC)
                for page_id, url in sorted(graph.nodes.items()):
                    writer.writerow([page_id, url])

            with open(self.edges_path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(['source', 'target'])
                for source, target in sorted(graph.links):
                    writer.writerow([source, target])

        except OSError as e:
            raise ExportError(f"Could not write graph to {self.output_prefix}: {e}") from e

        self.logger.info(
            f"Exported {graph.num_pages()} pages to {self.nodes_path} and "
            f"{graph.num_links()} links to {self.edges_path}"
        )
        return graph.num_pages(), graph.num_links()
