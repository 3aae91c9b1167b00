"""
Undirected projection of a crawled graph.
"""

from dataclasses import dataclass, field
from typing import Dict, Set

from .graph_store import GraphStore, Link, PageId


@dataclass
class ProjectedGraph:
    """Read-only node and edge sets derived from a graph store."""
    nodes: Dict[PageId, str] = field(default_factory=dict)
    links: Set[Link] = field(default_factory=set)

    def num_pages(self) -> int:
        return len(self.nodes)

    def num_links(self) -> int:
        return len(self.links)


def full_graph(store: GraphStore) -> ProjectedGraph:
    """The directed graph exactly as crawled."""
    return ProjectedGraph(
        nodes={page_id: url for url, page_id in store.pages()},
        links=set(store.links())
    )


def undirected_projection(store: GraphStore) -> ProjectedGraph:
    """
    Keep only the links whose reverse link was also crawled.

    Both directions of a reciprocal pair are kept. Nodes are restricted to
    the endpoints of kept links. The result is not guaranteed to be a
    connected graph: a page reached through one-way links only drops out
    together with everything hanging off it.

    Must run after every worker has stopped, otherwise a reverse link found
    later would be missed.
    """
    links = set(store.links())

    kept: Set[Link] = set()
    endpoints: Set[PageId] = set()
    for source, target in links:
        if (target, source) in links:
            kept.add((source, target))
            endpoints.add(source)
            endpoints.add(target)

    nodes = {
        page_id: url
        for url, page_id in store.pages()
        if page_id in endpoints
    }
    return ProjectedGraph(nodes=nodes, links=kept)
