"""
Storage layer for the crawled graph.
"""

from .graph_store import GraphStore, InMemoryGraphStore, ConcurrentGraphStore
from .projection import ProjectedGraph, full_graph, undirected_projection

__all__ = [
    'GraphStore', 'InMemoryGraphStore', 'ConcurrentGraphStore',
    'ProjectedGraph', 'full_graph', 'undirected_projection'
]
