"""Provenance knowledge graph: traversal, serialization, building and stores."""

__all__ = [
    "GraphVisitor",
    "GraphSerializer",
    "add_to_graph",
    "GraphBuilder",
    "to_bundle",
    "DatasetStore",
    "StagedWriter",
    "SPARQLClient",
    "SPARQLStore",
    "attribute",
    "typed_literal",
    "to_literal",
    "to_instant",
    "write_nquads",
    "write_trig",
    "write_dataset",
]

from .visitor import GraphVisitor
from .serializer import GraphSerializer, add_to_graph
from .builder import GraphBuilder, to_bundle
from .store import DatasetStore, StagedWriter
from .sparql import SPARQLClient, SPARQLStore
from .ontology import attribute, typed_literal
from .timestamps import to_instant, to_literal
from .export import write_dataset, write_nquads, write_trig
