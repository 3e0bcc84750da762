"""Statement sources and sinks.

A source returns every statement of one context; a sink accepts statements
inside a transaction that is committed only when the ``with`` block exits
cleanly.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Protocol, Tuple, Union

from rdflib import Dataset, Graph
from rdflib.term import IdentifiedNode, Node, URIRef

from .ontology import dataset_with_prefixes

logger = logging.getLogger(__name__)

Quad = Tuple[IdentifiedNode, URIRef, Node, IdentifiedNode]


class StatementSource(Protocol):
    def statements(self, context: IdentifiedNode) -> List[Quad]:
        ...


class StatementWriter(Protocol):
    def add(
        self,
        subject: IdentifiedNode,
        predicate: URIRef,
        obj: Node,
        context: IdentifiedNode,
    ) -> None:
        ...


class StatementSink(Protocol):
    def transaction(self):
        ...


class StagedWriter:
    """Collects statements until the owning store commits them."""

    def __init__(self) -> None:
        self.staged: List[Quad] = []

    def add(
        self,
        subject: IdentifiedNode,
        predicate: URIRef,
        obj: Node,
        context: IdentifiedNode,
    ) -> None:
        self.staged.append((subject, predicate, obj, context))

    def unique(self) -> List[Quad]:
        return list(dict.fromkeys(self.staged))


class DatasetStore:
    """In-memory store backed by an rdflib :class:`~rdflib.Dataset`."""

    def __init__(self, dataset: Optional[Dataset] = None) -> None:
        self.dataset = dataset if dataset is not None else dataset_with_prefixes()

    def statements(self, context: IdentifiedNode) -> List[Quad]:
        graph = self.dataset.graph(context)
        return [(s, p, o, context) for s, p, o in graph]

    def contexts(self) -> List[IdentifiedNode]:
        """Identifiers of every non-empty named graph."""

        return sorted(
            (g.identifier for g in self.dataset.graphs() if len(g)),
            key=lambda node: node.n3(),
        )

    def parse(
        self,
        source: Union[str, Path],
        *,
        format: Optional[str] = None,
        context: Optional[IdentifiedNode] = None,
    ) -> None:
        """Load ``source`` into the dataset.

        Quad formats (TriG, N-Quads) keep their own graphs. Triple formats
        need ``context`` naming the graph to load into.
        """

        path = Path(source)
        fmt = format or _guess_format(path)
        if fmt in ("trig", "nquads"):
            self.dataset.parse(path, format=fmt)
            return
        if context is None:
            raise ValueError(f"A context is required to load {fmt} data")
        graph = Graph()
        graph.parse(path, format=fmt)
        target = self.dataset.graph(context)
        for triple in graph:
            target.add(triple)

    @contextmanager
    def transaction(self) -> Iterator[StagedWriter]:
        writer = StagedWriter()
        try:
            yield writer
        except Exception:
            logger.debug("Rolling back %d staged statements", len(writer.staged))
            raise
        quads = writer.unique()
        for s, p, o, c in quads:
            self.dataset.graph(c).add((s, p, o))
        logger.debug("Committed %d statements", len(quads))


_SUFFIX_FORMATS = {
    ".trig": "trig",
    ".nq": "nquads",
    ".nquads": "nquads",
    ".ttl": "turtle",
    ".nt": "nt",
    ".rdf": "xml",
    ".xml": "xml",
    ".jsonld": "json-ld",
}


def _guess_format(path: Path) -> str:
    try:
        return _SUFFIX_FORMATS[path.suffix.lower()]
    except KeyError as exc:
        raise ValueError(f"Cannot guess the RDF format of {path}") from exc


__all__ = [
    "Quad",
    "StatementSource",
    "StatementWriter",
    "StatementSink",
    "StagedWriter",
    "DatasetStore",
]
