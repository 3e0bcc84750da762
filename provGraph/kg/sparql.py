"""SPARQL 1.1 HTTP client and a statement store on top of it."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional
from urllib.parse import urlencode

import requests
from rdflib import Graph
from rdflib.term import BNode, IdentifiedNode

from .store import Quad, StagedWriter

logger = logging.getLogger(__name__)


class SPARQLClient:
    """Tiny wrapper around ``requests`` for a SPARQL query/update endpoint pair."""

    def __init__(
        self,
        endpoint: str = "http://localhost:3030/prov/sparql",
        *,
        update_endpoint: Optional[str] = None,
        timeout: int = 15,
    ) -> None:
        self.endpoint = endpoint
        self.update_endpoint = update_endpoint or self._derive_update_endpoint(endpoint)
        self.session = requests.Session()
        self.timeout = timeout

    def _get(self, query: str, accept: str) -> requests.Response:
        resp = self.session.get(
            self.endpoint,
            params={"query": query},
            headers={"Accept": accept},
            timeout=self.timeout,
        )
        return resp

    def construct(self, query: str) -> str:
        """Execute a ``CONSTRUCT`` query returning N-Triples."""

        resp = self._get(query, "application/n-triples")
        if resp.status_code != 200:
            raise RuntimeError(f"SPARQL CONSTRUCT failed: {resp.status_code}")
        return resp.text

    def update(self, query: str) -> None:
        """Execute a SPARQL ``UPDATE`` statement via POST."""

        if not self.update_endpoint:
            raise RuntimeError("No update endpoint configured for SPARQL client")
        resp = self.session.post(
            self.update_endpoint,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data=urlencode({"update": query}),
            timeout=self.timeout,
        )
        if resp.status_code not in (200, 204):
            raise RuntimeError(f"SPARQL UPDATE failed: {resp.status_code}")

    def close(self) -> None:
        self.session.close()

    @staticmethod
    def _derive_update_endpoint(endpoint: str) -> str:
        if endpoint.endswith("/sparql"):
            return endpoint[: -len("/sparql")] + "/update"
        return endpoint + "/update"


def _named(context: IdentifiedNode) -> str:
    if isinstance(context, BNode):
        raise ValueError(f"Remote contexts must be IRIs, not blank node {context.n3()}")
    return context.n3()


class SPARQLStore:
    """Statement source and sink for one remote dataset."""

    def __init__(self, client: SPARQLClient) -> None:
        self.client = client

    def statements(self, context: IdentifiedNode) -> List[Quad]:
        query = f"CONSTRUCT {{ ?s ?p ?o }} WHERE {{ GRAPH {_named(context)} {{ ?s ?p ?o }} }}"
        text = self.client.construct(query)
        graph = Graph()
        graph.parse(data=text, format="nt")
        logger.debug("Fetched %d statements for %s", len(graph), context)
        return [(s, p, o, context) for s, p, o in graph]

    @contextmanager
    def transaction(self) -> Iterator[StagedWriter]:
        writer = StagedWriter()
        try:
            yield writer
        except Exception:
            logger.debug("Discarding %d staged statements", len(writer.staged))
            raise
        quads = writer.unique()
        if not quads:
            return
        by_context: Dict[IdentifiedNode, List[str]] = {}
        for s, p, o, c in quads:
            by_context.setdefault(c, []).append(f"{s.n3()} {p.n3()} {o.n3()} .")
        blocks = " ".join(
            f"GRAPH {_named(c)} {{ {' '.join(lines)} }}" for c, lines in by_context.items()
        )
        self.client.update(f"INSERT DATA {{ {blocks} }}")
        logger.info("Committed %d statements to %s", len(quads), self.client.update_endpoint)


__all__ = ["SPARQLClient", "SPARQLStore"]
