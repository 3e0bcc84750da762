from __future__ import annotations

from typing import Optional

import pytest
from rdflib import URIRef

from provGraph.kg.ontology import dataset_with_prefixes
from provGraph.kg.store import DatasetStore

PREFIXES = """\
@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .
@prefix prov: <http://www.w3.org/ns/prov#> .
@prefix dcterms: <http://purl.org/dc/terms/> .
@prefix foaf: <http://xmlns.com/foaf/0.1/> .
@prefix : <http://www.example.org#> .
"""

SPARQL_PREFIXES = """\
PREFIX rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#>
PREFIX rdfs: <http://www.w3.org/2000/01/rdf-schema#>
PREFIX xsd: <http://www.w3.org/2001/XMLSchema#>
PREFIX prov: <http://www.w3.org/ns/prov#>
PREFIX dcterms: <http://purl.org/dc/terms/>
PREFIX foaf: <http://xmlns.com/foaf/0.1/>
PREFIX : <http://www.example.org#>
"""


def _load_store(content: str, *, format: str = "turtle", context: Optional[URIRef] = None) -> DatasetStore:
    """Parse ``content`` into a fresh store.

    Turtle goes into ``context``; TriG keeps its own graphs.
    """

    dataset = dataset_with_prefixes()
    if content:
        data = PREFIXES + content
        if format == "trig":
            dataset.parse(data=data, format="trig")
        else:
            dataset.graph(context).parse(data=data, format=format)
    return DatasetStore(dataset)


def _ask(store: DatasetStore, pattern: str, context: Optional[URIRef] = None) -> bool:
    """Run an ``ASK`` for ``pattern`` over one context, or over the whole dataset."""

    query = f"{SPARQL_PREFIXES}\nASK WHERE {{\n{pattern}\n}}"
    target = store.dataset if context is None else store.dataset.graph(context)
    return bool(target.query(query).askAnswer)


@pytest.fixture()
def store() -> DatasetStore:
    return DatasetStore()


@pytest.fixture()
def load_store():
    return _load_store


@pytest.fixture()
def ask():
    return _ask
