"""Prefix-bound graphs and typed attribute values."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union

import rdflib
from rdflib import Dataset, Graph, Literal
from rdflib.term import IdentifiedNode, URIRef

from provGraph.model import Attribute
from provGraph.namespaces import PROV, XSD
from .timestamps import to_literal

AttributeValue = Union[bool, int, float, Decimal, str, timedelta, date, datetime]


def _bind_prefixes(g: Graph) -> Graph:
    g.bind("prov", PROV)
    g.bind("xsd", XSD)
    return g


def graph_with_prefixes(*, identifier: rdflib.term.Identifier | None = None) -> Graph:
    """Return a graph pre-bound with the PROV and XSD prefixes.

    Parameters
    ----------
    identifier:
        Optional identifier for the graph. When provided the returned
        :class:`~rdflib.Graph` will use this value as its named graph IRI.
    """

    return _bind_prefixes(Graph(identifier=identifier))


def dataset_with_prefixes() -> Dataset:
    """Return an empty :class:`~rdflib.Dataset` with the same prefixes bound."""

    return _bind_prefixes(Dataset())


def typed_literal(
    value: AttributeValue,
    datatype: Optional[URIRef] = None,
) -> Literal:
    """Create a literal for one of the supported attribute value types.

    Booleans, numbers, strings, durations, dates and datetimes are accepted.
    ``datetime`` values use the same lexical form as PROV timestamps. An
    explicit ``datatype`` overrides the inferred one.
    """

    if isinstance(value, datetime):
        if datatype is None or datatype == XSD.dateTime:
            return to_literal(value)
        return Literal(value.isoformat(), datatype=datatype)
    if isinstance(value, date):
        return Literal(value.isoformat(), datatype=datatype or XSD.date)
    if isinstance(value, (bool, int, float, Decimal, str, timedelta)):
        return Literal(value, datatype=datatype)
    raise TypeError(f"Unsupported attribute value: {type(value).__name__}")


def attribute(
    predicate: URIRef,
    value: AttributeValue | IdentifiedNode,
    datatype: Optional[URIRef] = None,
) -> Attribute:
    """Build an :class:`~provGraph.model.Attribute` for ``predicate``.

    Resources are kept as they are; everything else goes through
    :func:`typed_literal`.
    """

    if isinstance(value, (IdentifiedNode, Literal)):
        return Attribute(predicate, value)
    return Attribute(predicate, typed_literal(value, datatype))


__all__ = [
    "graph_with_prefixes",
    "dataset_with_prefixes",
    "typed_literal",
    "attribute",
    "PROV",
    "XSD",
]
