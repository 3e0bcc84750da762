"""Kinds of provenance objects and their class IRIs."""

from __future__ import annotations

from enum import Enum

from rdflib import URIRef

from provGraph import namespaces as ns


class Kind(Enum):
    """The types of provenance objects."""

    AGENT = "Agent"
    ACTIVITY = "Activity"
    ENTITY = "Entity"
    COLLECTION = "Collection"
    PLAN = "Plan"
    BUNDLE = "Bundle"
    USAGE = "Usage"
    GENERATION = "Generation"
    INVALIDATION = "Invalidation"
    START = "Start"
    END = "End"
    COMMUNICATION = "Communication"
    DERIVATION = "Derivation"
    ASSOCIATION = "Association"
    ATTRIBUTION = "Attribution"
    DELEGATION = "Delegation"
    INFLUENCE = "Influence"
    QUOTATION = "Quotation"
    REVISION = "Revision"
    PRIMARY_SOURCE = "PrimarySource"
    LOCATION = "Location"
    ROLE = "Role"
    NON_PROVENANCE = "NonProvenance"

    @property
    def iri(self) -> URIRef:
        """Return the PROV class IRI for this kind."""

        if self is Kind.NON_PROVENANCE:
            raise ValueError("Non provenance objects must be independently typed")
        return ns.PROV[self.value]

    @property
    def is_entity(self) -> bool:
        return self in _ENTITY_KINDS

    def compatible_with(self, other: "Kind") -> bool:
        """Whether one identifier may carry both kinds in a single graph.

        Entity subtypes are interchangeable with each other; every other kind
        only matches itself.
        """

        if self is other:
            return True
        return self.is_entity and other.is_entity


_ENTITY_KINDS = frozenset({Kind.ENTITY, Kind.PLAN, Kind.COLLECTION, Kind.BUNDLE})

_BY_IRI = {kind.iri: kind for kind in Kind if kind is not Kind.NON_PROVENANCE}


def kind_for_iri(iri: URIRef) -> Kind | None:
    """Return the kind whose class IRI is ``iri`` if there is one."""

    return _BY_IRI.get(iri)


class AgentType(Enum):
    """Specialisations of a PROV agent."""

    AGENT = "Agent"
    PERSON = "Person"
    ORGANIZATION = "Organization"
    SOFTWARE = "SoftwareAgent"

    @property
    def iri(self) -> URIRef:
        return ns.PROV[self.value]


_AGENT_TYPES = {agent_type.iri: agent_type for agent_type in AgentType}


def agent_type_for_iri(iri: URIRef) -> AgentType | None:
    return _AGENT_TYPES.get(iri)


__all__ = ["Kind", "AgentType", "kind_for_iri", "agent_type_for_iri"]
