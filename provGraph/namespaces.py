"""Canonical PROV-O vocabulary for provenance graphs.

This module is the single source of truth for the class and property IRIs
used by the builder and serializer, and for the table pairing each plain
relation with its qualified form.
"""

from __future__ import annotations

from types import MappingProxyType

from rdflib import Namespace, URIRef
from rdflib.namespace import RDF, XSD

PROV_NS = "http://www.w3.org/ns/prov#"

PROV = Namespace(PROV_NS)

# Classes.
ENTITY = PROV["Entity"]
ACTIVITY = PROV["Activity"]
AGENT = PROV["Agent"]
COLLECTION = PROV["Collection"]
EMPTY_COLLECTION = PROV["EmptyCollection"]
BUNDLE = PROV["Bundle"]
PLAN = PROV["Plan"]
LOCATION = PROV["Location"]
ROLE = PROV["Role"]
PERSON = PROV["Person"]
ORGANIZATION = PROV["Organization"]
SOFTWARE_AGENT = PROV["SoftwareAgent"]
INFLUENCE = PROV["Influence"]
ENTITY_INFLUENCE = PROV["EntityInfluence"]
ACTIVITY_INFLUENCE = PROV["ActivityInfluence"]
AGENT_INFLUENCE = PROV["AgentInfluence"]
INSTANTANEOUS_EVENT = PROV["InstantaneousEvent"]
USAGE = PROV["Usage"]
GENERATION = PROV["Generation"]
INVALIDATION = PROV["Invalidation"]
START = PROV["Start"]
END = PROV["End"]
COMMUNICATION = PROV["Communication"]
DERIVATION = PROV["Derivation"]
ASSOCIATION = PROV["Association"]
ATTRIBUTION = PROV["Attribution"]
DELEGATION = PROV["Delegation"]
QUOTATION = PROV["Quotation"]
REVISION = PROV["Revision"]
PRIMARY_SOURCE = PROV["PrimarySource"]

# Starting-point and expanded relations.
WAS_GENERATED_BY = PROV["wasGeneratedBy"]
WAS_DERIVED_FROM = PROV["wasDerivedFrom"]
WAS_ATTRIBUTED_TO = PROV["wasAttributedTo"]
STARTED_AT_TIME = PROV["startedAtTime"]
ENDED_AT_TIME = PROV["endedAtTime"]
USED = PROV["used"]
WAS_INFORMED_BY = PROV["wasInformedBy"]
WAS_ASSOCIATED_WITH = PROV["wasAssociatedWith"]
ACTED_ON_BEHALF_OF = PROV["actedOnBehalfOf"]
ALTERNATE_OF = PROV["alternateOf"]
SPECIALIZATION_OF = PROV["specializationOf"]
GENERATED_AT_TIME = PROV["generatedAtTime"]
INVALIDATED_AT_TIME = PROV["invalidatedAtTime"]
HAD_PRIMARY_SOURCE = PROV["hadPrimarySource"]
WAS_QUOTED_FROM = PROV["wasQuotedFrom"]
WAS_REVISION_OF = PROV["wasRevisionOf"]
WAS_INVALIDATED_BY = PROV["wasInvalidatedBy"]
WAS_STARTED_BY = PROV["wasStartedBy"]
WAS_ENDED_BY = PROV["wasEndedBy"]
HAD_MEMBER = PROV["hadMember"]
GENERATED = PROV["generated"]
INVALIDATED = PROV["invalidated"]
AT_LOCATION = PROV["atLocation"]

# Qualified relations.
QUALIFIED_GENERATION = PROV["qualifiedGeneration"]
QUALIFIED_DERIVATION = PROV["qualifiedDerivation"]
QUALIFIED_PRIMARY_SOURCE = PROV["qualifiedPrimarySource"]
QUALIFIED_QUOTATION = PROV["qualifiedQuotation"]
QUALIFIED_REVISION = PROV["qualifiedRevision"]
QUALIFIED_ATTRIBUTION = PROV["qualifiedAttribution"]
QUALIFIED_INVALIDATION = PROV["qualifiedInvalidation"]
QUALIFIED_START = PROV["qualifiedStart"]
QUALIFIED_USAGE = PROV["qualifiedUsage"]
QUALIFIED_COMMUNICATION = PROV["qualifiedCommunication"]
QUALIFIED_ASSOCIATION = PROV["qualifiedAssociation"]
QUALIFIED_END = PROV["qualifiedEnd"]
QUALIFIED_DELEGATION = PROV["qualifiedDelegation"]

# Qualification details.
ENTITY_PROP = PROV["entity"]
ACTIVITY_PROP = PROV["activity"]
AGENT_PROP = PROV["agent"]
HAD_ACTIVITY = PROV["hadActivity"]
HAD_ROLE = PROV["hadRole"]
HAD_USAGE = PROV["hadUsage"]
HAD_GENERATION = PROV["hadGeneration"]
HAD_PLAN = PROV["hadPlan"]
AT_TIME = PROV["atTime"]

# Bundle links.
MENTION_OF = PROV["mentionOf"]
AS_IN_BUNDLE = PROV["asInBundle"]

# Not part of PROV-O. Bundles hold their members and links in tuples; these
# names stay reserved and an attribute using them is never written to a store.
BUNDLE_ITEM = PROV["bundleItem"]
BUNDLE_LINKS = PROV["bundleLinks"]
PRIVATE_PROPERTIES = frozenset({BUNDLE_ITEM, BUNDLE_LINKS})

QUALIFICATIONS: MappingProxyType[URIRef, URIRef] = MappingProxyType(
    {
        WAS_GENERATED_BY: QUALIFIED_GENERATION,
        WAS_DERIVED_FROM: QUALIFIED_DERIVATION,
        HAD_PRIMARY_SOURCE: QUALIFIED_PRIMARY_SOURCE,
        WAS_QUOTED_FROM: QUALIFIED_QUOTATION,
        WAS_REVISION_OF: QUALIFIED_REVISION,
        WAS_ATTRIBUTED_TO: QUALIFIED_ATTRIBUTION,
        WAS_INVALIDATED_BY: QUALIFIED_INVALIDATION,
        WAS_STARTED_BY: QUALIFIED_START,
        USED: QUALIFIED_USAGE,
        WAS_INFORMED_BY: QUALIFIED_COMMUNICATION,
        WAS_ASSOCIATED_WITH: QUALIFIED_ASSOCIATION,
        WAS_ENDED_BY: QUALIFIED_END,
        ACTED_ON_BEHALF_OF: QUALIFIED_DELEGATION,
    }
)

# Every class IRI the vocabulary recognises; anything else under PROV_NS used
# as a type is an error.
KNOWN_CLASSES = frozenset(
    {
        ENTITY,
        ACTIVITY,
        AGENT,
        COLLECTION,
        EMPTY_COLLECTION,
        BUNDLE,
        PLAN,
        LOCATION,
        ROLE,
        PERSON,
        ORGANIZATION,
        SOFTWARE_AGENT,
        INFLUENCE,
        ENTITY_INFLUENCE,
        ACTIVITY_INFLUENCE,
        AGENT_INFLUENCE,
        INSTANTANEOUS_EVENT,
        USAGE,
        GENERATION,
        INVALIDATION,
        START,
        END,
        COMMUNICATION,
        DERIVATION,
        ASSOCIATION,
        ATTRIBUTION,
        DELEGATION,
        QUOTATION,
        REVISION,
        PRIMARY_SOURCE,
    }
)


def in_prov_namespace(term: object) -> bool:
    """Return ``True`` when ``term`` is an IRI under the PROV namespace."""

    return isinstance(term, URIRef) and str(term).startswith(PROV_NS)


__all__ = [
    "PROV_NS",
    "PROV",
    "RDF",
    "XSD",
    "QUALIFICATIONS",
    "KNOWN_CLASSES",
    "PRIVATE_PROPERTIES",
    "BUNDLE_ITEM",
    "BUNDLE_LINKS",
    "in_prov_namespace",
]
