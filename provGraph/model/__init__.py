"""Typed in-memory model of a PROV provenance graph."""

__all__ = [
    "Kind",
    "AgentType",
    "Variant",
    "RefOrValue",
    "Referencable",
    "ref",
    "value",
    "qualified",
    "Attribute",
    "ProvenanceObject",
    "Locatable",
    "Role",
    "Location",
    "Entity",
    "Plan",
    "Collection",
    "Bundle",
    "Activity",
    "Agent",
    "NonProvenance",
    "Link",
    "Influence",
    "InstantaneousEvent",
    "EntityInfluence",
    "ActivityInfluence",
    "AgentInfluence",
    "Usage",
    "Start",
    "End",
    "Generation",
    "Invalidation",
    "Communication",
    "Derivation",
    "PrimarySource",
    "Quotation",
    "Revision",
    "Attribution",
    "Delegation",
    "Association",
]

from .kinds import AgentType, Kind
from .refs import RefOrValue, Referencable, Variant, qualified, ref, value
from .nodes import (
    Activity,
    Agent,
    Attribute,
    Bundle,
    Collection,
    Entity,
    Link,
    Locatable,
    Location,
    NonProvenance,
    Plan,
    ProvenanceObject,
    Role,
)
from .influences import (
    ActivityInfluence,
    AgentInfluence,
    Association,
    Attribution,
    Communication,
    Delegation,
    Derivation,
    End,
    EntityInfluence,
    Generation,
    Influence,
    InstantaneousEvent,
    Invalidation,
    PrimarySource,
    Quotation,
    Revision,
    Start,
    Usage,
)
