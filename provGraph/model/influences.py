"""Qualified relations ("influences") between provenance objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional

from rdflib import BNode
from rdflib.term import IdentifiedNode, URIRef

from provGraph import namespaces as ns
from provGraph.errors import MissingRequiredFieldError, TypeMismatchError
from provGraph.model.kinds import Kind
from provGraph.model.nodes import Activity, Agent, Entity, Locatable, Plan, Role
from provGraph.model.refs import RefOrValue, Referencable


@dataclass(frozen=True)
class Influence(Locatable):
    """Base of every qualification.

    Subclasses name the field holding the influencing object in
    ``influencer_field`` and the predicate linking to it in
    ``influencer_predicate``.
    """

    id: IdentifiedNode = field(default_factory=BNode)
    had_role: Optional[RefOrValue[Role]] = None

    kind = Kind.INFLUENCE
    class_iri = ns.INFLUENCE
    influencer_field = ""
    influencer_kind = None
    influencer_predicate = None

    _ref_fields = {**Locatable._ref_fields, "had_role": Kind.ROLE}

    def __post_init__(self) -> None:
        target = getattr(self, self.influencer_field)
        if target is None:
            raise MissingRequiredFieldError(
                f"{self.kind.value} '{self.id}' has no {self.influencer_field}",
                subject=self.id,
                predicate=self.influencer_predicate,
            )
        if isinstance(target, Referencable) or isinstance(target, Influence):
            raise TypeMismatchError(
                f"{self.kind.value} '{self.id}' cannot qualify another qualification",
                subject=self.id,
            )
        super().__post_init__()

    def influencer(self) -> RefOrValue:
        """Return the object this qualification is about."""

        return getattr(self, self.influencer_field)

    @classmethod
    def class_iris(cls) -> FrozenSet[URIRef]:
        """Every PROV class an instance of this influence may be typed with."""

        return frozenset(
            klass.__dict__["class_iri"]
            for klass in cls.__mro__
            if "class_iri" in klass.__dict__
        )


class InstantaneousEvent:
    """Marks influences that happen at a single ``at_time``."""

    class_iri = ns.INSTANTANEOUS_EVENT


@dataclass(frozen=True)
class EntityInfluence(Influence):
    entity: Optional[RefOrValue[Entity]] = None
    had_activity: Optional[RefOrValue[Activity]] = None

    class_iri = ns.ENTITY_INFLUENCE
    influencer_field = "entity"
    influencer_kind = Kind.ENTITY
    influencer_predicate = ns.ENTITY_PROP

    _ref_fields = {
        **Influence._ref_fields,
        "entity": Kind.ENTITY,
        "had_activity": Kind.ACTIVITY,
    }


@dataclass(frozen=True)
class ActivityInfluence(Influence):
    activity: Optional[RefOrValue[Activity]] = None

    class_iri = ns.ACTIVITY_INFLUENCE
    influencer_field = "activity"
    influencer_kind = Kind.ACTIVITY
    influencer_predicate = ns.ACTIVITY_PROP

    _ref_fields = {**Influence._ref_fields, "activity": Kind.ACTIVITY}


@dataclass(frozen=True)
class AgentInfluence(Influence):
    agent: Optional[RefOrValue[Agent]] = None
    had_activity: Optional[RefOrValue[Activity]] = None

    class_iri = ns.AGENT_INFLUENCE
    influencer_field = "agent"
    influencer_kind = Kind.AGENT
    influencer_predicate = ns.AGENT_PROP

    _ref_fields = {
        **Influence._ref_fields,
        "agent": Kind.AGENT,
        "had_activity": Kind.ACTIVITY,
    }


@dataclass(frozen=True)
class Usage(EntityInfluence, InstantaneousEvent):
    at_time: Optional[datetime] = None

    kind = Kind.USAGE
    class_iri = ns.USAGE


@dataclass(frozen=True)
class Start(EntityInfluence, InstantaneousEvent):
    at_time: Optional[datetime] = None

    kind = Kind.START
    class_iri = ns.START


@dataclass(frozen=True)
class End(EntityInfluence, InstantaneousEvent):
    at_time: Optional[datetime] = None

    kind = Kind.END
    class_iri = ns.END


@dataclass(frozen=True)
class Generation(ActivityInfluence, InstantaneousEvent):
    at_time: Optional[datetime] = None

    kind = Kind.GENERATION
    class_iri = ns.GENERATION


@dataclass(frozen=True)
class Invalidation(ActivityInfluence, InstantaneousEvent):
    at_time: Optional[datetime] = None

    kind = Kind.INVALIDATION
    class_iri = ns.INVALIDATION


@dataclass(frozen=True)
class Communication(ActivityInfluence):
    kind = Kind.COMMUNICATION
    class_iri = ns.COMMUNICATION


@dataclass(frozen=True)
class Derivation(EntityInfluence):
    """Transformation of an entity into another, optionally via the usage and
    generation that carried it out."""

    had_usage: Optional[RefOrValue[Usage]] = None
    had_generation: Optional[RefOrValue[Generation]] = None

    kind = Kind.DERIVATION
    class_iri = ns.DERIVATION

    _ref_fields = {
        **EntityInfluence._ref_fields,
        "had_usage": Kind.USAGE,
        "had_generation": Kind.GENERATION,
    }


@dataclass(frozen=True)
class PrimarySource(Derivation):
    kind = Kind.PRIMARY_SOURCE
    class_iri = ns.PRIMARY_SOURCE


@dataclass(frozen=True)
class Quotation(Derivation):
    kind = Kind.QUOTATION
    class_iri = ns.QUOTATION


@dataclass(frozen=True)
class Revision(Derivation):
    kind = Kind.REVISION
    class_iri = ns.REVISION


@dataclass(frozen=True)
class Attribution(AgentInfluence):
    kind = Kind.ATTRIBUTION
    class_iri = ns.ATTRIBUTION


@dataclass(frozen=True)
class Delegation(AgentInfluence):
    kind = Kind.DELEGATION
    class_iri = ns.DELEGATION


@dataclass(frozen=True)
class Association(AgentInfluence):
    """An agent's responsibility for an activity, optionally following a plan."""

    had_plan: Optional[RefOrValue[Plan]] = None

    kind = Kind.ASSOCIATION
    class_iri = ns.ASSOCIATION

    _ref_fields = {**AgentInfluence._ref_fields, "had_plan": Kind.PLAN}


__all__ = [
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
