"""Provenance objects: entities, activities, agents and their supporting nodes.

Every node is an immutable dataclass. Relation fields accept a bare
identifier, an object or an existing :class:`~provGraph.model.refs.RefOrValue`
/ :class:`~provGraph.model.refs.Referencable` and are normalised on
construction, so ``Entity(id=EX.e1, was_generated_by=EX.a1)`` and
``Entity(id=EX.e1, was_generated_by=Activity(id=EX.a1))`` are both valid.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Tuple

from rdflib.term import IdentifiedNode, Node, URIRef

from provGraph.errors import MissingRequiredFieldError
from provGraph.model.kinds import AgentType, Kind
from provGraph.model.refs import (
    RefOrValue,
    Referencable,
    as_ref_or_value,
    as_referencable,
)


@dataclass(frozen=True)
class Attribute:
    """A free-form ``(predicate, value)`` pair not covered by a PROV relation."""

    predicate: URIRef
    value: Node


def _attribute(item: Any) -> Attribute:
    if isinstance(item, Attribute):
        return item
    predicate, value = item
    return Attribute(predicate, value)


def _attributes(items: Iterable[Any]) -> Tuple[Attribute, ...]:
    # canonical order, so equality ignores the order statements arrived in
    return tuple(
        sorted(
            (_attribute(item) for item in items),
            key=lambda a: (a.predicate.n3(), a.value.n3()),
        )
    )


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ProvenanceObject:
    """Base of every typed provenance node."""

    id: IdentifiedNode
    attributes: Tuple[Attribute, ...] = ()

    kind = None

    # field name -> expected kind, per coercion flavour
    _ref_fields = {}
    _ref_seq_fields = {}
    _related_fields = {}
    _related_seq_fields = {}

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _attributes(self.attributes))
        # naive instants are read as UTC
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                object.__setattr__(self, f.name, _utc(value))
        for name, kind in self._ref_fields.items():
            target = getattr(self, name)
            if target is not None:
                object.__setattr__(self, name, as_ref_or_value(target, kind))
        for name, kind in self._ref_seq_fields.items():
            targets = tuple(as_ref_or_value(t, kind) for t in getattr(self, name))
            object.__setattr__(self, name, targets)
        for name, kind in self._related_fields.items():
            target = getattr(self, name)
            if target is not None:
                object.__setattr__(self, name, as_referencable(target, kind))
        for name, kind in self._related_seq_fields.items():
            targets = tuple(as_referencable(t, kind) for t in getattr(self, name))
            object.__setattr__(self, name, targets)

    @property
    def kind_iri(self) -> URIRef:
        return self.kind.iri

    def values(self, predicate: URIRef) -> Tuple[Node, ...]:
        """Return the values of every attribute using ``predicate``."""

        return tuple(a.value for a in self.attributes if a.predicate == predicate)


@dataclass(frozen=True)
class Role(ProvenanceObject):
    kind = Kind.ROLE


@dataclass(frozen=True)
class Location(ProvenanceObject):
    kind = Kind.LOCATION


@dataclass(frozen=True)
class Locatable(ProvenanceObject):
    """A provenance object that may have happened or be found somewhere."""

    at_location: Optional[RefOrValue[Location]] = None

    _ref_fields = {"at_location": Kind.LOCATION}


@dataclass(frozen=True)
class Entity(Locatable):
    """A thing, physical, digital or conceptual, with some fixed aspects."""

    generated_at_time: Optional[datetime] = None
    invalidated_at_time: Optional[datetime] = None
    was_attributed_to: Optional[Referencable] = None
    was_generated_by: Optional[Referencable] = None
    was_derived_from: Optional[Referencable] = None
    alternate_of: Optional[RefOrValue[Entity]] = None
    specialization_of: Optional[RefOrValue[Entity]] = None
    had_primary_source: Optional[Referencable] = None
    was_invalidated_by: Optional[Referencable] = None
    was_quoted_from: Optional[Referencable] = None
    was_revision_of: Optional[Referencable] = None

    kind = Kind.ENTITY

    _ref_fields = {
        **Locatable._ref_fields,
        "alternate_of": Kind.ENTITY,
        "specialization_of": Kind.ENTITY,
    }
    _related_fields = {
        "was_attributed_to": Kind.AGENT,
        "was_generated_by": Kind.ACTIVITY,
        "was_derived_from": Kind.ENTITY,
        "had_primary_source": Kind.ENTITY,
        "was_invalidated_by": Kind.ACTIVITY,
        "was_quoted_from": Kind.ENTITY,
        "was_revision_of": Kind.ENTITY,
    }


@dataclass(frozen=True)
class Plan(Entity):
    kind = Kind.PLAN


@dataclass(frozen=True)
class Collection(Entity):
    """An entity that groups other entities."""

    had_members: Tuple[RefOrValue[Entity], ...] = ()

    kind = Kind.COLLECTION

    _ref_seq_fields = {"had_members": Kind.ENTITY}

    @property
    def is_empty(self) -> bool:
        return not self.had_members


@dataclass(frozen=True)
class Activity(Locatable):
    """Something that occurs over a period of time and acts upon entities."""

    started_at_time: Optional[datetime] = None
    ended_at_time: Optional[datetime] = None
    generated: Optional[RefOrValue[Entity]] = None
    invalidated: Tuple[RefOrValue[Entity], ...] = ()
    was_started_by: Optional[Referencable] = None
    was_ended_by: Optional[Referencable] = None
    was_associated_with: Tuple[Referencable, ...] = ()
    used: Tuple[Referencable, ...] = ()
    was_informed_by: Tuple[Referencable, ...] = ()

    kind = Kind.ACTIVITY

    _ref_fields = {**Locatable._ref_fields, "generated": Kind.ENTITY}
    _ref_seq_fields = {"invalidated": Kind.ENTITY}
    _related_fields = {"was_started_by": Kind.ENTITY, "was_ended_by": Kind.ENTITY}
    _related_seq_fields = {
        "was_associated_with": Kind.AGENT,
        "used": Kind.ENTITY,
        "was_informed_by": Kind.ACTIVITY,
    }


@dataclass(frozen=True)
class Agent(Locatable):
    """Something bearing responsibility for an activity or an entity."""

    agent_type: AgentType = AgentType.AGENT
    acted_on_behalf_of: Tuple[Referencable, ...] = ()

    kind = Kind.AGENT

    _related_seq_fields = {"acted_on_behalf_of": Kind.AGENT}


@dataclass(frozen=True)
class NonProvenance:
    """A resource outside PROV, typed by an arbitrary class IRI."""

    id: IdentifiedNode
    type_iri: URIRef
    attributes: Tuple[Attribute, ...] = ()

    kind = Kind.NON_PROVENANCE

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _attributes(self.attributes))

    @property
    def kind_iri(self) -> URIRef:
        return self.type_iri

    def values(self, predicate: URIRef) -> Tuple[Node, ...]:
        return tuple(a.value for a in self.attributes if a.predicate == predicate)


@dataclass(frozen=True)
class Link:
    """States that ``subject`` is described as ``mention_of`` in another bundle."""

    subject: Optional[RefOrValue] = None
    mention_of: Optional[URIRef] = None
    as_in_bundle: Optional[RefOrValue[Bundle]] = None

    def __post_init__(self) -> None:
        for name in ("subject", "mention_of", "as_in_bundle"):
            if getattr(self, name) is None:
                raise MissingRequiredFieldError(f"A link requires its '{name}'")
        object.__setattr__(self, "subject", as_ref_or_value(self.subject))
        object.__setattr__(
            self, "as_in_bundle", as_ref_or_value(self.as_in_bundle, Kind.BUNDLE)
        )


def _link_key(link: Link) -> Tuple[str, str, str]:
    return (link.subject.id.n3(), link.mention_of.n3(), link.as_in_bundle.id.n3())


@dataclass(frozen=True)
class Bundle(Entity):
    """A named set of provenance descriptions, itself an entity.

    ``items`` holds the bundle's direct members either as objects or as
    references; ``links`` connect members to their descriptions in other
    bundles.
    """

    items: Tuple[RefOrValue, ...] = ()
    links: Tuple[Link, ...] = ()

    kind = Kind.BUNDLE

    _ref_seq_fields = {"items": None}

    def __post_init__(self) -> None:
        super().__post_init__()
        # canonical order, as for attributes
        object.__setattr__(
            self, "items", tuple(sorted(self.items, key=lambda i: (i.id.n3(), i.variant.value)))
        )
        object.__setattr__(self, "links", tuple(sorted(self.links, key=_link_key)))

    def bundle_includes(self) -> int:
        """Count every bundle reachable through ``links``.

        Each link adds one; a materialized target adds its own count too.
        """

        count = 0
        for link in self.links:
            count += 1
            if not link.as_in_bundle.is_ref:
                count += link.as_in_bundle.about().bundle_includes()
        return count


__all__ = [
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
]
