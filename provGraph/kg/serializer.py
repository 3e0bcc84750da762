"""Write provenance bundles as context-scoped statements."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Set, Tuple

from rdflib.term import IdentifiedNode, Node, URIRef

from provGraph import namespaces as ns
from provGraph.model import (
    Activity,
    Agent,
    Association,
    Attribute,
    Bundle,
    Collection,
    Derivation,
    Entity,
    Influence,
    Link,
    Locatable,
    Location,
    NonProvenance,
    Plan,
    RefOrValue,
    Referencable,
    Role,
)
from .store import StatementSink, StatementWriter
from .timestamps import to_literal
from .visitor import GraphVisitor

logger = logging.getLogger(__name__)


class GraphSerializer(GraphVisitor):
    """Emit every object of a bundle into the context of the bundle holding it.

    Relations that have a qualified form are written both ways when a
    qualification is present: the plain predicate to the influencer and the
    qualified predicate to the influence node.
    """

    def __init__(self, writer: StatementWriter) -> None:
        super().__init__()
        self.writer = writer
        self._written: Set[Tuple[IdentifiedNode, URIRef, Node, IdentifiedNode]] = set()

    def _add(self, subject: IdentifiedNode, predicate: URIRef, obj: Node) -> None:
        if predicate in ns.PRIVATE_PROPERTIES:
            logger.debug("Skipping private property %s on %s", predicate, subject)
            return
        quad = (subject, predicate, obj, self.current_bundle.id)
        if quad in self._written:
            return
        self._written.add(quad)
        self.writer.add(*quad)

    @property
    def count(self) -> int:
        """Number of distinct statements written so far."""

        return len(self._written)

    def _add_type(self, subject: IdentifiedNode, type_iri: URIRef) -> None:
        self._add(subject, ns.RDF.type, type_iri)

    def _add_attributes(self, subject: IdentifiedNode, attributes: Iterable[Attribute]) -> None:
        for attr in attributes:
            self._add(subject, attr.predicate, attr.value)

    def _add_object(self, node) -> IdentifiedNode:
        self._add_type(node.id, node.kind_iri)
        self._add_attributes(node.id, node.attributes)
        return node.id

    def _add_target(self, target: RefOrValue | Referencable) -> IdentifiedNode:
        if target.is_ref:
            self._add_type(target.id, target.kind_iri)
            return target.id
        if isinstance(target, Referencable) and target.is_qualified:
            return self._add_object(target.qualification())
        return self._add_object(target.about())

    def _add_time(self, subject: IdentifiedNode, predicate: URIRef, instant: Optional[datetime]) -> None:
        if instant is not None:
            self._add(subject, predicate, to_literal(instant))

    def _add_ref(self, subject: IdentifiedNode, predicate: URIRef, target: RefOrValue) -> None:
        self._add(subject, predicate, target.id)
        self._add_target(target)

    def _add_related(self, subject: IdentifiedNode, predicate: URIRef, target: Referencable) -> None:
        if target.is_qualified:
            self._add(subject, predicate, target.to_ref().id)
            self._add(subject, ns.QUALIFICATIONS[predicate], self._add_target(target))
        else:
            self._add(subject, predicate, self._add_target(target))

    def _add_entity(self, entity: Entity) -> None:
        self._add_object(entity)
        self._add_time(entity.id, ns.GENERATED_AT_TIME, entity.generated_at_time)
        self._add_time(entity.id, ns.INVALIDATED_AT_TIME, entity.invalidated_at_time)

    # objects
    def on_bundle(self, bundle: Bundle) -> None:
        logger.debug("Serializing bundle %s", bundle.id)
        self._add_entity(bundle)

    def on_entity(self, entity: Entity) -> None:
        self._add_entity(entity)

    def on_plan(self, plan: Plan) -> None:
        self._add_entity(plan)

    def on_collection(self, collection: Collection) -> None:
        self._add_entity(collection)
        if collection.is_empty:
            self._add_type(collection.id, ns.EMPTY_COLLECTION)

    def on_activity(self, activity: Activity) -> None:
        self._add_object(activity)
        self._add_time(activity.id, ns.STARTED_AT_TIME, activity.started_at_time)
        self._add_time(activity.id, ns.ENDED_AT_TIME, activity.ended_at_time)

    def on_agent(self, agent: Agent) -> None:
        self._add_object(agent)
        self._add_type(agent.id, agent.agent_type.iri)

    def on_role(self, role: Role) -> None:
        self._add_object(role)

    def on_location(self, location: Location) -> None:
        self._add_object(location)

    def on_non_provenance(self, node: NonProvenance) -> None:
        self._add_object(node)

    # references
    def on_bundle_ref(self, node_id: IdentifiedNode) -> None:
        self._add_type(node_id, ns.BUNDLE)

    def on_entity_ref(self, node_id: IdentifiedNode) -> None:
        self._add_type(node_id, ns.ENTITY)

    def on_plan_ref(self, node_id: IdentifiedNode) -> None:
        self._add_type(node_id, ns.PLAN)

    def on_collection_ref(self, node_id: IdentifiedNode) -> None:
        self._add_type(node_id, ns.COLLECTION)

    def on_activity_ref(self, node_id: IdentifiedNode) -> None:
        self._add_type(node_id, ns.ACTIVITY)

    def on_agent_ref(self, node_id: IdentifiedNode) -> None:
        self._add_type(node_id, ns.AGENT)

    def on_role_ref(self, node_id: IdentifiedNode) -> None:
        self._add_type(node_id, ns.ROLE)

    def on_location_ref(self, node_id: IdentifiedNode) -> None:
        self._add_type(node_id, ns.LOCATION)

    # structure
    def on_link(self, bundle: Bundle, link: Link) -> None:
        subject = link.subject.id
        self._add(subject, ns.MENTION_OF, link.mention_of)
        self._add(subject, ns.AS_IN_BUNDLE, link.as_in_bundle.id)

    def on_member(self, collection: Collection, member: RefOrValue) -> None:
        self._add_ref(collection.id, ns.HAD_MEMBER, member)

    def on_at_location(self, node: Locatable, location: RefOrValue) -> None:
        self._add_ref(node.id, ns.AT_LOCATION, location)

    # entity relations
    def on_specialization(self, entity: Entity, target: RefOrValue) -> None:
        self._add(entity.id, ns.SPECIALIZATION_OF, target.id)

    def on_alternate(self, entity: Entity, target: RefOrValue) -> None:
        self._add(entity.id, ns.ALTERNATE_OF, target.id)

    def on_attribution(self, entity: Entity, target: Referencable) -> None:
        self._add_related(entity.id, ns.WAS_ATTRIBUTED_TO, target)

    def on_generation(self, entity: Entity, target: Referencable) -> None:
        self._add_related(entity.id, ns.WAS_GENERATED_BY, target)

    def on_derivation(self, entity: Entity, target: Referencable) -> None:
        self._add_related(entity.id, ns.WAS_DERIVED_FROM, target)

    def on_primary_source(self, entity: Entity, target: Referencable) -> None:
        self._add_related(entity.id, ns.HAD_PRIMARY_SOURCE, target)

    def on_invalidation(self, entity: Entity, target: Referencable) -> None:
        self._add_related(entity.id, ns.WAS_INVALIDATED_BY, target)

    def on_quotation(self, entity: Entity, target: Referencable) -> None:
        self._add_related(entity.id, ns.WAS_QUOTED_FROM, target)

    def on_revision(self, entity: Entity, target: Referencable) -> None:
        self._add_related(entity.id, ns.WAS_REVISION_OF, target)

    # activity relations
    def on_generated(self, activity: Activity, target: RefOrValue) -> None:
        self._add_ref(activity.id, ns.GENERATED, target)

    def on_start(self, activity: Activity, target: Referencable) -> None:
        self._add_related(activity.id, ns.WAS_STARTED_BY, target)

    def on_end(self, activity: Activity, target: Referencable) -> None:
        self._add_related(activity.id, ns.WAS_ENDED_BY, target)

    def on_association(self, activity: Activity, target: Referencable) -> None:
        self._add_related(activity.id, ns.WAS_ASSOCIATED_WITH, target)

    def on_usage(self, activity: Activity, target: Referencable) -> None:
        self._add_related(activity.id, ns.USED, target)

    def on_communication(self, activity: Activity, target: Referencable) -> None:
        self._add_related(activity.id, ns.WAS_INFORMED_BY, target)

    def on_invalidated(self, activity: Activity, target: RefOrValue) -> None:
        self._add_ref(activity.id, ns.INVALIDATED, target)

    def on_delegation(self, agent: Agent, target: Referencable) -> None:
        self._add_related(agent.id, ns.ACTED_ON_BEHALF_OF, target)

    # qualifications
    def on_influence(self, influence: Influence, influencer: RefOrValue) -> None:
        self._add_object(influence)
        self._add_target(influencer)
        self._add(influence.id, influence.influencer_predicate, influencer.id)

    def on_influence_role(self, influence: Influence, role: RefOrValue) -> None:
        self._add(influence.id, ns.HAD_ROLE, role.id)

    def on_influence_activity(self, influence: Influence, activity: RefOrValue) -> None:
        self._add(influence.id, ns.HAD_ACTIVITY, activity.id)

    def on_event(self, event: Influence, instant: datetime) -> None:
        self._add_time(event.id, ns.AT_TIME, instant)

    def on_derivation_usage(self, derivation: Derivation, usage: RefOrValue) -> None:
        self._add(derivation.id, ns.HAD_USAGE, usage.id)

    def on_derivation_generation(self, derivation: Derivation, generation: RefOrValue) -> None:
        self._add(derivation.id, ns.HAD_GENERATION, generation.id)

    def on_association_plan(self, association: Association, plan: RefOrValue) -> None:
        self._add(association.id, ns.HAD_PLAN, plan.id)


def add_to_graph(bundle: Bundle, sink: StatementSink) -> int:
    """Serialize ``bundle`` into ``sink`` inside a single transaction.

    Returns the number of statements emitted. Nothing is committed if any
    part of the bundle fails to serialize.
    """

    with sink.transaction() as writer:
        serializer = GraphSerializer(writer)
        serializer.scan(bundle)
    logger.info("Serialized bundle %s as %d statements", bundle.id, serializer.count)
    return serializer.count


__all__ = ["GraphSerializer", "add_to_graph"]
