"""Depth-first traversal of a provenance bundle with overridable handlers.

Subclass :class:`GraphVisitor` and override the ``on_*`` methods of interest;
every handler defaults to doing nothing. Traversal order is fixed so that a
consumer sees the same sequence of calls for the same graph.

Pure references are not reported when met. Each bundle scope remembers them
and, when the scope closes, reports through the ``on_*_ref`` handlers only
those whose identifier was never visited by value within the scope.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from rdflib.term import IdentifiedNode

from provGraph.errors import TypeMismatchError
from provGraph.model import (
    Activity,
    ActivityInfluence,
    Agent,
    Association,
    Bundle,
    Collection,
    Derivation,
    Entity,
    Influence,
    InstantaneousEvent,
    Kind,
    Link,
    Locatable,
    Location,
    NonProvenance,
    Plan,
    ProvenanceObject,
    RefOrValue,
    Referencable,
    Role,
)


@dataclass
class _Scope:
    bundle: Bundle
    objects: Set[Any] = field(default_factory=set)
    value_ids: Set[IdentifiedNode] = field(default_factory=set)
    kinds: Dict[IdentifiedNode, Kind] = field(default_factory=dict)
    refs: Dict[IdentifiedNode, RefOrValue] = field(default_factory=dict)

    def check_kind(self, node_id: IdentifiedNode, kind: Kind) -> None:
        seen = self.kinds.setdefault(node_id, kind)
        if not seen.compatible_with(kind):
            raise TypeMismatchError(
                f"'{node_id}' is used both as a {seen.value} and as a {kind.value}",
                subject=node_id,
            )

    def unresolved(self) -> List[RefOrValue]:
        return [r for node_id, r in self.refs.items() if node_id not in self.value_ids]


class GraphVisitor:
    """Walks a :class:`~provGraph.model.Bundle` and its linked bundles."""

    def __init__(self) -> None:
        self._scopes: List[_Scope] = []

    # -- handlers: objects seen by value ---------------------------------
    def on_bundle(self, bundle: Bundle) -> None:
        pass

    def on_entity(self, entity: Entity) -> None:
        pass

    def on_plan(self, plan: Plan) -> None:
        pass

    def on_collection(self, collection: Collection) -> None:
        pass

    def on_activity(self, activity: Activity) -> None:
        pass

    def on_agent(self, agent: Agent) -> None:
        pass

    def on_role(self, role: Role) -> None:
        pass

    def on_location(self, location: Location) -> None:
        pass

    def on_non_provenance(self, node: NonProvenance) -> None:
        pass

    # -- handlers: objects only ever seen by reference -------------------
    def on_bundle_ref(self, node_id: IdentifiedNode) -> None:
        pass

    def on_entity_ref(self, node_id: IdentifiedNode) -> None:
        pass

    def on_plan_ref(self, node_id: IdentifiedNode) -> None:
        pass

    def on_collection_ref(self, node_id: IdentifiedNode) -> None:
        pass

    def on_activity_ref(self, node_id: IdentifiedNode) -> None:
        pass

    def on_agent_ref(self, node_id: IdentifiedNode) -> None:
        pass

    def on_role_ref(self, node_id: IdentifiedNode) -> None:
        pass

    def on_location_ref(self, node_id: IdentifiedNode) -> None:
        pass

    # -- handlers: bundle structure ---------------------------------------
    def on_bundle_item(self, bundle: Bundle, item: RefOrValue) -> None:
        pass

    def on_link(self, bundle: Bundle, link: Link) -> None:
        pass

    def on_member(self, collection: Collection, member: RefOrValue) -> None:
        pass

    def on_at_location(self, node: Locatable, location: RefOrValue) -> None:
        pass

    # -- handlers: entity relations ---------------------------------------
    def on_specialization(self, entity: Entity, target: RefOrValue) -> None:
        pass

    def on_alternate(self, entity: Entity, target: RefOrValue) -> None:
        pass

    def on_attribution(self, entity: Entity, target: Referencable) -> None:
        pass

    def on_generation(self, entity: Entity, target: Referencable) -> None:
        pass

    def on_derivation(self, entity: Entity, target: Referencable) -> None:
        pass

    def on_primary_source(self, entity: Entity, target: Referencable) -> None:
        pass

    def on_invalidation(self, entity: Entity, target: Referencable) -> None:
        pass

    def on_quotation(self, entity: Entity, target: Referencable) -> None:
        pass

    def on_revision(self, entity: Entity, target: Referencable) -> None:
        pass

    # -- handlers: activity relations -------------------------------------
    def on_generated(self, activity: Activity, target: RefOrValue) -> None:
        pass

    def on_start(self, activity: Activity, target: Referencable) -> None:
        pass

    def on_end(self, activity: Activity, target: Referencable) -> None:
        pass

    def on_association(self, activity: Activity, target: Referencable) -> None:
        pass

    def on_usage(self, activity: Activity, target: Referencable) -> None:
        pass

    def on_communication(self, activity: Activity, target: Referencable) -> None:
        pass

    def on_invalidated(self, activity: Activity, target: RefOrValue) -> None:
        pass

    # -- handlers: agent relations ----------------------------------------
    def on_delegation(self, agent: Agent, target: Referencable) -> None:
        pass

    # -- handlers: qualifications -----------------------------------------
    def on_influence(self, influence: Influence, influencer: RefOrValue) -> None:
        pass

    def on_influence_role(self, influence: Influence, role: RefOrValue) -> None:
        pass

    def on_influence_activity(self, influence: Influence, activity: RefOrValue) -> None:
        pass

    def on_event(self, event: Influence, instant: datetime) -> None:
        pass

    def on_derivation_usage(self, derivation: Derivation, usage: RefOrValue) -> None:
        pass

    def on_derivation_generation(
        self, derivation: Derivation, generation: RefOrValue
    ) -> None:
        pass

    def on_association_plan(self, association: Association, plan: RefOrValue) -> None:
        pass

    # -- traversal ----------------------------------------------------------
    @property
    def current_bundle(self) -> Bundle:
        """The bundle whose scope is open."""

        return self._scopes[-1].bundle

    def scan(self, bundle: Bundle) -> None:
        """Visit ``bundle``, its items and every materialized linked bundle."""

        self._visit_entity(bundle)

    def visit(self, item: Any) -> None:
        if isinstance(item, RefOrValue):
            self._visit_ref(item)
        elif isinstance(item, Referencable):
            self._visit_referencable(item)
        elif isinstance(item, NonProvenance):
            if self._first_visit(item):
                self.on_non_provenance(item)
        elif isinstance(item, ProvenanceObject):
            if not self._first_visit(item):
                return
            if isinstance(item, Influence):
                self._visit_influence(item)
            elif isinstance(item, Role):
                self.on_role(item)
            elif isinstance(item, Location):
                self.on_location(item)
            elif isinstance(item, Entity):
                self._visit_entity(item)
            elif isinstance(item, Activity):
                self._visit_activity(item)
            elif isinstance(item, Agent):
                self._visit_agent(item)

    def _first_visit(self, item: Any) -> bool:
        scope = self._scopes[-1]
        if item in scope.objects:
            return False
        if item.kind is not Kind.NON_PROVENANCE:
            scope.check_kind(item.id, item.kind)
            scope.value_ids.add(item.id)
            scope.refs.pop(item.id, None)
        scope.objects.add(item)
        return True

    def _visit_ref(self, item: RefOrValue) -> None:
        if not item.is_ref:
            self.visit(item.about())
            return
        scope = self._scopes[-1]
        scope.check_kind(item.id, item.kind)
        if item.id not in scope.value_ids:
            scope.refs[item.id] = item

    def _visit_referencable(self, item: Referencable) -> None:
        if item.is_ref:
            self._visit_ref(item.to_ref())
        elif item.is_qualified:
            self.visit(item.qualification())
        else:
            self.visit(item.about())

    def _relation(
        self, handler: Callable[[Any, Any], None], node: Any, target: Optional[Any]
    ) -> None:
        if target is not None:
            handler(node, target)
            self.visit(target)

    def _relations(self, handler: Callable[[Any, Any], None], node: Any, targets) -> None:
        for target in targets:
            self._relation(handler, node, target)

    def _visit_influence(self, influence: Influence) -> None:
        influencer = influence.influencer()
        self.on_influence(influence, influencer)
        self.visit(influencer)
        self._relation(self.on_at_location, influence, influence.at_location)
        self._relation(self.on_influence_role, influence, influence.had_role)
        if not isinstance(influence, ActivityInfluence):
            self._relation(self.on_influence_activity, influence, influence.had_activity)
        if isinstance(influence, InstantaneousEvent) and influence.at_time is not None:
            self.on_event(influence, influence.at_time)
        if isinstance(influence, Derivation):
            self._relation(self.on_derivation_usage, influence, influence.had_usage)
            self._relation(
                self.on_derivation_generation, influence, influence.had_generation
            )
        elif isinstance(influence, Association):
            self._relation(self.on_association_plan, influence, influence.had_plan)

    def _visit_entity(self, entity: Entity) -> None:
        if isinstance(entity, Bundle):
            self._open_scope(entity)
            self.on_bundle(entity)
        elif isinstance(entity, Plan):
            self.on_plan(entity)
        elif isinstance(entity, Collection):
            self.on_collection(entity)
        else:
            self.on_entity(entity)
        self._relation(self.on_at_location, entity, entity.at_location)

        self._relation(self.on_specialization, entity, entity.specialization_of)
        self._relation(self.on_alternate, entity, entity.alternate_of)
        self._relation(self.on_attribution, entity, entity.was_attributed_to)
        self._relation(self.on_generation, entity, entity.was_generated_by)
        self._relation(self.on_derivation, entity, entity.was_derived_from)
        self._relation(self.on_primary_source, entity, entity.had_primary_source)
        self._relation(self.on_invalidation, entity, entity.was_invalidated_by)
        self._relation(self.on_quotation, entity, entity.was_quoted_from)
        self._relation(self.on_revision, entity, entity.was_revision_of)

        if isinstance(entity, Collection):
            self._relations(self.on_member, entity, entity.had_members)
        elif isinstance(entity, Bundle):
            self._relations(self.on_bundle_item, entity, entity.items)
            for link in entity.links:
                self.visit(link.subject)
                self.on_link(entity, link)
                if not link.as_in_bundle.is_ref:
                    self._visit_entity(link.as_in_bundle.about())
            self._close_scope()

    def _visit_activity(self, activity: Activity) -> None:
        self.on_activity(activity)
        self._relation(self.on_at_location, activity, activity.at_location)
        self._relation(self.on_generated, activity, activity.generated)
        self._relation(self.on_start, activity, activity.was_started_by)
        self._relation(self.on_end, activity, activity.was_ended_by)
        self._relations(self.on_association, activity, activity.was_associated_with)
        self._relations(self.on_usage, activity, activity.used)
        self._relations(self.on_communication, activity, activity.was_informed_by)
        self._relations(self.on_invalidated, activity, activity.invalidated)

    def _visit_agent(self, agent: Agent) -> None:
        self.on_agent(agent)
        self._relation(self.on_at_location, agent, agent.at_location)
        self._relations(self.on_delegation, agent, agent.acted_on_behalf_of)

    def _open_scope(self, bundle: Bundle) -> None:
        scope = _Scope(bundle)
        scope.objects.add(bundle)
        scope.value_ids.add(bundle.id)
        scope.kinds[bundle.id] = bundle.kind
        self._scopes.append(scope)

    def _close_scope(self) -> None:
        # the scope stays current while the reference handlers run
        for item in self._scopes[-1].unresolved():
            self._on_ref(item)
        self._scopes.pop()

    def _on_ref(self, item: RefOrValue) -> None:
        handler = {
            Kind.BUNDLE: self.on_bundle_ref,
            Kind.ENTITY: self.on_entity_ref,
            Kind.PLAN: self.on_plan_ref,
            Kind.COLLECTION: self.on_collection_ref,
            Kind.ACTIVITY: self.on_activity_ref,
            Kind.AGENT: self.on_agent_ref,
            Kind.ROLE: self.on_role_ref,
            Kind.LOCATION: self.on_location_ref,
        }.get(item.kind)
        if handler is not None:
            handler(item.id)


__all__ = ["GraphVisitor"]
