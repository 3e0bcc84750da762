"""Rebuild a typed provenance bundle from the statements of its context.

The builder reads one context at a time. Every subject carrying a PROV class
becomes an item of the bundle; subjects with nothing but their type become
references. Relations that have a qualified form resolve the qualifications
first and then drop any plain statement naming an influencer already
covered, so a single logical edge never appears twice.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Type

from rdflib import Graph, Literal
from rdflib.term import IdentifiedNode, Node, URIRef

from provGraph import namespaces as ns
from provGraph.errors import (
    AmbiguousTypeError,
    ContextMismatchError,
    CyclicBundleError,
    EmptyDatasetError,
    MissingRequiredFieldError,
    TypeMismatchError,
    UnrecognizedTypeError,
)
from provGraph.model import (
    Activity,
    ActivityInfluence,
    Agent,
    AgentType,
    Association,
    Attribute,
    Attribution,
    Bundle,
    Collection,
    Communication,
    Delegation,
    Derivation,
    End,
    Entity,
    Generation,
    Influence,
    InstantaneousEvent,
    Invalidation,
    Kind,
    Link,
    Location,
    NonProvenance,
    Plan,
    PrimarySource,
    Quotation,
    RefOrValue,
    Referencable,
    Revision,
    Role,
    Start,
    Usage,
)
from provGraph.model.refs import as_referencable
from .store import StatementSource
from .timestamps import to_instant

logger = logging.getLogger(__name__)

# Most specific classes first so a Person is never demoted to a plain Agent.
_CLASSIFICATION: Tuple[Tuple[URIRef, Kind], ...] = (
    (ns.ACTIVITY, Kind.ACTIVITY),
    (ns.PERSON, Kind.AGENT),
    (ns.ORGANIZATION, Kind.AGENT),
    (ns.SOFTWARE_AGENT, Kind.AGENT),
    (ns.AGENT, Kind.AGENT),
    (ns.PLAN, Kind.PLAN),
    (ns.COLLECTION, Kind.COLLECTION),
    (ns.EMPTY_COLLECTION, Kind.COLLECTION),
    (ns.ENTITY, Kind.ENTITY),
    (ns.LOCATION, Kind.LOCATION),
    (ns.ROLE, Kind.ROLE),
)

_DECLARED = _CLASSIFICATION[:-3] + ((ns.BUNDLE, Kind.BUNDLE),) + _CLASSIFICATION[-3:]

_AGENT_TYPES = (AgentType.PERSON, AgentType.ORGANIZATION, AgentType.SOFTWARE)

# Dropped from a link subject's types before it must be down to one.
_SUBCLASSES = frozenset(
    {
        ns.ORGANIZATION,
        ns.SOFTWARE_AGENT,
        ns.PERSON,
        ns.PLAN,
        ns.COLLECTION,
        ns.EMPTY_COLLECTION,
    }
)

_ENTITY_RELATIONS: Tuple[Tuple[str, URIRef, Type[Influence]], ...] = (
    ("was_attributed_to", ns.WAS_ATTRIBUTED_TO, Attribution),
    ("was_generated_by", ns.WAS_GENERATED_BY, Generation),
    ("was_derived_from", ns.WAS_DERIVED_FROM, Derivation),
    ("had_primary_source", ns.HAD_PRIMARY_SOURCE, PrimarySource),
    ("was_invalidated_by", ns.WAS_INVALIDATED_BY, Invalidation),
    ("was_quoted_from", ns.WAS_QUOTED_FROM, Quotation),
    ("was_revision_of", ns.WAS_REVISION_OF, Revision),
)

_ACTIVITY_RELATIONS: Tuple[Tuple[str, URIRef, Type[Influence]], ...] = (
    ("was_started_by", ns.WAS_STARTED_BY, Start),
    ("was_ended_by", ns.WAS_ENDED_BY, End),
)

_ACTIVITY_SEQUENCES: Tuple[Tuple[str, URIRef, Type[Influence]], ...] = (
    ("was_associated_with", ns.WAS_ASSOCIATED_WITH, Association),
    ("used", ns.USED, Usage),
    ("was_informed_by", ns.WAS_INFORMED_BY, Communication),
)

_ITEM_KINDS = frozenset(
    {Kind.ENTITY, Kind.PLAN, Kind.COLLECTION, Kind.ACTIVITY, Kind.AGENT}
)


def _n3(node: Node) -> str:
    return node.n3()


def _sorted(nodes: Iterable[Node]) -> List[Node]:
    return sorted(nodes, key=_n3)


def _first(values: List[Any]) -> Optional[Any]:
    return values[0] if values else None


def _local(predicate: URIRef) -> str:
    return str(predicate).rsplit("#", 1)[-1]


class GraphBuilder:
    """Build the bundle stored in context ``bundle_id`` of ``source``.

    ``follow_links`` controls whether bundles named by ``prov:asInBundle``
    are built too; ``None`` follows them only when the starting context has
    any such statement. ``chain`` holds the bundles already being built
    further up a chain of links.
    """

    def __init__(
        self,
        bundle_id: IdentifiedNode,
        source: StatementSource,
        *,
        follow_links: Optional[bool] = None,
        chain: Tuple[IdentifiedNode, ...] = (),
    ) -> None:
        self.bundle_id = bundle_id
        self.source = source
        self._chain = chain + (bundle_id,)
        self._quads = source.statements(bundle_id)
        logger.debug("Fetched %d statements for %s", len(self._quads), bundle_id)
        self.graph = Graph()
        for s, p, o, _ in self._quads:
            self.graph.add((s, p, o))
        if follow_links is None:
            follow_links = any(p == ns.AS_IN_BUNDLE for _, p, _, _ in self._quads)
        self.follow_links = follow_links

        self._tracked: Dict[IdentifiedNode, Any] = {}
        self._building: Dict[IdentifiedNode, Kind] = {}
        self._refs: Dict[IdentifiedNode, Kind] = {}
        self._items: List[RefOrValue] = []
        self._item_ids: Set[IdentifiedNode] = set()

    def build(self) -> Bundle:
        if not self._quads:
            raise EmptyDatasetError(
                f"No statements found for the bundle '{self.bundle_id}'",
                subject=self.bundle_id,
            )
        declaration = (self.bundle_id, ns.RDF.type, ns.BUNDLE, self.bundle_id)
        if not any(quad == declaration for quad in self._quads):
            raise ContextMismatchError(
                f"There is no bundle in this context with the same id: {self.bundle_id}",
                subject=self.bundle_id,
            )
        self._check_classes()

        with self._constructing(self.bundle_id, Kind.BUNDLE):
            fields = self._entity_fields(self.bundle_id)
            self._classify()
            self._add_references()
            self._add_non_provenance()
            links = self._links()

        bundle = Bundle(items=tuple(self._items), links=tuple(links), **fields)
        logger.info(
            "Built bundle %s with %d items and %d links",
            self.bundle_id,
            len(bundle.items),
            len(bundle.links),
        )
        return bundle

    # -- graph access -------------------------------------------------------
    def _objects(self, node_id: IdentifiedNode, predicate: URIRef) -> List[Node]:
        return _sorted(self.graph.objects(node_id, predicate))

    def _resources(self, node_id: IdentifiedNode, predicate: URIRef) -> List[IdentifiedNode]:
        targets = self._objects(node_id, predicate)
        for target in targets:
            if not isinstance(target, IdentifiedNode):
                raise TypeMismatchError(
                    f"Object of '{node_id}' for property '{_local(predicate)}' is not a resource",
                    subject=node_id,
                    predicate=predicate,
                )
        return targets

    def _types(self, node_id: IdentifiedNode) -> Set[Node]:
        return set(self.graph.objects(node_id, ns.RDF.type))

    def _declared_kind(self, node_id: IdentifiedNode) -> Optional[Kind]:
        types = self._types(node_id)
        kinds = [kind for type_iri, kind in _DECLARED if type_iri in types]
        for other in kinds[1:]:
            if not other.compatible_with(kinds[0]):
                raise TypeMismatchError(
                    f"'{node_id}' is declared both as {kinds[0].value} and as {other.value}",
                    subject=node_id,
                    predicate=ns.RDF.type,
                )
        return kinds[0] if kinds else None

    def _attributed(self, node_id: IdentifiedNode) -> bool:
        """Whether ``node_id`` says anything beyond its PROV classes."""

        for predicate, obj in self.graph.predicate_objects(node_id):
            if predicate != ns.RDF.type or not ns.in_prov_namespace(obj):
                return True
        return False

    def _attributes(self, node_id: IdentifiedNode) -> Tuple[Attribute, ...]:
        attributes = []
        for predicate, obj in self.graph.predicate_objects(node_id):
            if predicate == ns.RDF.type:
                if not ns.in_prov_namespace(obj):
                    attributes.append(Attribute(predicate, obj))
            elif not ns.in_prov_namespace(predicate):
                attributes.append(Attribute(predicate, obj))
        return tuple(attributes)

    def _instant(self, node_id: IdentifiedNode, predicate: URIRef):
        literal = _first(self._objects(node_id, predicate))
        if literal is None:
            return None
        if not isinstance(literal, Literal):
            raise TypeMismatchError(
                f"Object of '{node_id}' for property '{_local(predicate)}' is not a literal",
                subject=node_id,
                predicate=predicate,
            )
        try:
            return to_instant(literal)
        except ValueError as exc:
            raise TypeMismatchError(
                f"Object of '{node_id}' for property '{_local(predicate)}' is not a timestamp: {exc}",
                subject=node_id,
                predicate=predicate,
            ) from exc

    def _check_classes(self) -> None:
        for subject, type_iri in self.graph.subject_objects(ns.RDF.type):
            if ns.in_prov_namespace(type_iri) and type_iri not in ns.KNOWN_CLASSES:
                raise UnrecognizedTypeError(
                    f"'{subject}' of type '{_local(type_iri)}' not recognized",
                    subject=subject,
                    predicate=ns.RDF.type,
                )

    # -- binding ------------------------------------------------------------
    @contextmanager
    def _constructing(self, node_id: IdentifiedNode, kind: Kind) -> Iterator[None]:
        self._building[node_id] = kind
        try:
            yield
        finally:
            del self._building[node_id]

    @staticmethod
    def _check(node_id: IdentifiedNode, found: Kind, expected: Kind) -> None:
        if not found.compatible_with(expected):
            raise TypeMismatchError(
                f"Found object '{node_id}' as a {found.value} where a {expected.value} was expected",
                subject=node_id,
            )

    def _add_item(self, item: RefOrValue) -> None:
        if item.id in self._item_ids or item.id == self.bundle_id:
            return
        self._item_ids.add(item.id)
        self._items.append(item)

    def _bind(self, node_id: IdentifiedNode, kind: Kind) -> RefOrValue:
        """Resolve ``node_id`` to an object, building it on first sight.

        A node still under construction further up the stack is returned as
        a reference.
        """

        tracked = self._tracked.get(node_id)
        if tracked is not None:
            self._check(node_id, tracked.kind, kind)
            return RefOrValue.of(tracked)
        if node_id in self._building:
            building = self._building[node_id]
            self._check(node_id, building, kind)
            return RefOrValue.reference(node_id, building)

        declared = self._declared_kind(node_id) or kind
        self._check(node_id, declared, kind)
        if declared is Kind.BUNDLE or not self._attributed(node_id):
            self._refs.setdefault(node_id, declared)
            return RefOrValue.reference(node_id, declared)

        with self._constructing(node_id, declared):
            value = self._construct(node_id, declared)
        self._tracked[node_id] = value
        result = RefOrValue.of(value)
        if declared in _ITEM_KINDS:
            self._add_item(result)
        return result

    def _construct(self, node_id: IdentifiedNode, kind: Kind) -> Any:
        if kind is Kind.ACTIVITY:
            return self._build_activity(node_id)
        if kind is Kind.AGENT:
            return self._build_agent(node_id)
        if kind is Kind.ROLE:
            return Role(id=node_id, attributes=self._attributes(node_id))
        if kind is Kind.LOCATION:
            return Location(id=node_id, attributes=self._attributes(node_id))
        if kind is Kind.PLAN:
            return Plan(**self._entity_fields(node_id))
        if kind is Kind.COLLECTION:
            members = self._all(node_id, ns.HAD_MEMBER, Kind.ENTITY)
            return Collection(had_members=members, **self._entity_fields(node_id))
        return Entity(**self._entity_fields(node_id))

    def _single(self, node_id: IdentifiedNode, predicate: URIRef, kind: Kind) -> Optional[RefOrValue]:
        target = _first(self._resources(node_id, predicate))
        return None if target is None else self._bind(target, kind)

    def _all(self, node_id: IdentifiedNode, predicate: URIRef, kind: Kind) -> Tuple[RefOrValue, ...]:
        return tuple(self._bind(t, kind) for t in self._resources(node_id, predicate))

    def _related(
        self, node_id: IdentifiedNode, predicate: URIRef, influence_cls: Type[Influence]
    ) -> List[Referencable]:
        """Resolve ``predicate`` and its qualified form.

        Qualifications come first; plain statements whose object is the
        influencer of one of them are skipped.
        """

        relations: List[Referencable] = []
        covered: Set[IdentifiedNode] = set()
        for qualification in self._resources(node_id, ns.QUALIFICATIONS[predicate]):
            influence = self._influence(qualification, influence_cls)
            covered.add(influence.influencer().id)
            relations.append(Referencable.qualified(influence))
        for target in self._resources(node_id, predicate):
            if target not in covered:
                bound = self._bind(target, influence_cls.influencer_kind)
                relations.append(as_referencable(bound))
        return relations

    # -- objects ------------------------------------------------------------
    def _entity_fields(self, node_id: IdentifiedNode) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "id": node_id,
            "attributes": self._attributes(node_id),
            "at_location": self._single(node_id, ns.AT_LOCATION, Kind.LOCATION),
            "generated_at_time": self._instant(node_id, ns.GENERATED_AT_TIME),
            "invalidated_at_time": self._instant(node_id, ns.INVALIDATED_AT_TIME),
            "alternate_of": self._single(node_id, ns.ALTERNATE_OF, Kind.ENTITY),
            "specialization_of": self._single(node_id, ns.SPECIALIZATION_OF, Kind.ENTITY),
        }
        for name, predicate, influence_cls in _ENTITY_RELATIONS:
            fields[name] = _first(self._related(node_id, predicate, influence_cls))
        return fields

    def _build_activity(self, node_id: IdentifiedNode) -> Activity:
        fields: Dict[str, Any] = {
            "id": node_id,
            "attributes": self._attributes(node_id),
            "at_location": self._single(node_id, ns.AT_LOCATION, Kind.LOCATION),
            "started_at_time": self._instant(node_id, ns.STARTED_AT_TIME),
            "ended_at_time": self._instant(node_id, ns.ENDED_AT_TIME),
            "generated": self._single(node_id, ns.GENERATED, Kind.ENTITY),
            "invalidated": self._all(node_id, ns.INVALIDATED, Kind.ENTITY),
        }
        for name, predicate, influence_cls in _ACTIVITY_RELATIONS:
            fields[name] = _first(self._related(node_id, predicate, influence_cls))
        for name, predicate, influence_cls in _ACTIVITY_SEQUENCES:
            fields[name] = tuple(self._related(node_id, predicate, influence_cls))
        return Activity(**fields)

    def _build_agent(self, node_id: IdentifiedNode) -> Agent:
        types = self._types(node_id)
        agent_type = next((t for t in _AGENT_TYPES if t.iri in types), AgentType.AGENT)
        return Agent(
            id=node_id,
            attributes=self._attributes(node_id),
            at_location=self._single(node_id, ns.AT_LOCATION, Kind.LOCATION),
            agent_type=agent_type,
            acted_on_behalf_of=tuple(
                self._related(node_id, ns.ACTED_ON_BEHALF_OF, Delegation)
            ),
        )

    def _influence(self, node_id: IdentifiedNode, influence_cls: Type[Influence]) -> Influence:
        tracked = self._tracked.get(node_id)
        if tracked is not None:
            if not isinstance(tracked, influence_cls):
                raise TypeMismatchError(
                    f"'{node_id}' is a {tracked.kind.value}, not a {influence_cls.kind.value}",
                    subject=node_id,
                )
            return tracked

        declared = {t for t in self._types(node_id) if ns.in_prov_namespace(t)}
        unexpected = declared - influence_cls.class_iris()
        if unexpected:
            raise TypeMismatchError(
                f"'{node_id}' is typed {', '.join(sorted(_local(t) for t in unexpected))} "
                f"and cannot qualify as a {influence_cls.kind.value}",
                subject=node_id,
                predicate=ns.RDF.type,
            )

        with self._constructing(node_id, influence_cls.kind):
            influencer = _first(self._resources(node_id, influence_cls.influencer_predicate))
            if influencer is None:
                raise MissingRequiredFieldError(
                    f"{influence_cls.kind.value} '{node_id}' has no {influence_cls.influencer_field}",
                    subject=node_id,
                    predicate=influence_cls.influencer_predicate,
                )
            fields: Dict[str, Any] = {
                "id": node_id,
                "attributes": self._attributes(node_id),
                "at_location": self._single(node_id, ns.AT_LOCATION, Kind.LOCATION),
                "had_role": self._single(node_id, ns.HAD_ROLE, Kind.ROLE),
                influence_cls.influencer_field: self._bind(
                    influencer, influence_cls.influencer_kind
                ),
            }
            if not issubclass(influence_cls, ActivityInfluence):
                fields["had_activity"] = self._single(node_id, ns.HAD_ACTIVITY, Kind.ACTIVITY)
            if issubclass(influence_cls, InstantaneousEvent):
                fields["at_time"] = self._instant(node_id, ns.AT_TIME)
            if issubclass(influence_cls, Derivation):
                fields["had_usage"] = self._sub_influence(node_id, ns.HAD_USAGE, Usage)
                fields["had_generation"] = self._sub_influence(
                    node_id, ns.HAD_GENERATION, Generation
                )
            elif issubclass(influence_cls, Association):
                fields["had_plan"] = self._single(node_id, ns.HAD_PLAN, Kind.PLAN)
            value = influence_cls(**fields)
        self._tracked[node_id] = value
        return value

    def _sub_influence(
        self, node_id: IdentifiedNode, predicate: URIRef, influence_cls: Type[Influence]
    ) -> Optional[RefOrValue]:
        target = _first(self._resources(node_id, predicate))
        if target is None:
            return None
        if target in self._building or not self._attributed(target):
            return RefOrValue.reference(target, influence_cls.kind)
        return RefOrValue.of(self._influence(target, influence_cls))

    # -- bundle contents ----------------------------------------------------
    def _classify(self) -> None:
        for type_iri, kind in _CLASSIFICATION:
            for subject in _sorted(self.graph.subjects(ns.RDF.type, type_iri)):
                if subject == self.bundle_id or subject in self._item_ids:
                    continue
                self._add_item(self._bind(subject, kind))

    def _add_references(self) -> None:
        for node_id, kind in self._refs.items():
            if node_id not in self._tracked:
                self._add_item(RefOrValue.reference(node_id, kind))

    def _add_non_provenance(self) -> None:
        for subject in _sorted(set(self.graph.subjects())):
            if subject == self.bundle_id or subject in self._item_ids:
                continue
            if subject in self._tracked:
                continue
            types = _sorted(t for t in self._types(subject) if isinstance(t, URIRef))
            if not types or any(ns.in_prov_namespace(t) for t in types):
                continue
            primary = Attribute(ns.RDF.type, types[0])
            node = NonProvenance(
                id=subject,
                type_iri=types[0],
                attributes=[a for a in self._attributes(subject) if a != primary],
            )
            self._add_item(RefOrValue.of(node))

    def _links(self) -> List[Link]:
        links = []
        pairs = sorted(
            self.graph.subject_objects(ns.AS_IN_BUNDLE),
            key=lambda pair: (pair[0].n3(), pair[1].n3()),
        )
        for subject, target in pairs:
            if not isinstance(subject, URIRef):
                continue
            if not isinstance(target, IdentifiedNode):
                raise TypeMismatchError(
                    f"The bundle '{subject}' is found in must be a resource",
                    subject=subject,
                    predicate=ns.AS_IN_BUNDLE,
                )
            mention = _first([m for m in self._objects(subject, ns.MENTION_OF) if isinstance(m, URIRef)])
            if mention is None:
                raise MissingRequiredFieldError(
                    f"Link subject '{subject}' has no mention",
                    subject=subject,
                    predicate=ns.MENTION_OF,
                )
            links.append(
                Link(
                    subject=self._link_subject(subject),
                    mention_of=mention,
                    as_in_bundle=self._linked_bundle(target),
                )
            )
        return links

    def _link_subject(self, subject: URIRef) -> RefOrValue:
        types = {t for t in self._types(subject) if isinstance(t, URIRef)}
        if len(types) > 1:
            types -= _SUBCLASSES
            if len(types) != 1:
                raise AmbiguousTypeError(
                    f"Link mention '{subject}' is a member of multiple types",
                    subject=subject,
                    predicate=ns.RDF.type,
                )
        if not types:
            raise MissingRequiredFieldError(
                f"Link mention '{subject}' has no type",
                subject=subject,
                predicate=ns.RDF.type,
            )
        tracked = self._tracked.get(subject)
        if tracked is not None:
            return RefOrValue.of(tracked)
        kind = self._declared_kind(subject)
        if kind is None:
            raise TypeMismatchError(
                f"Link mention '{subject}' is not an entity, activity or agent",
                subject=subject,
            )
        return RefOrValue.reference(subject, kind)

    def _linked_bundle(self, target: IdentifiedNode) -> RefOrValue:
        if not self.follow_links:
            return RefOrValue.reference(target, Kind.BUNDLE)
        if target in self._chain:
            path = " -> ".join(str(node) for node in self._chain + (target,))
            raise CyclicBundleError(
                f"Bundle links form a cycle: {path}",
                subject=target,
                predicate=ns.AS_IN_BUNDLE,
            )
        logger.debug("Following link from %s to %s", self.bundle_id, target)
        nested = GraphBuilder(target, self.source, follow_links=True, chain=self._chain)
        return RefOrValue.of(nested.build())


def to_bundle(
    bundle_id: IdentifiedNode,
    source: StatementSource,
    follow_links: Optional[bool] = None,
) -> Bundle:
    """Build the bundle stored in context ``bundle_id``.

    Raises a :class:`~provGraph.errors.ProvenanceError` subclass when the
    context is empty, does not declare the bundle, or holds data that cannot
    be typed.
    """

    return GraphBuilder(bundle_id, source, follow_links=follow_links).build()


__all__ = ["GraphBuilder", "to_bundle"]
