from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from rdflib import Literal, Namespace
from rdflib.namespace import RDF, RDFS

from provGraph.errors import MissingRequiredFieldError, TypeMismatchError
from provGraph.model import (
    Activity,
    Agent,
    AgentType,
    Attribute,
    Bundle,
    Collection,
    Entity,
    Kind,
    Link,
    NonProvenance,
    ref,
)
from provGraph.model.kinds import agent_type_for_iri, kind_for_iri
from provGraph.namespaces import PROV

EX = Namespace("http://www.example.org#")


def test_relation_fields_accept_identifiers_and_objects() -> None:
    by_id = Entity(id=EX.chart1, was_generated_by=EX.illustrate1)
    assert by_id.was_generated_by.is_ref
    assert by_id.was_generated_by.kind is Kind.ACTIVITY

    by_value = Entity(id=EX.chart1, was_generated_by=Activity(id=EX.illustrate1))
    assert by_value.was_generated_by.about().id == EX.illustrate1

    assert by_id == Entity(id=EX.chart1, was_generated_by=ref(EX.illustrate1, Kind.ACTIVITY))


def test_relation_fields_reject_wrong_kind() -> None:
    with pytest.raises(TypeMismatchError):
        Entity(id=EX.chart1, was_attributed_to=Activity(id=EX.illustrate1))


def test_attributes_compare_regardless_of_order() -> None:
    label = (RDFS.label, Literal("cool quote"))
    comment = (RDFS.comment, Literal("what a guy"))
    first = Entity(id=EX.quote, attributes=[label, comment])
    second = Entity(id=EX.quote, attributes=[comment, label])
    assert first == second
    assert first.values(RDFS.label) == (Literal("cool quote"),)
    assert all(isinstance(a, Attribute) for a in first.attributes)


def test_collection_emptiness() -> None:
    assert Collection(id=EX.c).is_empty
    full = Collection(id=EX.c, had_members=[EX.e1, Entity(id=EX.e2)])
    assert not full.is_empty
    assert [m.is_ref for m in full.had_members] == [True, False]


def test_agent_defaults_to_plain_agent() -> None:
    agent = Agent(id=EX.edith)
    assert agent.agent_type is AgentType.AGENT
    assert agent.kind_iri == PROV.Agent
    assert AgentType.SOFTWARE.iri == PROV.SoftwareAgent


def test_non_provenance_uses_its_own_type() -> None:
    node = NonProvenance(id=EX.extra1, type_iri=RDF.Property, attributes=[(RDF.predicate, RDF.Bag)])
    assert node.kind is Kind.NON_PROVENANCE
    assert node.kind_iri == RDF.Property
    assert node.values(RDF.predicate) == (RDF.Bag,)
    with pytest.raises(ValueError):
        Kind.NON_PROVENANCE.iri


def test_kind_tables() -> None:
    assert kind_for_iri(PROV.Plan) is Kind.PLAN
    assert kind_for_iri(PROV.Thing) is None
    assert agent_type_for_iri(PROV.Person) is AgentType.PERSON
    assert Kind.PLAN.compatible_with(Kind.BUNDLE)
    assert not Kind.ACTIVITY.compatible_with(Kind.ENTITY)
    assert not Kind.ROLE.compatible_with(Kind.LOCATION)


def test_link_requires_every_part() -> None:
    with pytest.raises(MissingRequiredFieldError):
        Link(subject=ref(EX.entity, Kind.ENTITY), mention_of=EX.activity2)
    with pytest.raises(MissingRequiredFieldError):
        Link(mention_of=EX.activity2, as_in_bundle=EX.b2)
    link = Link(subject=ref(EX.entity, Kind.ENTITY), mention_of=EX.activity2, as_in_bundle=EX.b2)
    assert link.as_in_bundle == ref(EX.b2, Kind.BUNDLE)


def test_link_target_must_be_a_bundle() -> None:
    with pytest.raises(TypeMismatchError):
        Link(
            subject=ref(EX.entity, Kind.ENTITY),
            mention_of=EX.activity2,
            as_in_bundle=Activity(id=EX.b2),
        )


def test_bundle_items_are_coerced() -> None:
    bundle = Bundle(id=EX.b1, items=[Entity(id=EX.e), ref(EX.a, Kind.ACTIVITY)])
    # kept in identifier order
    assert bundle.items[0].is_ref
    assert bundle.items[1].about().id == EX.e
    assert bundle.kind_iri == PROV.Bundle


def test_bundle_includes_counts_nested_links() -> None:
    b2 = Bundle(
        id=EX.b2,
        links=[
            Link(subject=ref(EX.activity3, Kind.ACTIVITY), mention_of=EX.agent, as_in_bundle=EX.b3),
            Link(subject=ref(EX.activity4, Kind.ACTIVITY), mention_of=EX.plan, as_in_bundle=EX.b4),
        ],
    )
    b1 = Bundle(
        id=EX.b1,
        links=[Link(subject=ref(EX.entity, Kind.ENTITY), mention_of=EX.activity2, as_in_bundle=b2)],
    )
    assert b2.bundle_includes() == 2
    assert b1.bundle_includes() == 3
    assert Bundle(id=EX.b0).bundle_includes() == 0


def test_bundles_compare_regardless_of_order() -> None:
    e1 = Entity(id=EX.e1)
    a1 = Activity(id=EX.a1)
    to_b2 = Link(subject=e1, mention_of=EX.e2, as_in_bundle=EX.b2)
    to_b3 = Link(subject=a1, mention_of=EX.a3, as_in_bundle=EX.b3)
    assert Bundle(id=EX.b1, items=[e1, a1], links=[to_b2, to_b3]) == Bundle(
        id=EX.b1, items=[a1, e1], links=[to_b3, to_b2]
    )


def test_naive_instants_are_read_as_utc() -> None:
    naive = datetime(2012, 3, 2, 10, 30)
    aware = datetime(2012, 3, 2, 10, 30, tzinfo=timezone.utc)
    entity = Entity(id=EX.chart1, generated_at_time=naive)
    assert entity.generated_at_time.tzinfo is not None
    assert entity == Entity(id=EX.chart1, generated_at_time=aware)
    assert Activity(id=EX.a1, started_at_time=naive).started_at_time == aware

    plus_one = timezone(timedelta(hours=1))
    shifted = Entity(id=EX.chart1, generated_at_time=datetime(2012, 3, 2, 11, 30, tzinfo=plus_one))
    assert shifted.generated_at_time.utcoffset() == timedelta(0)
    assert shifted == entity
