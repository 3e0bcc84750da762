from __future__ import annotations

from datetime import datetime, timezone

import pytest
from rdflib import Literal, Namespace, URIRef
from rdflib.namespace import RDF, RDFS

from provGraph.errors import (
    AmbiguousTypeError,
    ContextMismatchError,
    CyclicBundleError,
    EmptyDatasetError,
    MissingRequiredFieldError,
    TypeMismatchError,
    UnrecognizedTypeError,
)
from provGraph.kg.builder import to_bundle
from provGraph.model import (
    Activity,
    Agent,
    AgentType,
    Bundle,
    Collection,
    Entity,
    Kind,
    Location,
    NonProvenance,
    Plan,
    Usage,
)

EX = Namespace("http://www.example.org#")
DCTERMS = Namespace("http://purl.org/dc/terms/")
FOAF = Namespace("http://xmlns.com/foaf/0.1/")

UTC = timezone.utc

PRIMER = """
:b1 a prov:Bundle .
:analyst a prov:Role .
:article dcterms:title "Crime rises in cities" ;
   a prov:Entity .
:articleV1 a prov:Entity ;
   prov:specializationOf :article .
:articleV2 a prov:Entity ;
   prov:alternateOf :articleV1 ;
   prov:specializationOf :article .
:chart1 a prov:Entity ;
   prov:generatedAtTime "2012-03-02T10:30:00Z"^^xsd:dateTime ;
   prov:wasAttributedTo :derek ;
   prov:wasGeneratedBy :illustrate1 .
:chart2 a prov:Entity ;
   prov:generatedAtTime "2012-04-01T16:21:00+01:00"^^xsd:dateTime ;
   prov:wasDerivedFrom :dataset2 ;
   prov:wasRevisionOf :chart1 .
:chartgen a prov:Agent, prov:Organization ;
   foaf:name "Chart Generators Inc" .
:compile1 a prov:Activity .
:compose1 a prov:Activity ;
   prov:qualifiedAssociation [
      a prov:Association ;
      prov:agent :derek ;
      prov:hadRole :analyst ;
   ] ;
   prov:qualifiedUsage [
      a prov:Usage ;
      prov:entity :dataset1 ;
      prov:hadRole :dataToCompose ;
   ], [
      a prov:Usage ;
      prov:entity :regionList ;
      prov:hadRole :regionsToAggregateBy ;
   ] ;
   prov:used :dataset1, :regionList ;
   prov:wasAssociatedWith :derek .
:composedData a prov:Role .
:composition1 a prov:Entity ;
   prov:qualifiedGeneration [
      a prov:Generation ;
      prov:activity :compose1 ;
      prov:hadRole :composedData ;
   ] ;
   prov:wasGeneratedBy :compose1 .
:correct1 a prov:Activity ;
   prov:endedAtTime "2012-04-01T16:21:00+01:00"^^xsd:dateTime ;
   prov:qualifiedAssociation [
      a prov:Association ;
      prov:agent :edith ;
      prov:hadPlan :instructions ;
   ] ;
   prov:startedAtTime "2012-03-31T10:21:00+01:00"^^xsd:dateTime ;
   prov:wasAssociatedWith :edith .
:dataToCompose a prov:Role .
:dataset1 a prov:Entity .
:dataset2 a prov:Entity ;
   prov:wasGeneratedBy :correct1 ;
   prov:wasRevisionOf :dataset1 .
:derek a prov:Agent, prov:Person ;
   prov:actedOnBehalfOf :chartgen ;
   foaf:givenName "Derek" ;
   foaf:mbox <mailto:derek@example.org> .
:edith a prov:Agent .
:illustrate1 a prov:Activity ;
   prov:used :composition1 ;
   prov:wasAssociatedWith :derek .
:instructions a prov:Plan .
:quoteInBlogEntry-20130326 a prov:Entity ;
   prov:wasQuotedFrom :article .
:regionList a prov:Entity .
:regionsToAggregateBy a prov:Role .
"""

NESTED = """
:b1 {
   :b1 a prov:Bundle .
   :entity a prov:Entity ;
      prov:asInBundle :b2 ;
      prov:mentionOf :activity2 .
}
:b2 {
   :activity2 a prov:Activity .
   :activity3 a prov:Activity ;
      prov:asInBundle :b3 ;
      prov:mentionOf :agent .
   :activity4 a prov:Activity ;
      prov:asInBundle :b4 ;
      prov:mentionOf :plan .
   :b2 a prov:Bundle .
}
:b3 {
   :agent a prov:Agent .
   :b3 a prov:Bundle .
}
:b4 {
   :b4 a prov:Bundle .
   :plan a prov:Plan .
}
"""


@pytest.fixture()
def build(load_store):
    def _build(content: str, *, format: str = "turtle", bundle: URIRef = EX.b1, **kwargs) -> Bundle:
        return to_bundle(bundle, load_store(content, format=format, context=bundle), **kwargs)

    return _build


def _values(bundle: Bundle):
    return {item.id: item.about() for item in bundle.items if not item.is_ref}


def _refs(bundle: Bundle):
    return {item.id: item.kind for item in bundle.items if item.is_ref}


def test_empty_content(build) -> None:
    with pytest.raises(EmptyDatasetError):
        build("")


def test_bundle_not_matching_context(build) -> None:
    rdf = """
    :b1 {
       :activity a prov:Activity .
       :this a prov:Bundle .
    }"""
    with pytest.raises(ContextMismatchError):
        build(rdf, format="trig")


def test_simple_bundle(build) -> None:
    bundle = build(":b1 a prov:Bundle .")
    assert bundle.id == EX.b1
    assert bundle.items == ()
    assert bundle.links == ()


def test_bundle_keeps_its_own_fields(build) -> None:
    bundle = build(
        """
        :b1 a prov:Bundle ;
           rdfs:label "mine" ;
           prov:generatedAtTime "2012-03-02T10:30:00Z"^^xsd:dateTime ;
           prov:wasAttributedTo :derek .
        """
    )
    assert bundle.values(RDFS.label) == (Literal("mine"),)
    assert bundle.generated_at_time == datetime(2012, 3, 2, 10, 30, tzinfo=UTC)
    assert bundle.was_attributed_to.id == EX.derek
    assert _refs(bundle) == {EX.derek: Kind.AGENT}


def test_mix_of_qualified_and_base_property(build) -> None:
    bundle = build(
        """
        :b1 a prov:Bundle .
        :compose1 a prov:Activity ;
           prov:qualifiedUsage [
              a prov:Usage ;
              prov:entity :dataset1 ;
              prov:hadRole :dataToCompose ;
           ] ;
           prov:used :dataset1, :regionList .
        """
    )
    assert len({item.id for item in bundle.items}) == 4
    assert _refs(bundle) == {
        EX.dataset1: Kind.ENTITY,
        EX.dataToCompose: Kind.ROLE,
        EX.regionList: Kind.ENTITY,
    }

    compose1 = _values(bundle)[EX.compose1]
    assert isinstance(compose1, Activity)
    assert compose1.attributes == ()
    assert len(compose1.used) == 2
    for used in compose1.used:
        if used.is_qualified:
            usage = used.qualification()
            assert usage.entity.id == EX.dataset1
            assert usage.had_role.id == EX.dataToCompose
        else:
            assert used.is_ref
            assert used.id == EX.regionList


def test_primer_example(build) -> None:
    bundle = build(PRIMER)
    assert bundle.links == ()
    assert bundle.bundle_includes() == 0
    assert bundle.attributes == ()
    assert len(bundle.items) == 22
    assert len({item.id for item in bundle.items}) == 22

    values = _values(bundle)
    refs = _refs(bundle)
    assert refs == {
        EX.analyst: Kind.ROLE,
        EX.composedData: Kind.ROLE,
        EX.dataToCompose: Kind.ROLE,
        EX.regionsToAggregateBy: Kind.ROLE,
        EX.compile1: Kind.ACTIVITY,
        EX.edith: Kind.AGENT,
        EX.instructions: Kind.PLAN,
        EX.dataset1: Kind.ENTITY,
        EX.regionList: Kind.ENTITY,
    }

    article = values[EX.article]
    assert article.values(DCTERMS.title) == (Literal("Crime rises in cities"),)
    assert values[EX.articleV1].specialization_of.id == EX.article
    assert values[EX.articleV2].specialization_of.id == EX.article
    assert values[EX.articleV2].alternate_of.id == EX.articleV1

    chart1 = values[EX.chart1]
    assert chart1.generated_at_time == datetime(2012, 3, 2, 10, 30, tzinfo=UTC)
    assert chart1.was_attributed_to.id == EX.derek
    assert chart1.was_generated_by.to_ref().id == EX.illustrate1

    chart2 = values[EX.chart2]
    assert chart2.generated_at_time == datetime(2012, 4, 1, 15, 21, tzinfo=UTC)
    assert chart2.was_derived_from.id == EX.dataset2
    assert chart2.was_revision_of.to_ref().id == EX.chart1

    generation = values[EX.composition1].was_generated_by
    assert generation.is_qualified
    assert generation.qualification().activity.id == EX.compose1
    assert generation.qualification().had_role.id == EX.composedData

    dataset2 = values[EX.dataset2]
    assert dataset2.was_generated_by.id == EX.correct1
    assert dataset2.was_revision_of.to_ref().id == EX.dataset1
    assert values[EX["quoteInBlogEntry-20130326"]].was_quoted_from.to_ref().id == EX.article

    chartgen = values[EX.chartgen]
    assert chartgen.agent_type is AgentType.ORGANIZATION
    assert chartgen.values(FOAF.name) == (Literal("Chart Generators Inc"),)

    derek = values[EX.derek]
    assert derek.agent_type is AgentType.PERSON
    assert len(derek.attributes) == 2
    assert derek.values(FOAF.givenName) == (Literal("Derek"),)
    assert derek.values(FOAF.mbox) == (URIRef("mailto:derek@example.org"),)
    assert derek.acted_on_behalf_of[0].id == EX.chartgen

    compose1 = values[EX.compose1]
    used = {
        (q.entity.id, q.had_role.id)
        for q in (u.qualification() for u in compose1.used if u.is_qualified)
    }
    assert used == {(EX.dataset1, EX.dataToCompose), (EX.regionList, EX.regionsToAggregateBy)}
    assert len(compose1.used) == 2
    association = compose1.was_associated_with[0]
    assert len(compose1.was_associated_with) == 1
    assert association.is_qualified
    assert association.qualification().agent.id == EX.derek
    assert association.qualification().had_role.id == EX.analyst

    correct1 = values[EX.correct1]
    assert correct1.started_at_time == datetime(2012, 3, 31, 9, 21, tzinfo=UTC)
    assert correct1.ended_at_time == datetime(2012, 4, 1, 15, 21, tzinfo=UTC)
    association = correct1.was_associated_with[0].qualification()
    assert association.agent.id == EX.edith
    assert association.had_plan.id == EX.instructions

    illustrate1 = values[EX.illustrate1]
    assert illustrate1.used[0].id == EX.composition1
    assert illustrate1.was_associated_with[0].id == EX.derek


def test_shared_objects_are_built_once(build) -> None:
    bundle = build(PRIMER)
    values = _values(bundle)
    assert values[EX.chart1].was_attributed_to.about() is values[EX.derek]
    assert values[EX.illustrate1].was_associated_with[0].about() is values[EX.derek]


def test_nested_bundles(build) -> None:
    b1 = build(NESTED, format="trig")

    def items(bundle):
        return {item.id for item in bundle.items}

    def includes(bundle):
        return {link.as_in_bundle.about().id: link.as_in_bundle.about() for link in bundle.links}

    assert items(b1) == {EX.entity}
    assert b1.bundle_includes() == 3
    b2 = includes(b1)[EX.b2]
    assert items(b2) == {EX.activity2, EX.activity3, EX.activity4}
    nested = includes(b2)
    assert set(nested) == {EX.b3, EX.b4}
    assert items(nested[EX.b3]) == {EX.agent}
    assert items(nested[EX.b4]) == {EX.plan}
    assert nested[EX.b3].links == ()

    link = b1.links[0]
    assert link.subject.about().id == EX.entity
    assert link.mention_of == EX.activity2


def test_links_can_stay_unresolved(build) -> None:
    b1 = build(NESTED, format="trig", follow_links=False)
    assert b1.links[0].as_in_bundle.is_ref
    assert b1.links[0].as_in_bundle.kind is Kind.BUNDLE
    assert b1.bundle_includes() == 1


def test_cyclic_bundle_links(build) -> None:
    rdf = """
    :other {
       :otherActivity a prov:Activity ;
          prov:asInBundle :this ;
          prov:mentionOf :activity .
       :other a prov:Bundle .
    }
    :this {
       :activity a prov:Activity ;
          prov:asInBundle :other ;
          prov:mentionOf :otherActivity .
       :this a prov:Bundle .
    }"""
    with pytest.raises(CyclicBundleError):
        build(rdf, format="trig", bundle=EX.this)
    with pytest.raises(CyclicBundleError):
        build(rdf, format="trig", bundle=EX.other)


def test_self_referencing_nodes_terminate(build) -> None:
    bundle = build(
        """
        :b1 a prov:Bundle .
        :a a prov:Entity ; prov:wasDerivedFrom :b .
        :b a prov:Entity ; prov:wasDerivedFrom :a .
        """
    )
    values = _values(bundle)
    assert values[EX.a].was_derived_from.about() is values[EX.b]
    assert values[EX.b].was_derived_from.is_ref
    assert values[EX.b].was_derived_from.id == EX.a


def test_declared_types_are_kept(build) -> None:
    bundle = build(
        """
        :b1 a prov:Bundle .
        :act a prov:Activity ; prov:used :p, :c, :empty .
        :p a prov:Plan ; rdfs:label "steps" .
        :c a prov:Collection ; prov:hadMember :e1, :e2 .
        :empty a prov:EmptyCollection ; rdfs:label "nothing" .
        """
    )
    values = _values(bundle)
    assert isinstance(values[EX.p], Plan)
    assert isinstance(values[EX.c], Collection)
    assert [m.id for m in values[EX.c].had_members] == [EX.e1, EX.e2]
    assert values[EX.empty].is_empty
    assert _refs(bundle) == {EX.e1: Kind.ENTITY, EX.e2: Kind.ENTITY}


def test_locations(build) -> None:
    bundle = build(
        """
        :b1 a prov:Bundle .
        :a a prov:Activity ; prov:atLocation :lab .
        :lab a prov:Location ; rdfs:label "Lab" .
        """
    )
    values = _values(bundle)
    assert isinstance(values[EX.lab], Location)
    assert values[EX.a].at_location.about() is values[EX.lab]


def test_non_provenance_resources(build) -> None:
    bundle = build(
        """
        :b1 a prov:Bundle .
        :extra a rdf:Property, rdfs:Resource ; rdf:predicate rdf:Bag .
        :untyped rdfs:label "ignored" .
        """
    )
    node = _values(bundle)[EX.extra]
    assert isinstance(node, NonProvenance)
    assert node.type_iri == RDF.Property
    assert node.values(RDF.type) == (RDFS.Resource,)
    assert node.values(RDF.predicate) == (RDF.Bag,)
    assert EX.untyped not in {item.id for item in bundle.items}


def test_foreign_type_makes_node_a_value(build) -> None:
    bundle = build(
        """
        :b1 a prov:Bundle .
        :derek a prov:Agent, foaf:Person .
        """
    )
    derek = _values(bundle)[EX.derek]
    assert isinstance(derek, Agent)
    assert derek.values(RDF.type) == (FOAF.Person,)


def test_derivation_details(build) -> None:
    bundle = build(
        """
        :b1 a prov:Bundle .
        :chart2 a prov:Entity ;
           prov:wasDerivedFrom :dataset2 ;
           prov:qualifiedDerivation [
              a prov:Derivation ;
              prov:entity :dataset2 ;
              prov:hadActivity :illustrate2 ;
              prov:hadUsage :use1 ;
              prov:hadGeneration :gen1 ;
           ] .
        :use1 a prov:Usage ;
           prov:entity :dataset2 ;
           prov:atTime "2012-04-01T15:00:00Z"^^xsd:dateTime .
        :gen1 a prov:Generation .
        """
    )
    derivation = _values(bundle)[EX.chart2].was_derived_from.qualification()
    assert derivation.entity.id == EX.dataset2
    assert derivation.had_activity.id == EX.illustrate2
    usage = derivation.had_usage.about()
    assert isinstance(usage, Usage)
    assert usage.at_time == datetime(2012, 4, 1, 15, 0, tzinfo=UTC)
    assert derivation.had_generation.is_ref
    assert derivation.had_generation.kind is Kind.GENERATION


def test_unrecognized_prov_class(build) -> None:
    with pytest.raises(UnrecognizedTypeError):
        build(":b1 a prov:Bundle . :x a prov:Thing .")


def test_object_of_wrong_kind(build) -> None:
    rdf = """
    :b1 a prov:Bundle .
    :e a prov:Entity ; prov:wasGeneratedBy :x .
    :x a prov:Agent .
    """
    with pytest.raises(TypeMismatchError) as excinfo:
        build(rdf)
    assert excinfo.value.subject == EX.x


def test_qualification_of_wrong_class(build) -> None:
    rdf = """
    :b1 a prov:Bundle .
    :e a prov:Entity ;
       prov:qualifiedGeneration [ a prov:Usage ; prov:activity :a ] .
    """
    with pytest.raises(TypeMismatchError):
        build(rdf)


def test_qualification_without_influencer(build) -> None:
    rdf = """
    :b1 a prov:Bundle .
    :e a prov:Entity ; prov:qualifiedGeneration [ a prov:Generation ] .
    """
    with pytest.raises(MissingRequiredFieldError):
        build(rdf)


def test_literal_where_resource_expected(build) -> None:
    with pytest.raises(TypeMismatchError) as excinfo:
        build(':b1 a prov:Bundle . :e a prov:Entity ; prov:wasDerivedFrom "text" .')
    assert excinfo.value.predicate == URIRef("http://www.w3.org/ns/prov#wasDerivedFrom")


def test_bad_timestamp(build) -> None:
    with pytest.raises(TypeMismatchError):
        build(':b1 a prov:Bundle . :e a prov:Entity ; prov:generatedAtTime "yesterday" .')


def test_incompatible_declared_classes(build) -> None:
    rdf = """
    :b1 a prov:Bundle .
    :x a prov:Activity, prov:Entity ; rdfs:label "x" .
    """
    with pytest.raises(TypeMismatchError) as excinfo:
        build(rdf)
    assert excinfo.value.subject == EX.x
    assert excinfo.value.predicate == RDF.type


def test_entity_family_classes_agree(build) -> None:
    bundle = build(':b1 a prov:Bundle . :p a prov:Entity, prov:Plan ; rdfs:label "steps" .')
    assert isinstance(_values(bundle)[EX.p], Plan)


def test_ambiguous_link_subject(build) -> None:
    rdf = """
    :b1 a prov:Bundle .
    :x a prov:Entity, foaf:Document ;
       prov:asInBundle :b2 ;
       prov:mentionOf :y .
    """
    with pytest.raises(AmbiguousTypeError):
        build(rdf, follow_links=False)


def test_link_subject_subtypes_collapse(build) -> None:
    rdf = """
    :b1 a prov:Bundle .
    :derek a prov:Agent, prov:Person ;
       prov:asInBundle :b2 ;
       prov:mentionOf :derek2 .
    """
    bundle = build(rdf, follow_links=False)
    assert bundle.links[0].subject.about().agent_type is AgentType.PERSON


def test_untyped_link_subject(build) -> None:
    with pytest.raises(MissingRequiredFieldError):
        build(":b1 a prov:Bundle . :x prov:asInBundle :b2 ; prov:mentionOf :y .", follow_links=False)


def test_link_without_mention(build) -> None:
    with pytest.raises(MissingRequiredFieldError):
        build(":b1 a prov:Bundle . :x a prov:Entity ; prov:asInBundle :b2 .", follow_links=False)


def test_rebuilt_objects_compare_equal(build) -> None:
    first = build(PRIMER)
    second = build(PRIMER)
    assert _values(first)[EX.article] == _values(second)[EX.article]
    assert _values(first)[EX.article] == Entity(
        id=EX.article,
        attributes=[(DCTERMS.title, Literal("Crime rises in cities"))],
    )
    assert _values(first)[EX.chartgen] == Agent(
        id=EX.chartgen,
        agent_type=AgentType.ORGANIZATION,
        attributes=[(FOAF.name, Literal("Chart Generators Inc"))],
    )
