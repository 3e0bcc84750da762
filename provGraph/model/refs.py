"""Tagged unions linking provenance objects by reference, value or qualification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from rdflib.term import IdentifiedNode, URIRef

from provGraph.errors import NotMaterializedError, TypeMismatchError
from provGraph.model.kinds import Kind

V = TypeVar("V")
I = TypeVar("I")  # noqa: E741


class Variant(Enum):
    REFERENCE = "reference"
    VALUE = "value"
    QUALIFICATION = "qualification"


@dataclass(frozen=True)
class RefOrValue(Generic[V]):
    """A relation target given either as a bare identifier or as the object.

    Use :meth:`reference` and :meth:`of` rather than the constructor.
    """

    variant: Variant
    id: IdentifiedNode
    kind: Kind
    payload: Any = None

    def __post_init__(self) -> None:
        if self.variant is Variant.QUALIFICATION:
            raise TypeMismatchError(
                "Plain references cannot hold a qualification", subject=self.id
            )
        if self.variant is Variant.VALUE and self.payload is None:
            raise NotMaterializedError("A value variant needs an object", subject=self.id)

    @classmethod
    def reference(cls, node_id: IdentifiedNode, kind: Kind) -> "RefOrValue[V]":
        return cls(Variant.REFERENCE, node_id, kind)

    @classmethod
    def of(cls, value: V) -> "RefOrValue[V]":
        return cls(Variant.VALUE, value.id, value.kind, value)

    @property
    def is_ref(self) -> bool:
        """Whether this only points at an object defined elsewhere."""

        return self.variant is Variant.REFERENCE

    @property
    def kind_iri(self) -> URIRef:
        if self.variant is Variant.VALUE:
            return self.payload.kind_iri
        return self.kind.iri

    def about(self) -> V:
        """Return the referenced object itself."""

        if self.is_ref:
            raise NotMaterializedError(
                f"'{self.id}' is a reference to an object and not the object itself",
                subject=self.id,
            )
        return self.payload

    def to_ref(self) -> "RefOrValue[V]":
        if self.is_ref:
            return self
        return RefOrValue.reference(self.id, self.kind)


@dataclass(frozen=True)
class Referencable(Generic[V, I]):
    """A relation with both a plain and a qualified form.

    The qualification arm wraps an influence whose ``influencer()`` resolves
    to the related object; its own ``id`` and ``kind`` are the influence's.
    """

    variant: Variant
    id: IdentifiedNode
    kind: Kind
    payload: Any = None

    def __post_init__(self) -> None:
        if self.variant is Variant.REFERENCE:
            return
        if self.payload is None:
            raise NotMaterializedError(
                f"A {self.variant.value} variant needs an object", subject=self.id
            )
        if self.variant is Variant.QUALIFICATION:
            influencer = getattr(self.payload, "influencer", None)
            if not callable(influencer):
                raise TypeMismatchError(
                    f"'{self.id}' is not an influence and cannot qualify a relation",
                    subject=self.id,
                )

    @classmethod
    def reference(cls, node_id: IdentifiedNode, kind: Kind) -> "Referencable[V, I]":
        return cls(Variant.REFERENCE, node_id, kind)

    @classmethod
    def of(cls, value: V) -> "Referencable[V, I]":
        return cls(Variant.VALUE, value.id, value.kind, value)

    @classmethod
    def qualified(cls, influence: I) -> "Referencable[V, I]":
        return cls(Variant.QUALIFICATION, influence.id, influence.kind, influence)

    @property
    def is_ref(self) -> bool:
        return self.variant is Variant.REFERENCE

    @property
    def is_qualified(self) -> bool:
        return self.variant is Variant.QUALIFICATION

    @property
    def kind_iri(self) -> URIRef:
        if self.payload is not None:
            return self.payload.kind_iri
        return self.kind.iri

    def about(self) -> V:
        if self.is_ref:
            raise NotMaterializedError(
                f"'{self.id}' is a reference to an object and not the object itself",
                subject=self.id,
            )
        if self.is_qualified:
            return self.payload.influencer().about()
        return self.payload

    def qualification(self) -> I:
        if not self.is_qualified:
            raise NotMaterializedError(
                f"'{self.id}' is not a qualified version of the relation",
                subject=self.id,
            )
        return self.payload

    def to_ref(self) -> RefOrValue[V]:
        """Return a plain reference to the related object."""

        if self.is_qualified:
            influencer = self.payload.influencer()
            return RefOrValue.reference(influencer.id, influencer.kind)
        return RefOrValue.reference(self.id, self.kind)


def _check_kind(target: RefOrValue | Referencable, kind: Kind | None) -> None:
    if kind is None:
        return
    actual = target.to_ref().kind if isinstance(target, Referencable) else target.kind
    if not actual.compatible_with(kind):
        raise TypeMismatchError(
            f"'{target.id}' is a {actual.value} where a {kind.value} is required",
            subject=target.id,
        )


def ref(node_id: IdentifiedNode, kind: Kind) -> RefOrValue:
    """Shorthand for a plain reference."""

    return RefOrValue.reference(node_id, kind)


def value(node: Any) -> RefOrValue:
    return RefOrValue.of(node)


def qualified(influence: Any) -> Referencable:
    return Referencable.qualified(influence)


def as_ref_or_value(target: Any, kind: Kind | None = None) -> RefOrValue:
    """Coerce ``target`` into a :class:`RefOrValue` of ``kind``.

    ``target`` may be an identifier (``kind`` required), a provenance object
    or an existing union. A qualified relation is rejected since a plain slot
    never holds a qualification.
    """

    if isinstance(target, Referencable):
        if target.is_qualified:
            raise TypeMismatchError(
                f"'{target.id}' is a qualification and cannot be chained",
                subject=target.id,
            )
        target = RefOrValue(target.variant, target.id, target.kind, target.payload)
    elif isinstance(target, IdentifiedNode):
        if kind is None:
            raise TypeMismatchError(
                f"A kind is required to reference '{target}'", subject=target
            )
        target = RefOrValue.reference(target, kind)
    elif not isinstance(target, RefOrValue):
        target = RefOrValue.of(target)
    _check_kind(target, kind)
    return target


def as_referencable(target: Any, kind: Kind | None = None) -> Referencable:
    """Coerce ``target`` for a slot that also accepts a qualified relation.

    Influences become the qualification arm; ``kind`` is then checked against
    the influence's own influencer.
    """

    if isinstance(target, RefOrValue):
        if target.is_ref:
            target = Referencable.reference(target.id, target.kind)
        else:
            target = Referencable.of(target.payload)
    elif isinstance(target, IdentifiedNode):
        if kind is None:
            raise TypeMismatchError(
                f"A kind is required to reference '{target}'", subject=target
            )
        target = Referencable.reference(target, kind)
    elif not isinstance(target, Referencable):
        if callable(getattr(target, "influencer", None)):
            target = Referencable.qualified(target)
        else:
            target = Referencable.of(target)
    _check_kind(target, kind)
    return target


__all__ = [
    "Variant",
    "RefOrValue",
    "Referencable",
    "ref",
    "value",
    "qualified",
    "as_ref_or_value",
    "as_referencable",
]
