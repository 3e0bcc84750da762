"""Errors raised while building or serializing provenance graphs."""

from __future__ import annotations

from rdflib.term import Node


class ProvenanceError(ValueError):
    """Base class for all provenance graph failures.

    ``subject`` and ``predicate`` name the offending statement where one is
    known so callers can report it without parsing the message.
    """

    def __init__(
        self,
        message: str,
        *,
        subject: Node | None = None,
        predicate: Node | None = None,
    ) -> None:
        super().__init__(message)
        self.subject = subject
        self.predicate = predicate


class EmptyDatasetError(ProvenanceError):
    """No statements exist for the requested context."""


class ContextMismatchError(ProvenanceError):
    """The context does not declare a bundle with its own identifier."""


class TypeMismatchError(ProvenanceError):
    """An object was found where a different kind was required."""


class AmbiguousTypeError(ProvenanceError):
    """A link subject carries more than one irreducible type."""


class UnrecognizedTypeError(ProvenanceError):
    """A PROV class IRI has no mapping in the vocabulary."""


class MissingRequiredFieldError(ProvenanceError):
    """A qualification or link lacks its mandatory related node."""


class NotMaterializedError(ProvenanceError):
    """An accessor was called on the wrong variant of a reference union."""


class CyclicBundleError(ProvenanceError):
    """Bundle links lead back to a bundle that is already being built."""


__all__ = [
    "ProvenanceError",
    "EmptyDatasetError",
    "ContextMismatchError",
    "TypeMismatchError",
    "AmbiguousTypeError",
    "UnrecognizedTypeError",
    "MissingRequiredFieldError",
    "NotMaterializedError",
    "CyclicBundleError",
]
