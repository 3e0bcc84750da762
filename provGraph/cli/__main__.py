"""Top-level CLI for building, normalizing and moving provenance bundles."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Optional

import click
import requests
from rdflib import URIRef
from tabulate import tabulate

from provGraph import __version__
from provGraph.config import load_config
from provGraph.errors import ProvenanceError
from provGraph.kg.builder import to_bundle
from provGraph.kg.export import write_dataset
from provGraph.kg.serializer import add_to_graph
from provGraph.kg.sparql import SPARQLClient, SPARQLStore
from provGraph.kg.store import DatasetStore
from provGraph.model import Bundle


def _reported(func):
    """Turn library failures into click errors with a readable message."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ProvenanceError as exc:
            raise click.ClickException(f"{type(exc).__name__}: {exc}") from exc
        except (RuntimeError, ValueError, requests.RequestException) as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


def _client() -> SPARQLClient:
    cfg = load_config()
    return SPARQLClient(
        cfg.endpoint, update_endpoint=cfg.update_endpoint, timeout=cfg.timeout
    )


def _follow(follow: Optional[bool]) -> Optional[bool]:
    return load_config().follow_links if follow is None else follow


def _load(path: Path, bundle_id: URIRef, fmt: Optional[str]) -> DatasetStore:
    store = DatasetStore()
    store.parse(path, format=fmt or load_config().input_format, context=bundle_id)
    return store


def _normalized(bundle: Bundle) -> DatasetStore:
    store = DatasetStore()
    add_to_graph(bundle, store)
    return store


bundle_option = click.option(
    "--bundle", "bundle_iri", required=True, help="IRI of the bundle and its context."
)
format_option = click.option(
    "--format", "fmt", default=None, help="RDF format of FILE; guessed from its suffix."
)
follow_option = click.option(
    "--follow/--no-follow",
    default=None,
    help="Build linked bundles too; by default only when the bundle has links.",
)


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
def cli(verbose: bool) -> None:  # pragma: no cover - simple wrapper
    """provGraph command line."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@bundle_option
@format_option
@follow_option
@_reported
def inspect(file: Path, bundle_iri: str, fmt: Optional[str], follow: Optional[bool]) -> None:
    """Build the bundle stored in FILE and summarise its contents."""
    bundle_id = URIRef(bundle_iri)
    bundle = to_bundle(bundle_id, _load(file, bundle_id, fmt), follow_links=_follow(follow))
    rows = [
        (str(item.id), item.kind.value, "reference" if item.is_ref else "value")
        for item in bundle.items
    ]
    click.echo(tabulate(rows, headers=["Item", "Kind", "Form"]))
    if bundle.links:
        link_rows = [
            (str(link.subject.id), str(link.mention_of), str(link.as_in_bundle.id))
            for link in bundle.links
        ]
        click.echo()
        click.echo(tabulate(link_rows, headers=["Subject", "Mention of", "In bundle"]))
    click.echo()
    click.echo(f"Bundle includes: {bundle.bundle_includes()}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@bundle_option
@format_option
@follow_option
@click.option(
    "--out",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Output file; TriG when it ends in .trig, N-Quads otherwise.",
)
@_reported
def normalize(
    file: Path, bundle_iri: str, fmt: Optional[str], follow: Optional[bool], out: Path
) -> None:
    """Rebuild the bundle in FILE and write it back in canonical form."""
    bundle_id = URIRef(bundle_iri)
    bundle = to_bundle(bundle_id, _load(file, bundle_id, fmt), follow_links=_follow(follow))
    path = write_dataset(_normalized(bundle).dataset, out)
    click.echo(f"Wrote {path}")


@cli.command()
@bundle_option
@follow_option
@click.option(
    "--out",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Output file; TriG when it ends in .trig, N-Quads otherwise.",
)
@_reported
def pull(bundle_iri: str, follow: Optional[bool], out: Path) -> None:
    """Build a bundle from the configured SPARQL endpoint and write it to a file."""
    client = _client()
    try:
        bundle = to_bundle(
            URIRef(bundle_iri), SPARQLStore(client), follow_links=_follow(follow)
        )
    finally:
        client.close()
    path = write_dataset(_normalized(bundle).dataset, out)
    click.echo(f"Wrote {path}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@bundle_option
@format_option
@follow_option
@_reported
def push(file: Path, bundle_iri: str, fmt: Optional[str], follow: Optional[bool]) -> None:
    """Build the bundle in FILE and insert it into the configured SPARQL endpoint."""
    bundle_id = URIRef(bundle_iri)
    bundle = to_bundle(bundle_id, _load(file, bundle_id, fmt), follow_links=_follow(follow))
    client = _client()
    try:
        count = add_to_graph(bundle, SPARQLStore(client))
    finally:
        client.close()
    click.echo(f"Pushed {count} statements to {client.update_endpoint}")


def main() -> None:  # pragma: no cover - console entry
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
