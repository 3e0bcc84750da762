"""Deterministic file output for provenance datasets."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

from rdflib import Dataset
from rdflib.graph import DATASET_DEFAULT_GRAPH_ID

logger = logging.getLogger(__name__)


def nquad_lines(dataset: Dataset) -> List[str]:
    """Return every statement of ``dataset`` as a sorted list of N-Quads lines.

    Statements in the default graph are written as triples.
    """

    lines = []
    for s, p, o, c in dataset.quads((None, None, None, None)):
        context = getattr(c, "identifier", c)
        if context is None or context == DATASET_DEFAULT_GRAPH_ID:
            lines.append(f"{s.n3()} {p.n3()} {o.n3()} .")
        else:
            lines.append(f"{s.n3()} {p.n3()} {o.n3()} {context.n3()} .")
    return sorted(set(lines))


def write_nquads(dataset: Dataset, path: Union[str, Path]) -> Path:
    """Write ``dataset`` to ``path`` as sorted N-Quads."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = nquad_lines(dataset)
    with path.open("w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
    logger.info("Wrote %d statements to %s", len(lines), path)
    return path


def write_trig(dataset: Dataset, path: Union[str, Path]) -> Path:
    """Write ``dataset`` to ``path`` as TriG using its bound prefixes."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    dataset.serialize(destination=str(path), format="trig")
    logger.info("Wrote TriG to %s", path)
    return path


def write_dataset(dataset: Dataset, path: Union[str, Path]) -> Path:
    """Pick the writer from the suffix of ``path``; N-Quads unless ``.trig``."""

    if Path(path).suffix.lower() == ".trig":
        return write_trig(dataset, path)
    return write_nquads(dataset, path)


__all__ = ["nquad_lines", "write_nquads", "write_trig", "write_dataset"]
