"""Media type selection and serialization of query results."""

from __future__ import annotations

import logging
from typing import Optional, Union

from rdflib import Graph
from rdflib.query import Result
from werkzeug.datastructures import MIMEAccept
from werkzeug.http import parse_accept_header

from spinquery.vocabulary import MediaTypes

logger = logging.getLogger(__name__)

Model = Union[Graph, Result]


def is_graph(model: Model) -> bool:
    return isinstance(model, Graph)


def offered_media_types(model: Model) -> tuple[str, ...]:
    """Media types a result can be written as, preferred first."""
    if is_graph(model):
        return MediaTypes.GRAPH_TYPES
    return MediaTypes.RESULT_SET_TYPES


def default_media_type(model: Model) -> str:
    return offered_media_types(model)[0]


def select_media_type(
    accept: Union[str, MIMEAccept, None],
    model: Model,
    default: Optional[str] = None,
) -> Optional[str]:
    """Pick the best media type for *model* given an ``Accept`` header.

    Returns ``None`` when nothing offered is acceptable.
    """
    offered = offered_media_types(model)
    if default not in offered:
        default = offered[0]
    if not accept:
        return default
    if isinstance(accept, str):
        accept = parse_accept_header(accept, MIMEAccept)
    if not accept:
        return default

    # put the preferred default first so it wins quality ties
    ordered = [default] + [m for m in offered if m != default]
    best = accept.best_match(ordered)
    logger.debug(f"Accept {accept.to_header()!r} -> {best}")
    return best


def serialize(model: Model, media_type: str) -> bytes:
    """Serialize a graph or a SPARQL result set as *media_type*."""
    if media_type not in offered_media_types(model):
        raise ValueError(f"Cannot write {type(model).__name__} as {media_type}")

    # Graph.serialize and Result.serialize both return bytes when an
    # encoding is given and no destination
    return model.serialize(format=MediaTypes.FORMATS[media_type], encoding="utf-8")
