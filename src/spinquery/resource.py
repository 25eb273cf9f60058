"""Lazy query-result resources.

A resource binds a query to a data source and defers execution until the
result is first needed.  The result is memoized for the life of the
instance and is the basis for the entity tag and the response envelope.

* :class:`QueryModelResource` queries an in-process :class:`rdflib.Graph`
  (CONSTRUCT and DESCRIBE only).
* :class:`EndpointModelResource` queries a remote SPARQL endpoint (any
  query form).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from rdflib import Graph
from rdflib.compare import to_isomorphic
from rdflib.query import Result

from spinquery import manager as data_manager
from spinquery import media
from spinquery.errors import InvalidArgument
from spinquery.manager import DataManager, QueryLike, to_compiled_query
from spinquery.translate import CompiledQuery, describe_query
from spinquery.vocabulary import MediaTypes

logger = logging.getLogger(__name__)

__all__ = [
    "EndpointModelResource",
    "EntityTag",
    "ModelResource",
    "ModelResponse",
    "QueryModelResource",
    "ResourceState",
    "create_resource",
]

Model = Union[Graph, Result]


class ResourceState(str, Enum):
    """Execution state of a :class:`ModelResource`."""

    UNBOUND = "unbound"
    EXECUTING = "executing"
    MEMOIZED = "memoized"
    FAILED = "failed"


@dataclass(frozen=True)
class EntityTag:
    """An HTTP entity tag."""

    value: str
    weak: bool = False

    def __str__(self) -> str:
        return f'W/"{self.value}"' if self.weak else f'"{self.value}"'


@dataclass
class ModelResponse:
    """Response envelope built from a memoized result."""

    entity: Model
    media_type: str
    status: int = 200
    entity_tag: Optional[EntityTag] = None

    def serialize(self, media_type: Optional[str] = None) -> bytes:
        return media.serialize(self.entity, media_type or self.media_type)


class ModelResource:
    """Base class: memoized execution of a query against a source.

    The first call to :meth:`get_model` runs the query; later calls return
    the stored result.  A failed execution is not cached, so the next call
    tries again.  A lock guards the transition so concurrent first access
    executes the query once.
    """

    def __init__(
        self,
        query: Optional[QueryLike],
        request: Any = None,
        media_type: Optional[str] = None,
        manager: Optional[DataManager] = None,
    ) -> None:
        if query is None:
            raise InvalidArgument("Query must be not null")
        self._query = to_compiled_query(query)
        self._request = request
        self._media_type = media_type
        self._manager = manager
        self._model: Optional[Model] = None
        self._state = ResourceState.UNBOUND
        self._lock = threading.Lock()

    # ── Execution ─────────────────────────────────────────────────

    def get_model(self) -> Model:
        """Return the query result, executing the query on first access."""
        with self._lock:
            if self._state is ResourceState.MEMOIZED:
                return self._model

            self._state = ResourceState.EXECUTING
            try:
                model = self._load_model(self._manager or data_manager.get())
            except Exception:
                self._state = ResourceState.FAILED
                raise

            self._model = model
            self._state = ResourceState.MEMOIZED
            logger.debug(f"Number of Model stmts read: {len(model)}")
            return model

    def _load_model(self, manager: DataManager) -> Model:
        raise NotImplementedError

    def get_entity_tag(self) -> Optional[EntityTag]:
        """Fingerprint of the result, or ``None`` if none is available."""
        return None

    def get_response(self) -> ModelResponse:
        media_type = self.get_media_type()
        logger.debug(f"Writing response as {media_type}")
        return ModelResponse(
            entity=self.get_model(),
            media_type=media_type,
            status=200,
            entity_tag=self.get_entity_tag(),
        )

    # ── Accessors ─────────────────────────────────────────────────

    def get_query(self) -> CompiledQuery:
        return self._query

    def get_request(self) -> Any:
        return self._request

    def get_media_type(self) -> str:
        if self._media_type is not None:
            return self._media_type
        return MediaTypes.DEFAULT

    def get_state(self) -> ResourceState:
        return self._state


class QueryModelResource(ModelResource):
    """CONSTRUCT/DESCRIBE query over an in-process graph."""

    def __init__(
        self,
        query_model: Optional[Graph],
        query: Optional[QueryLike],
        request: Any = None,
        media_type: Optional[str] = None,
        manager: Optional[DataManager] = None,
    ) -> None:
        if query_model is None:
            raise InvalidArgument("Query Model must be not null")
        super().__init__(query, request=request, media_type=media_type, manager=manager)
        if not (self._query.is_construct() or self._query.is_describe()):
            raise InvalidArgument("Query must be not null and CONSTRUCT or DESCRIBE")
        self._query_model = query_model

        logger.debug(f"Query Model: {query_model.identifier} Query: {self._query}")

    @classmethod
    def from_uri(cls, query_model: Graph, uri: str, **kwargs: Any) -> QueryModelResource:
        """Resource describing *uri* (``DESCRIBE <uri>``)."""
        return cls(query_model, describe_query(uri), **kwargs)

    def _load_model(self, manager: DataManager) -> Model:
        logger.debug(f"Querying Model: {self._query_model.identifier} with Query: {self._query}")
        return manager.load_model(self._query_model, self._query)

    def get_query_model(self) -> Graph:
        return self._query_model

    def get_entity_tag(self) -> EntityTag:
        digest = to_isomorphic(self.get_model()).graph_digest()
        return EntityTag(format(digest, "x"))


class EndpointModelResource(ModelResource):
    """Query of any form against a remote SPARQL endpoint."""

    def __init__(
        self,
        endpoint_uri: Optional[str],
        query: Optional[QueryLike],
        request: Any = None,
        media_type: Optional[str] = None,
        manager: Optional[DataManager] = None,
    ) -> None:
        if not endpoint_uri:
            raise InvalidArgument("Endpoint URI must be not null")
        super().__init__(query, request=request, media_type=media_type, manager=manager)
        self._endpoint_uri = endpoint_uri

        logger.debug(f"Endpoint URI: {endpoint_uri} Query: {self._query}")

    @classmethod
    def from_uri(cls, endpoint_uri: str, uri: str, **kwargs: Any) -> EndpointModelResource:
        """Resource describing *uri* (``DESCRIBE <uri>``) at the endpoint."""
        return cls(endpoint_uri, describe_query(uri), **kwargs)

    def _load_model(self, manager: DataManager) -> Model:
        logger.debug(f"Querying remote service: {self._endpoint_uri} with Query: {self._query}")
        return manager.load_model(self._endpoint_uri, self._query)

    def get_endpoint_uri(self) -> str:
        return self._endpoint_uri

    def get_media_type(self) -> str:
        if self._media_type is None and (self._query.is_select() or self._query.is_ask()):
            return MediaTypes.SPARQL_RESULTS_JSON
        return super().get_media_type()


def create_resource(
    source: Union[Graph, str, None],
    query: Optional[QueryLike],
    request: Any = None,
    media_type: Optional[str] = None,
    manager: Optional[DataManager] = None,
) -> ModelResource:
    """Create the resource variant matching *source*.

    A :class:`rdflib.Graph` gives a :class:`QueryModelResource`; an endpoint
    URI gives an :class:`EndpointModelResource`.
    """
    if isinstance(source, Graph):
        return QueryModelResource(source, query, request, media_type, manager)
    if isinstance(source, str):
        return EndpointModelResource(source, query, request, media_type, manager)
    raise InvalidArgument("Source must be a Graph or an endpoint URI")
