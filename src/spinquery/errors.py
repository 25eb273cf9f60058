"""Exceptions raised by spinquery."""

from __future__ import annotations


class SpinQueryError(Exception):
    """Base exception for spinquery errors."""

    pass


class InvalidArgument(SpinQueryError, ValueError):
    """Raised when a constructor or mutator receives null or invalid input."""

    pass


class UnsupportedQuery(InvalidArgument):
    """Raised when a query uses constructs the SPIN translation does not cover."""

    pass


class QueryParseFailure(SpinQueryError):
    """Raised when a query string does not parse."""

    pass


class QueryEvaluationFailure(SpinQueryError):
    """Raised when a query cannot be evaluated against its data source."""

    pass


class EndpointError(QueryEvaluationFailure):
    """Raised when a remote SPARQL endpoint returns an error."""

    pass
