"""
SPARQL Helper - SPARQL protocol client for remote endpoints.

This module handles:
- Automatic GET → POST fallback for endpoints that require POST
- Exponential backoff retry logic for transient failures
- Content negotiation per query form (result sets vs. RDF graphs)
- HTML error detection in responses
- Consistent logging across all SPARQL operations

Failures are raised as :class:`~spinquery.errors.EndpointError` (a
:class:`~spinquery.errors.QueryEvaluationFailure`); nothing is swallowed.

Usage:
    from spinquery.sparql_helper import SparqlHelper

    helper = SparqlHelper("https://sparql.example.org/")

    # SELECT (returns an rdflib Result)
    result = helper.select("SELECT ?s ?p ?o WHERE { ?s ?p ?o } LIMIT 10")

    # CONSTRUCT / DESCRIBE (returns an rdflib Graph)
    graph = helper.construct_graph("CONSTRUCT { ?s ?p ?o } WHERE { ?s ?p ?o }")

    # ASK (returns bool)
    exists = helper.ask("ASK { ?s a <http://example.org/Class> }")
"""

from __future__ import annotations

import io
import json
import logging
import secrets
import time
from typing import Any, Literal

import requests
from rdflib import Graph
from rdflib.query import Result, ResultException

from spinquery.errors import EndpointError
from spinquery.vocabulary import MediaTypes

logger = logging.getLogger(__name__)

QueryForm = Literal["SELECT", "CONSTRUCT", "DESCRIBE", "ASK"]

# Accept headers for the different query forms
SELECT_ACCEPT = f"{MediaTypes.SPARQL_RESULTS_JSON}, {MediaTypes.SPARQL_RESULTS_XML};q=0.9"
GRAPH_ACCEPT = (
    f"{MediaTypes.TURTLE}, {MediaTypes.NTRIPLES};q=0.9, "
    f"{MediaTypes.RDF_XML};q=0.8, {MediaTypes.JSONLD};q=0.7"
)

# Response content type -> rdflib parser name
GRAPH_PARSERS = {
    MediaTypes.TURTLE: "turtle",
    "text/n3": "n3",
    MediaTypes.NTRIPLES: "nt",
    MediaTypes.RDF_XML: "xml",
    MediaTypes.JSONLD: "json-ld",
}


class SparqlHelper:
    """
    SPARQL query executor with automatic fallback and retry logic.

    Attributes:
        endpoint_url: The SPARQL endpoint URL
        use_post: If True, always use POST method (skip GET attempt)
        max_retries: Maximum number of retry attempts
        initial_backoff: Initial backoff delay in seconds
        max_backoff: Maximum backoff delay in seconds
        timeout: Request timeout in seconds

    Example:
        >>> helper = SparqlHelper("https://sparql.swisslipids.org/")
        >>> result = helper.select("SELECT ?g { GRAPH ?g { ?s ?p ?o } }")
        >>> for row in result:
        ...     print(row.g)
    """

    # Error patterns that indicate POST should be tried
    POST_RETRY_PATTERNS = ("html", "500", "internal", "method not allowed")

    # HTML markers that indicate an error response instead of RDF
    HTML_MARKERS = ("<!DOCTYPE", "<html", "<HTML", "<!doctype")

    # HTTP status codes that warrant a retry
    RETRY_STATUS_CODES = (500, 502, 503, 504, 429)

    def __init__(
        self,
        endpoint_url: str,
        *,
        use_post: bool = False,
        max_retries: int = 3,
        initial_backoff: float = 1.0,
        max_backoff: float = 30.0,
        timeout: float = 60.0,
    ) -> None:
        """
        Initialize the SPARQL helper.

        Args:
            endpoint_url: SPARQL endpoint URL
            use_post: Always use POST (default: False, tries GET first)
            max_retries: Maximum retry attempts for transient failures
            initial_backoff: Initial delay between retries (seconds)
            max_backoff: Maximum delay between retries (seconds)
            timeout: Request timeout in seconds (default: 60)
        """
        self.endpoint_url = endpoint_url.rstrip("/")
        self.use_post = use_post
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self.timeout = timeout

        # Track if we've detected this endpoint requires POST
        self._requires_post = use_post

        # Session for connection pooling
        self._session = requests.Session()

        logger.debug(f"SparqlHelper initialized for {self.endpoint_url}")

    def select(self, query: str) -> Result:
        """
        Execute a SELECT query and return its result set.

        Raises:
            EndpointError: If the endpoint returns an error after all retries
        """
        body, _ = self._execute(query, accept=SELECT_ACCEPT, query_type="SELECT")
        try:
            return Result.parse(io.StringIO(body), format="json")
        except (ValueError, KeyError, ResultException) as e:
            raise EndpointError(f"Malformed SPARQL results from {self.endpoint_url}: {e}") from e

    def ask(self, query: str) -> bool:
        """
        Execute an ASK query and return boolean result.

        Raises:
            EndpointError: If the endpoint returns an error after all retries
        """
        body, _ = self._execute(query, accept=SELECT_ACCEPT, query_type="ASK")
        try:
            return bool(json.loads(body).get("boolean", False))
        except json.JSONDecodeError as e:
            raise EndpointError(f"Malformed ASK result from {self.endpoint_url}: {e}") from e

    def construct_graph(self, query: str, query_type: QueryForm = "CONSTRUCT") -> Graph:
        """
        Execute a CONSTRUCT (or DESCRIBE) query and return an RDFLib Graph.

        Raises:
            EndpointError: If the endpoint fails or returns unparseable RDF
        """
        body, content_type = self._execute(query, accept=GRAPH_ACCEPT, query_type=query_type)

        graph = Graph()
        if not body.strip():
            return graph

        fmt = GRAPH_PARSERS.get(content_type, "turtle")
        try:
            graph.parse(data=body, format=fmt)
        except Exception as e:
            raise EndpointError(
                f"Failed to parse {query_type} result as {fmt} from {self.endpoint_url}: {e}"
            ) from e
        return graph

    def describe_graph(self, query: str) -> Graph:
        """Execute a DESCRIBE query and return an RDFLib Graph."""
        return self.construct_graph(query, query_type="DESCRIBE")

    def _execute(self, query: str, accept: str, query_type: QueryForm) -> tuple[str, str]:
        """
        Execute a SPARQL query with automatic GET/POST fallback and retry.

        Returns:
            Response body and its media type (without parameters)

        Raises:
            EndpointError: If query fails after all retries
        """
        # Try GET first (unless we know POST is required)
        use_post = self._requires_post

        # switching from GET to POST does not count as an attempt
        attempt = 1
        while attempt <= self.max_retries:
            try:
                if use_post:
                    logger.debug(f"Executing {query_type} with POST")
                    response = self._post_query(query, accept)
                else:
                    logger.debug(f"Executing {query_type} with GET")
                    response = self._get_query(query, accept)

                body = response.text
                # Check if we got HTML instead of expected format
                if self._is_html_response(body):
                    if not use_post:
                        logger.debug("GET returned HTML, switching to POST")
                        self._requires_post = True
                        use_post = True
                        continue
                    raise EndpointError("Endpoint returned HTML error even with POST")

                content_type = response.headers.get("content-type", "")
                return body, content_type.split(";", 1)[0].strip().lower()

            except requests.exceptions.HTTPError as e:
                status_code = e.response.status_code if e.response is not None else 0

                # Check if this looks like a POST-required error (405 Method Not Allowed)
                if not use_post and status_code == 405:
                    logger.debug("GET returned 405, switching to POST")
                    self._requires_post = True
                    use_post = True
                    continue

                # Check for retryable status codes
                if status_code in self.RETRY_STATUS_CODES:
                    self._handle_retry(attempt, query_type, e)
                    attempt += 1
                    continue

                # Non-retryable HTTP error
                raise EndpointError(f"HTTP {status_code}: {e}") from e

            except requests.exceptions.RequestException as e:
                error_msg = str(e).lower()

                # Check if this looks like a POST-required error
                if not use_post and self._should_retry_with_post(error_msg):
                    logger.debug(f"GET failed, switching to POST: {e}")
                    self._requires_post = True
                    use_post = True
                    continue

                # Handle transient network errors with retry
                self._handle_retry(attempt, query_type, e)
                attempt += 1

        raise EndpointError(f"{query_type} query failed against {self.endpoint_url}")

    def _get_query(self, query: str, accept: str) -> requests.Response:
        """
        Execute SPARQL query using HTTP GET.

        Raises:
            requests.exceptions.HTTPError: On HTTP errors
        """
        headers = {
            "Accept": accept,
            "User-Agent": "spinquery/1.0 (SPARQL client)",
        }

        response = self._session.get(
            self.endpoint_url,
            params={"query": query},
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    def _post_query(self, query: str, accept: str) -> requests.Response:
        """
        Execute SPARQL query using HTTP POST.

        Uses application/x-www-form-urlencoded encoding as per SPARQL protocol.

        Raises:
            requests.exceptions.HTTPError: On HTTP errors
        """
        headers = {
            "Accept": accept,
            "Content-Type": "application/x-www-form-urlencoded",
            "User-Agent": "spinquery/1.0 (SPARQL client)",
        }

        response = self._session.post(
            self.endpoint_url,
            data={"query": query},
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    def _handle_retry(self, attempt: int, query_type: str, error: Exception) -> None:
        """
        Handle retry logic with exponential backoff.

        Raises:
            EndpointError: If max retries exceeded
        """
        logger.warning(f"Query attempt {attempt}/{self.max_retries} failed: {error}")

        if attempt >= self.max_retries:
            logger.error(f"{query_type} failed after {self.max_retries} tries")
            raise EndpointError(
                f"Query failed after {self.max_retries} attempts: {error}"
            ) from error

        # Exponential backoff with jitter
        backoff = min(self.initial_backoff * (2 ** (attempt - 1)), self.max_backoff)
        jitter = secrets.randbelow(int(backoff * 0.1 * 1000) + 1) / 1000
        sleep_time = backoff + jitter

        logger.info(f"Retrying in {sleep_time:.1f}s (attempt {attempt + 1}/{self.max_retries})")
        time.sleep(sleep_time)

    def _should_retry_with_post(self, error_msg: str) -> bool:
        """Check if error indicates POST method should be tried."""
        return any(pattern in error_msg for pattern in self.POST_RETRY_PATTERNS)

    def _is_html_response(self, content: str) -> bool:
        """Check if content appears to be HTML (error page) instead of RDF."""
        if not content:
            return False
        stripped = content.strip()
        return any(stripped.startswith(marker) for marker in self.HTML_MARKERS)

    def close(self) -> None:
        """Close the underlying requests session."""
        self._session.close()

    def __enter__(self) -> SparqlHelper:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        url = self.endpoint_url
        return f"SparqlHelper({url!r}, use_post={self._requires_post})"
