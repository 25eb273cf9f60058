"""Remote endpoint route: /api/endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from spinquery.backend.negotiation import write_resource
from spinquery.models import EndpointQueryRequest
from spinquery.resource import EndpointModelResource

endpoint_bp = Blueprint("endpoint", __name__)


@endpoint_bp.route("", methods=["POST"])
def query_endpoint():
    """Run a query of any form against a remote SPARQL endpoint.

    SELECT/ASK results are written as SPARQL results, CONSTRUCT/DESCRIBE
    results as RDF.  Endpoint results carry no ETag.
    """
    data = request.get_json(force=True, silent=True) or {}
    if not data.get("query") or not data.get("endpoint"):
        return jsonify({"error": "Missing 'query' or 'endpoint'"}), 400

    payload = EndpointQueryRequest.model_validate(data)
    resource = EndpointModelResource(
        payload.endpoint,
        payload.query,
        request=request,
        manager=current_app.config["DATA_MANAGER"],
    )
    return write_resource(resource)
