"""Local dataset routes: /api/query and /api/resource."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from spinquery.backend.negotiation import write_resource
from spinquery.models import QueryRequest
from spinquery.resource import QueryModelResource
from spinquery.translate import compile_query

query_bp = Blueprint("query", __name__)


def _media_type() -> str:
    return current_app.config.get("DEFAULT_MEDIA_TYPE")


@query_bp.route("/query", methods=["GET", "POST"])
def run_query():
    """Run a CONSTRUCT or DESCRIBE query over the local dataset.

    The query comes from the ``query`` parameter (GET), a JSON body or a
    form field (POST).
    """
    if request.method == "POST" and request.is_json:
        data = request.get_json()
    elif request.method == "POST":
        data = request.form.to_dict()
    else:
        data = request.args.to_dict()

    if not data.get("query"):
        return jsonify({"error": "Missing 'query'"}), 400

    payload = QueryRequest.model_validate(data)
    resource = QueryModelResource(
        current_app.config["DATASET"],
        compile_query(payload.query, base_uri=payload.base_uri),
        request=request,
        media_type=_media_type(),
        manager=current_app.config["DATA_MANAGER"],
    )
    return write_resource(resource)


@query_bp.route("/resource", methods=["GET"])
def describe_resource():
    """Describe one resource of the local dataset (``DESCRIBE <uri>``)."""
    uri = request.args.get("uri", "")
    if not uri:
        return jsonify({"error": "Missing 'uri'"}), 400

    resource = QueryModelResource.from_uri(
        current_app.config["DATASET"],
        uri,
        request=request,
        media_type=_media_type(),
        manager=current_app.config["DATA_MANAGER"],
    )
    return write_resource(resource)
