"""Query builder route: /api/builder/select."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from spinquery.api import build_select
from spinquery.models import SelectBuildRequest

builder_bp = Blueprint("builder", __name__)


@builder_bp.route("/select", methods=["POST"])
def select():
    """Translate a SELECT query to SPIN, apply edits and return both forms."""
    data = request.get_json(force=True, silent=True) or {}
    if not data.get("query"):
        return jsonify({"error": "Missing 'query'"}), 400

    result = build_select(SelectBuildRequest.model_validate(data))
    return jsonify(result.model_dump())
