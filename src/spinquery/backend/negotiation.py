"""Write a query-result resource as an HTTP response."""

from __future__ import annotations

import logging

from flask import Response, abort, request

from spinquery import media
from spinquery.resource import ModelResource

logger = logging.getLogger(__name__)


def write_resource(resource: ModelResource) -> Response:
    """Negotiate the media type, serialize the result and apply the ETag.

    Conditional GET requests whose ``If-None-Match`` matches the entity tag
    get ``304 Not Modified``.
    """
    model = resource.get_model()
    media_type = media.select_media_type(
        request.accept_mimetypes, model, default=resource.get_media_type(),
    )
    if media_type is None:
        offered = ", ".join(media.offered_media_types(model))
        abort(406, description=f"Acceptable media types: {offered}")

    envelope = resource.get_response()
    response = Response(
        media.serialize(envelope.entity, media_type),
        status=envelope.status,
        mimetype=media_type,
    )
    response.vary.add("Accept")

    if envelope.entity_tag is not None:
        response.set_etag(envelope.entity_tag.value, weak=envelope.entity_tag.weak)
    logger.debug(f"Responding with {media_type} (ETag: {envelope.entity_tag})")
    return response.make_conditional(request)
