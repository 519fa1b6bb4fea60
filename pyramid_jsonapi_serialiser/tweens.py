"""Request path tween: negotiation, unknown association guard, header checks."""

import re

from pyramid.httpexceptions import (
    HTTPNotAcceptable,
    HTTPUnsupportedMediaType,
)
from pyramid.response import Response

from pyramid_jsonapi_serialiser.errors import UnresolvableRelationship
from pyramid_jsonapi_serialiser.responders import (
    MEDIA_TYPE,
    get_jsonapi_accepts,
    negotiate_response,
    request_media_type,
)

RELATIONSHIP_PATH_RE = re.compile(
    r'^/(?P<collection>[A-Za-z][A-Za-z0-9_-]*)/(?P<id>[0-9]+)/(?P<relationship>[A-Za-z][A-Za-z0-9_-]*)/?$'
)


def unresolvable_relationship(path, registry):
    """True if path looks like /<collection>/<id>/<relationship> for a
    registered collection which has no such relationship.

    Arguments:
        path (str): request path relative to the api prefix.
        registry (SchemaRegistry): registered schemas.
    """
    match = RELATIONSHIP_PATH_RE.match(path)
    if not match:
        return False
    schema = registry.by_collection(match.group('collection'))
    if schema is None:
        # Not one of ours: leave it to the host's routing.
        return False
    return match.group('relationship') not in schema.relationships


def unresolvable_relationship_response():
    exc = UnresolvableRelationship()
    return Response(
        status=exc.code,
        content_type=MEDIA_TYPE,
        json_body={'errors': [{'title': exc.title, 'detail': exc.detail}]},
    )


def validate_request_headers(request):
    """Check that request headers comply with the JSON:API spec.

    Raises:
        HTTPUnsupportedMediaType
        HTTPNotAcceptable
    """
    # Spec says to reject (with 415) any request with media type
    # params.
    content_type = request.headers.get('content-type', '')
    if request_media_type(request) == MEDIA_TYPE and len(content_type.split(';')) > 1:
        raise HTTPUnsupportedMediaType(
            'Media Type parameters not allowed by JSONAPI ' +
            'spec (http://jsonapi.org/format).'
        )
    # Spec says throw 406 Not Acceptable if Accept header has no
    # application/vnd.api+json entry without parameters.
    jsonapi_accepts = get_jsonapi_accepts(request)
    if jsonapi_accepts and MEDIA_TYPE not in jsonapi_accepts:
        raise HTTPNotAcceptable(
            'application/vnd.api+json must appear with no ' +
            'parameters in Accepts header ' +
            '(http://jsonapi.org/format).'
        )


def jsonapi_tween_factory(handler, registry):
    """Tween running before any view for paths under the api prefix."""
    api = registry.jsonapi_serialiser

    def jsonapi_tween(request):
        path = api.rp_constructor.strip_api_prefix(request.path_info)
        if path is None:
            return handler(request)
        negotiate_response(request)
        if api.settings_flag('unknown_association_guard') and \
                unresolvable_relationship(path, api.registry):
            return unresolvable_relationship_response()
        if api.settings_flag('validate_headers'):
            validate_request_headers(request)
        return handler(request)

    return jsonapi_tween
