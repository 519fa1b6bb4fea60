"""Content negotiated responders.

A responder is a callable ``responder(request, data=None, **options)``
returning a response. Plain responders produce the usual pyramid responses.
Hypermedia responders (named ``<name>_jsonapi``) produce JSON:API documents.
"""

import datetime
import decimal
import logging
import re
from functools import partial

from pyramid.httpexceptions import (
    HTTPBadRequest,
    HTTPCreated,
    HTTPError,
    HTTPException,
    HTTPForbidden,
    HTTPInternalServerError,
    HTTPNoContent,
    HTTPNotAcceptable,
    HTTPNotFound,
    HTTPOk,
    HTTPUnprocessableEntity,
    HTTPUnsupportedMediaType,
)
from pyramid.renderers import JSON

from pyramid_jsonapi_serialiser.errors import (
    errors_document,
    generic_error,
)

MEDIA_TYPE = 'application/vnd.api+json'


def jsonapi_renderer():
    """JSON renderer with adapters for common non-JSON attribute types."""
    renderer = JSON()
    renderer.add_adapter(datetime.date, lambda obj, request: obj.isoformat())
    renderer.add_adapter(datetime.time, lambda obj, request: obj.isoformat())
    renderer.add_adapter(decimal.Decimal, lambda obj, request: str(obj))
    return renderer


_render = jsonapi_renderer()(None)


def get_jsonapi_accepts(request):
    """Return a set of all 'application/vnd.api' parts of the accept
    header.
    """
    accepts = re.split(
        r',\s*',
        request.headers.get('accept', '')
    )
    return {
        a for a in accepts
        if a.startswith('application/vnd.api')
    }


def request_media_type(request):
    return request.headers.get('content-type', '').split(';')[0].strip()


def negotiate_response(request):
    """Give request.response the JSON:API media type if the client asked for it.

    The client asks by sending a JSON:API Content-Type or by listing a JSON:API
    media type in Accept.
    """
    if request_media_type(request) == MEDIA_TYPE or get_jsonapi_accepts(request):
        request.response.content_type = MEDIA_TYPE
    return request.response


def is_jsonapi(request):
    return request.response.content_type == MEDIA_TYPE


def render_document(request, body, status_code, validator=None):
    """Write body to request.response as a JSON:API document."""
    response = request.response
    text = _render(body, {'request': request})
    response.status_code = status_code
    response.content_type = MEDIA_TYPE
    response.body = text.encode('utf-8')
    if validator is not None:
        for problem in validator.validate(body):
            logging.warning('Invalid JSON:API document: %s', problem)
    return response


def document_validator(request):
    api = getattr(request.registry, 'jsonapi_serialiser', None)
    return api.validator if api is not None else None


# Plain responders.

def plain_responder(exc_class):
    def responder(request, data=None, **options):
        if isinstance(data, HTTPException):
            return data
        if isinstance(data, str):
            return exc_class(detail=data, **options)
        if data is None or isinstance(data, Exception):
            return exc_class(**options)
        response = exc_class(**options)
        response.content_type = 'application/json'
        response.body = _render(data, {}).encode('utf-8')
        return response
    responder.__name__ = 'plain_{}'.format(exc_class.__name__)
    return responder


def no_content(request, data=None, **options):
    return HTTPNoContent(**options)


# Hypermedia responders.

def jsonapi_error_responder(exc_class):
    def responder(request, data=None, **options):
        return render_document(
            request, errors_document(data, exc_class), exc_class.code,
            document_validator(request)
        )
    responder.__name__ = 'jsonapi_{}'.format(exc_class.__name__)
    return responder


def server_error_jsonapi(request, data=None, **options):
    """500 with a generic error. The message in data is never sent."""
    return render_document(
        request, {'errors': [generic_error().as_dict()]}, 500,
        document_validator(request)
    )


def http_error_jsonapi(request, data=None, **options):
    """Any other HTTPError, keeping its own status code."""
    code = getattr(data, 'code', HTTPInternalServerError.code)
    if code >= 500:
        # Keep the status but never send the message.
        default = type(data) if isinstance(data, HTTPError) else HTTPInternalServerError
        return render_document(
            request, {'errors': [generic_error(default).as_dict()]}, code,
            document_validator(request)
        )
    return render_document(
        request, errors_document(data, HTTPBadRequest), code,
        document_validator(request)
    )


def jsonapi_success_responder(exc_class):
    def responder(request, data=None, **options):
        if data is None:
            data = {'data': None}
        response = render_document(
            request, data, exc_class.code, document_validator(request)
        )
        if exc_class is HTTPCreated:
            try:
                response.location = data['data']['links']['self']
            except (KeyError, TypeError):
                pass
        return response
    responder.__name__ = 'jsonapi_{}'.format(exc_class.__name__)
    return responder


ERROR_CLASSES = {
    'bad_request': HTTPBadRequest,
    'forbidden': HTTPForbidden,
    'not_found': HTTPNotFound,
    'not_acceptable': HTTPNotAcceptable,
    'unsupported_media_type': HTTPUnsupportedMediaType,
    'unprocessable_entity': HTTPUnprocessableEntity,
}

SUCCESS_CLASSES = {
    'created': HTTPCreated,
    'ok': HTTPOk,
}


def default_responders():
    responders = {
        'server_error': plain_responder(HTTPInternalServerError),
        'server_error_jsonapi': server_error_jsonapi,
        'http_error': plain_responder(HTTPInternalServerError),
        'http_error_jsonapi': http_error_jsonapi,
        'no_content': no_content,
    }
    for name, exc_class in ERROR_CLASSES.items():
        responders[name] = plain_responder(exc_class)
        responders['{}_jsonapi'.format(name)] = jsonapi_error_responder(exc_class)
    for name, exc_class in SUCCESS_CLASSES.items():
        responders[name] = plain_responder(exc_class)
        responders['{}_jsonapi'.format(name)] = jsonapi_success_responder(exc_class)
    return responders


class NegotiatingResponder:
    """Dispatch to a hypermedia or a plain responder by content type.

    Arguments:
        plain: responder used for non JSON:API responses. It is called with
            exactly the arguments this responder was called with.
        hypermedia: responder used for JSON:API responses.
        predicate: callable(request) -> bool choosing hypermedia.
    """

    def __init__(self, plain, hypermedia, predicate=is_jsonapi):
        self.plain = plain
        self.hypermedia = hypermedia
        self.predicate = predicate

    def __call__(self, request, *args, **kwargs):
        if self.predicate(request):
            return self.hypermedia(request, *args, **kwargs)
        return self.plain(request, *args, **kwargs)


class Responders:
    """Named responders resolved through an explicit precedence list.

    Custom responders (added with ``add()``) always win over the defaults,
    whatever order they were added in.
    """

    negotiated_names = (
        'bad_request',
        'forbidden',
        'not_found',
        'server_error',
        'not_acceptable',
        'unsupported_media_type',
        'unprocessable_entity',
        'http_error',
        'created',
        'ok',
    )

    def __init__(self, custom=None):
        self.custom = dict(custom or {})
        self.defaults = default_responders()

    @property
    def precedence(self):
        return [self.custom, self.defaults]

    def add(self, name, responder):
        """Register a custom responder."""
        self.custom[name] = responder

    def get(self, name):
        """The highest precedence responder called name."""
        for layer in self.precedence:
            try:
                return layer[name]
            except KeyError:
                continue
        raise KeyError(name)

    def negotiated(self, name):
        """Responder for name, negotiating by content type if applicable."""
        if name not in self.negotiated_names:
            return self.get(name)
        return NegotiatingResponder(
            self.get(name), self.get('{}_jsonapi'.format(name))
        )

    def bind(self, request):
        return BoundResponders(self, request)


class BoundResponders:
    """Negotiated responders bound to a request, as attributes.

    ``request.jsonapi_responders.not_found('No such article')``
    """

    def __init__(self, responders, request):
        self._responders = responders
        self._request = request

    def __getattr__(self, name):
        try:
            responder = self._responders.negotiated(name)
        except KeyError:
            raise AttributeError(name) from None
        return partial(responder, self._request)


STATUS_RESPONDERS = {exc_class.code: name for name, exc_class in ERROR_CLASSES.items()}


def responder_name(exc):
    """Name of the responder which should handle exception exc."""
    if isinstance(exc, HTTPError):
        code = int(exc.code)
        if code in STATUS_RESPONDERS:
            return STATUS_RESPONDERS[code]
        if code == 500:
            return 'server_error'
        return 'http_error'
    return 'server_error'
