"""Error types and conversion of errors to JSON:API error objects."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import NamedTuple, Optional

from pyramid.httpexceptions import (
    HTTPBadRequest,
    HTTPException,
    HTTPInternalServerError,
    HTTPUnprocessableEntity,
)


class FieldError(NamedTuple):
    """A single validation failure on attribute ``field`` (dotted path)."""
    field: str
    detail: str


class ValidationFailure(HTTPUnprocessableEntity):
    """One or more field level validation failures.

    Arguments:
        failures: iterable of FieldError or (field, detail) pairs.
    """

    def __init__(self, failures, detail=None, **kw):
        self.failures = [FieldError(*f) for f in failures]
        super().__init__(
            detail or '; '.join('{}: {}'.format(*f) for f in self.failures),
            **kw
        )


class UnresolvableRelationship(HTTPBadRequest):
    """A request path named a relationship the resource does not have."""
    explanation = 'Unable to identify relationship'

    def __init__(self, detail='Unable to identify relationship', **kw):
        super().__init__(detail, **kw)


@dataclass
class ErrorObject:
    status: str
    title: str
    detail: Optional[str] = None
    pointer: Optional[str] = None

    def as_dict(self):
        err = {'status': self.status, 'title': self.title}
        if self.detail:
            err['detail'] = self.detail
        if self.pointer:
            err['source'] = {'pointer': self.pointer}
        return err


def attribute_pointer(field):
    """JSON pointer to an attribute: 'a.b' -> '/data/attributes/a/b'."""
    if not field:
        return None
    return '/data/attributes/{}'.format('/'.join(str(field).split('.')))


def generic_error(default=HTTPInternalServerError):
    return ErrorObject(str(default.code), default.title)


def jsonify_error(error, default=HTTPInternalServerError):
    """Convert an error into a list of ErrorObjects.

    Arguments:
        error: a ValidationFailure, a pyramid HTTPException, a mapping with
            any of 'status', 'title', 'detail' and 'field', a string detail,
            None, or a list of these.
        default: HTTPException class providing status and title when error
            doesn't.

    Any other exception produces a generic 500 error without detail so that
    internal messages are never exposed.
    """
    if error is None:
        return [generic_error(default)]
    if isinstance(error, (list, tuple)):
        return [obj for err in error for obj in jsonify_error(err, default)]
    if isinstance(error, ValidationFailure):
        return [
            ErrorObject(
                str(error.code), error.title, failure.detail,
                attribute_pointer(failure.field)
            )
            for failure in error.failures
        ]
    if isinstance(error, HTTPException):
        return [
            ErrorObject(
                str(error.code), error.title, error.detail or None,
                attribute_pointer(getattr(error, 'field', None))
            )
        ]
    if isinstance(error, Mapping):
        return [
            ErrorObject(
                str(error.get('status', default.code)),
                error.get('title', default.title),
                error.get('detail'),
                attribute_pointer(error.get('field')),
            )
        ]
    if isinstance(error, str):
        return [ErrorObject(str(default.code), default.title, error)]
    return [generic_error()]


def errors_document(error, default=HTTPInternalServerError):
    return {'errors': [err.as_dict() for err in jsonify_error(error, default)]}
