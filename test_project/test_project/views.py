'''Host application views standing in for the CRUD layer.

They fetch records from the in memory store and hand them to the serialiser
and the negotiated responders.
'''
from pyramid.httpexceptions import (
    HTTPBadRequest,
    HTTPForbidden,
    HTTPNotFound,
)
from pyramid.view import view_config

from pyramid_jsonapi_serialiser.errors import ValidationFailure

from . import models
from .test_data import (
    STORE,
    relationship_counts,
)

# type token -> to-many relationships whose counts we supply.
COUNTED = {
    'article': ('comments', 'tags'),
    'person': ('articles', 'comments'),
    'comment': (),
    'tag': ('articles',),
    'user-profile': (),
}


def get_schema(request):
    schema = request.registry.jsonapi_serialiser.registry.by_collection(
        request.matchdict['collection']
    )
    if schema is None:
        raise HTTPNotFound('No such collection.')
    return schema


def get_item(schema, item_id):
    try:
        return STORE[schema.type][int(item_id)]
    except (KeyError, ValueError):
        raise HTTPNotFound('No {} with id {}.'.format(schema.type, item_id))


def check_includes(request, type_token):
    bad = request.registry.jsonapi_serialiser.serialiser(
        request.jsonapi_selection
    ).bad_include_paths(type_token)
    if bad:
        raise HTTPBadRequest(
            'Bad include paths: {}'.format(', '.join(sorted(bad)))
        )


@view_config(route_name='collection', request_method='GET')
def collection_get(request):
    schema = get_schema(request)
    check_includes(request, schema.type)
    items = list(STORE[schema.type].values())
    doc = request.jsonapi_document(
        schema.type, items,
        counts=relationship_counts(items, *COUNTED[schema.type]),
        total=len(items),
    )
    return request.jsonapi_responders.ok(doc)


@view_config(route_name='item', request_method='GET')
def item_get(request):
    schema = get_schema(request)
    item = get_item(schema, request.matchdict['id'])
    check_includes(request, schema.type)
    doc = request.jsonapi_document(
        schema.type, item,
        counts=relationship_counts([item], *COUNTED[schema.type]),
    )
    return request.jsonapi_responders.ok(doc)


@view_config(route_name='item', request_method='DELETE')
def item_delete(request):
    schema = get_schema(request)
    item = get_item(schema, request.matchdict['id'])
    if schema.type == 'person':
        raise HTTPForbidden('People may not be deleted.')
    del STORE[schema.type][int(request.matchdict['id'])]
    return request.jsonapi_responders.no_content()


@view_config(route_name='articles_post')
def articles_post(request):
    try:
        data = request.json_body['data']
    except (ValueError, KeyError, TypeError):
        return request.jsonapi_responders.bad_request(
            'Request body must be a JSON:API document.'
        )
    atts = data.get('attributes', {})
    failures = [
        (name, 'Missing required attribute.')
        for name in ('title', 'summary') if not atts.get(name)
    ]
    if failures:
        raise ValidationFailure(failures)
    new_id = max(STORE['article']) + 1
    article = models.Article(
        id=new_id, title=atts['title'], summary=atts['summary'],
        content=atts.get('content'),
    )
    STORE['article'][new_id] = article
    return request.jsonapi_responders.created(
        request.jsonapi_document('article', article)
    )


@view_config(route_name='related', request_method='GET')
def related_get(request):
    schema = get_schema(request)
    item = get_item(schema, request.matchdict['id'])
    rel = schema.relationships.get(request.matchdict['relationship'])
    if rel is None:
        # Only reachable with unknown_association_guard turned off.
        raise HTTPNotFound('No such relationship.')
    return request.jsonapi_responders.ok(
        request.jsonapi_document(rel.target_type, getattr(item, rel.alias))
    )


@view_config(route_name='rendered', renderer='jsonapi')
def rendered(request):
    '''A host view using the jsonapi renderer directly.'''
    return request.jsonapi_document('person', STORE['person'][1])


@view_config(route_name='boom')
def boom(request):
    raise RuntimeError('connection to db:secret@localhost refused')


@view_config(route_name='unregistered')
def unregistered(request):
    return request.jsonapi_document('ghost', {'id': 1})


@view_config(route_name='echo', renderer='json')
def echo(request):
    return {
        'method': request.method,
        'path': request.path_info,
        'content_type': request.response.content_type,
    }
