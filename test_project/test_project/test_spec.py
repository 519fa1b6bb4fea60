import json
import unittest

import webtest
from parameterized import parameterized

from pyramid_jsonapi_serialiser import MEDIA_TYPE
from pyramid_jsonapi_serialiser.validation import DocumentValidator

from test_project import main
from test_project import test_data

JSONAPI_ACCEPT = {'Accept': MEDIA_TYPE}


class AppTestCase(unittest.TestCase):
    '''Base class: build a test app from main() with settings.'''

    settings = {}

    @classmethod
    def setUpClass(cls):
        cls.app = main({}, **cls.settings)
        cls.test_app = webtest.TestApp(cls.app)

    def setUp(self):
        test_data.reset()

    def get(self, url, **kwargs):
        headers = kwargs.pop('headers', JSONAPI_ACCEPT)
        return self.test_app.get(url, headers=headers, **kwargs)


class TestSpec(AppTestCase):
    '''Test compliance against jsonapi spec.

    http://jsonapi.org/format/
    '''

    def test_spec_server_content_type(self):
        '''Response should have correct content type.

        Servers MUST send all JSON API data in response documents with the
        header Content-Type: application/vnd.api+json without any media type
        parameters.
        '''
        r = self.get('/people')
        self.assertEqual(r.content_type, MEDIA_TYPE)

    def test_spec_content_type_negotiated_by_request_content_type(self):
        '''A JSON:API request Content-Type also selects JSON:API responses.'''
        r = self.test_app.get('/people', headers={'Content-Type': MEDIA_TYPE})
        self.assertEqual(r.content_type, MEDIA_TYPE)

    def test_plain_json_when_not_asked(self):
        '''Clients not asking for JSON:API get plain JSON.'''
        r = self.test_app.get('/articles')
        self.assertEqual(r.content_type, 'application/json')
        self.assertEqual(len(r.json['data']), 3)

    def test_spec_incorrect_client_content_type(self):
        '''Server should return error if we send media type parameters.

        Servers MUST respond with a 415 Unsupported Media Type status code if a
        request specifies the header Content-Type: application/vnd.api+json with
        any media type parameters.
        '''
        r = self.test_app.get(
            '/people',
            headers={'Content-Type': 'application/vnd.api+json; param=val'},
            status=415,
        )
        self.assertEqual(r.json['errors'][0]['status'], '415')

    def test_spec_accept_not_acceptable(self):
        '''Server should respond with 406 if all jsonapi media types have parameters.

        Servers MUST respond with a 406 Not Acceptable status code if a
        request's Accept header contains the JSON API media type and all
        instances of that media type are modified with media type parameters.
        '''
        # Should work with correct accepts header.
        self.get('/people')
        # 406 with one incorrect type.
        self.test_app.get(
            '/people',
            headers={'Accept': 'application/vnd.api+json; param=val'},
            status=406,
        )
        # 406 with more than one type but none without params.
        r = self.test_app.get(
            '/people',
            headers={'Accept': 'application/vnd.api+json; param=val,' +
                'application/vnd.api+json; param2=val2'},
            status=406,
        )
        self.assertEqual(r.json['errors'][0]['status'], '406')

    def test_spec_toplevel_must(self):
        '''Server response must have one of data, errors or meta.'''
        r = self.get('/people')
        self.assertIn('data', r.json)
        self.assertIn('meta', r.json)
        r = self.test_app.get(
            '/people',
            headers={'Content-Type': 'application/vnd.api+json; param=val'},
            status=415,
        )
        self.assertIn('errors', r.json)
        self.assertIsInstance(r.json['errors'], list)

    def test_spec_get_primary_data_array(self):
        '''Should return an array of resource objects with total and links.'''
        r = self.get('/people')
        self.assertEqual(
            [(item['type'], item['id']) for item in r.json['data']],
            [('person', '1'), ('person', '2'), ('person', '3')]
        )
        self.assertEqual(r.json['meta'], {'total': 3})
        self.assertEqual(r.json['links'], {'self': '/people'})

    def test_spec_get_primary_data_single(self):
        '''Should return a single resource object with a self link.'''
        r = self.get('/people/1')
        data = r.json['data']
        self.assertEqual((data['type'], data['id']), ('person', '1'))
        self.assertEqual(
            data['attributes'],
            {'name': 'alice', 'age': 42, 'display_name': 'Alice'}
        )
        self.assertEqual(data['links'], {'self': '/people/1'})
        self.assertEqual(r.json['links'], {'self': '/people/1'})
        self.assertNotIn('meta', r.json)

    def test_spec_attributes_rendered(self):
        '''Dates and decimals are rendered as strings; foreign keys hidden.'''
        atts = self.get('/articles/1').json['data']['attributes']
        self.assertEqual(atts['published'], '2020-01-01')
        self.assertEqual(atts['price'], '1.50')
        self.assertNotIn('author_id', atts)

    def test_spec_relationship_links_and_counts(self):
        '''Relationships carry related links with counts.'''
        rels = self.get('/articles/1').json['data']['relationships']
        self.assertEqual(
            rels['comments']['links']['related'],
            {'href': '/articles/1/comments', 'meta': {'count': 3}}
        )
        self.assertEqual(rels['tags']['links']['related']['meta']['count'], 2)
        # Not populated by the view: reported as 0.
        self.assertEqual(rels['author']['links']['related']['meta']['count'], 0)
        self.assertNotIn('data', rels['comments'])

    def test_spec_multiword_type(self):
        '''Multi word model names give kebab tokens and exposed fields only.'''
        r = self.get('/user-profiles/1')
        data = r.json['data']
        self.assertEqual((data['type'], data['id']), ('user-profile', '1'))
        self.assertEqual(data['attributes'], {'bio': 'Likes tests.'})
        self.assertEqual(data['links'], {'self': '/user-profiles/1'})

    def test_spec_sparse_fields(self):
        '''Should return only requested fields.'''
        r = self.get('/articles?fields[article]=title,summary')
        for item in r.json['data']:
            self.assertEqual(set(item['attributes']), {'title', 'summary'})
            self.assertEqual(item['relationships'], {})

    def test_spec_sparse_fields_malformed_ignored(self):
        '''Malformed fieldsets are ignored rather than rejected.'''
        r = self.get('/articles?fields[art!cle]=title')
        self.assertIn('content', r.json['data'][0]['attributes'])

    def test_spec_include(self):
        '''Included resources are unique and never repeat primary data.'''
        r = self.get('/articles/1?include=author,comments.author')
        included = [(item['type'], item['id']) for item in r.json['included']]
        self.assertEqual(len(included), len(set(included)))
        self.assertEqual(
            set(included),
            {
                ('person', '1'), ('person', '2'), ('person', '3'),
                ('comment', '1'), ('comment', '2'), ('comment', '3'),
            }
        )
        rels = r.json['data']['relationships']
        self.assertEqual(rels['author']['data'], {'type': 'person', 'id': '1'})
        self.assertEqual(
            [ri['id'] for ri in rels['comments']['data']], ['1', '2', '3']
        )

    def test_spec_include_collection_dedup(self):
        '''One author of several articles is included once.'''
        r = self.get('/articles?include=author')
        self.assertEqual(
            sorted((item['type'], item['id']) for item in r.json['included']),
            [('person', '1'), ('person', '2')]
        )

    def test_spec_bad_include(self):
        '''Bad include paths are rejected with 400.'''
        r = self.get('/articles/1?include=ghost', status=400)
        self.assertEqual(
            r.json['errors'],
            [{'status': '400', 'title': 'Bad Request', 'detail': 'Bad include paths: ghost'}]
        )

    def test_spec_related(self):
        '''Related resource endpoints.'''
        r = self.get('/articles/1/comments')
        self.assertEqual(
            [(item['type'], item['id']) for item in r.json['data']],
            [('comment', '1'), ('comment', '2'), ('comment', '3')]
        )
        self.assertEqual(r.json['links'], {'self': '/comments'})
        r = self.get('/articles/1/author')
        self.assertEqual(r.json['data']['type'], 'person')

    def test_unknown_relationship_guard(self):
        '''Unknown relationships on known collections give 400 at once.'''
        r = self.test_app.get('/articles/42/ghost-relation', status=400)
        self.assertEqual(r.content_type, MEDIA_TYPE)
        self.assertEqual(
            r.json,
            {'errors': [{'title': 'Bad Request', 'detail': 'Unable to identify relationship'}]}
        )

    def test_unknown_collection_passes_guard(self):
        '''Unknown collections are left to the normal 404 handling.'''
        self.get('/ghosts/42/author', status=404)

    def test_spec_not_found(self):
        '''A JSON:API client gets an errors document.'''
        r = self.get('/articles/99', status=404)
        self.assertEqual(r.content_type, MEDIA_TYPE)
        self.assertEqual(
            r.json,
            {'errors': [{'status': '404', 'title': 'Not Found', 'detail': 'No article with id 99.'}]}
        )

    def test_plain_not_found(self):
        '''A plain client gets the usual pyramid not found response.'''
        r = self.test_app.get('/articles/99', status=404)
        self.assertNotEqual(r.content_type, MEDIA_TYPE)
        self.assertIn('No article with id 99.', r.text)
        self.assertNotIn('"errors"', r.text)

    def test_forbidden(self):
        r = self.test_app.delete('/people/1', headers=JSONAPI_ACCEPT, status=403)
        self.assertEqual(r.json['errors'][0]['status'], '403')
        self.assertIn(1, test_data.STORE['person'])

    def test_delete_no_content(self):
        self.test_app.delete('/articles/2', headers=JSONAPI_ACCEPT, status=204)
        self.assertNotIn(2, test_data.STORE['article'])

    def test_post_created(self):
        body = {'data': {'type': 'article', 'attributes': {
            'title': 'New', 'summary': 'Fresh.'
        }}}
        r = self.test_app.post(
            '/articles', json.dumps(body),
            content_type=MEDIA_TYPE, status=201
        )
        self.assertEqual(r.json['data']['id'], '4')
        self.assertEqual(r.json['data']['attributes']['title'], 'New')
        self.assertTrue(r.headers['Location'].endswith('/articles/4'))
        self.assertIn(4, test_data.STORE['article'])

    def test_post_validation_failure(self):
        body = {'data': {'type': 'article', 'attributes': {'title': 'New'}}}
        r = self.test_app.post(
            '/articles', json.dumps(body),
            content_type=MEDIA_TYPE, status=422
        )
        self.assertEqual(
            r.json['errors'],
            [{
                'status': '422',
                'title': 'Unprocessable Entity',
                'detail': 'Missing required attribute.',
                'source': {'pointer': '/data/attributes/summary'},
            }]
        )

    def test_post_bad_body(self):
        r = self.test_app.post(
            '/articles', 'not json',
            content_type=MEDIA_TYPE, status=400
        )
        self.assertEqual(
            r.json['errors'][0]['detail'],
            'Request body must be a JSON:API document.'
        )

    @parameterized.expand([
        ('/boom',),
        ('/unregistered',),
    ])
    def test_server_error_hidden(self, url):
        '''Unexpected failures give a generic 500 without the message.'''
        r = self.get(url, status=500)
        self.assertEqual(
            r.json,
            {'errors': [{'status': '500', 'title': 'Internal Server Error'}]}
        )
        self.assertNotIn('secret', r.text)

    def test_server_error_plain(self):
        r = self.test_app.get('/boom', status=500)
        self.assertNotEqual(r.content_type, MEDIA_TYPE)
        self.assertNotIn('secret', r.text)

    def test_renderer(self):
        '''Host views can use the jsonapi renderer.'''
        r = self.get('/rendered')
        self.assertEqual(r.content_type, MEDIA_TYPE)
        self.assertEqual(r.json['data']['id'], '1')
        r = self.test_app.get('/rendered')
        self.assertEqual(r.content_type, 'application/json')


class TestGuardOff(AppTestCase):

    settings = {'jsonapi_serialiser.unknown_association_guard': 'false'}

    def test_unknown_relationship_reaches_view(self):
        r = self.get('/articles/1/ghost-relation', status=404)
        self.assertEqual(r.json['errors'][0]['status'], '404')


class TestHeadersOff(AppTestCase):

    settings = {'jsonapi_serialiser.validate_headers': 'false'}

    def test_params_allowed(self):
        self.test_app.get(
            '/people',
            headers={'Content-Type': 'application/vnd.api+json; param=val'},
        )


class TestApiPrefix(AppTestCase):

    settings = {
        'jsonapi_serialiser.route_pattern_prefix': 'api',
        'jsonapi_serialiser.api_version': 'v1',
        'jsonapi_serialiser.base_url': 'https://example.com',
    }

    def test_links_prefixed(self):
        r = self.get('/api/v1/people/1')
        self.assertEqual(
            r.json['data']['links'], {'self': 'https://example.com/api/v1/people/1'}
        )
        self.assertEqual(
            r.json['data']['relationships']['articles']['links']['related']['href'],
            'https://example.com/api/v1/people/1/articles'
        )

    def test_guard_prefixed(self):
        self.test_app.get('/api/v1/articles/1/ghost', status=400)

    def test_outside_prefix_untouched(self):
        r = self.test_app.get(
            '/echo',
            headers={'Content-Type': 'application/vnd.api+json; param=val'},
        )
        self.assertEqual(r.json['path'], '/echo')
        self.assertNotEqual(r.json['content_type'], MEDIA_TYPE)
        r = self.get('/articles/1/ghost', status=404)
        self.assertNotEqual(r.content_type, MEDIA_TYPE)


class TestSchemaValidation(AppTestCase):

    settings = {'jsonapi_serialiser.schema_validation': 'true'}

    def test_validator_installed(self):
        self.assertIsInstance(self.app.pjs.validator, DocumentValidator)

    def test_documents_valid(self):
        r = self.get('/articles?include=author,comments')
        self.assertEqual(self.app.pjs.validator.validate(r.json), [])
        r = self.get('/articles/99', status=404)
        self.assertEqual(self.app.pjs.validator.validate(r.json), [])


if __name__ == "__main__":
    unittest.main()
