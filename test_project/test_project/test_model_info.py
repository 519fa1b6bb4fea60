import unittest

from pyramid.config import Configurator
from pyramid import testing
from pyramid.request import apply_request_extensions

import pyramid_jsonapi_serialiser
from pyramid_jsonapi_serialiser.model_info import (
    AssociationInfo,
    model_info_from_sqlalchemy,
    model_infos_from_sqlalchemy,
    model_list_from,
)
from pyramid_jsonapi_serialiser.registry import RegistryNotReady

from test_project import models


class ModelInfoFromSqlalchemy(unittest.TestCase):

    def test_model_list_from_module(self):
        self.assertEqual(
            set(model_list_from(models)),
            {models.Person, models.Article, models.Comment, models.Tag, models.UserProfile}
        )

    def test_model_list_from_iterable(self):
        self.assertEqual(
            model_list_from([models.Person, models.Article]),
            [models.Person, models.Article]
        )

    def test_article(self):
        mi = model_info_from_sqlalchemy(models.Article)
        self.assertEqual((mi.name, mi.type, mi.collection), ('Article', 'article', 'articles'))
        self.assertEqual(mi.id_attribute, 'id')
        self.assertEqual(
            set(mi.attributes), {'title', 'summary', 'content', 'published', 'price'}
        )
        self.assertEqual(
            set(mi.associations),
            {
                AssociationInfo('author', 'Person', to_many=False),
                AssociationInfo('comments', 'Comment', to_many=True),
                AssociationInfo('tags', 'Tag', to_many=True),
            }
        )

    def test_foreign_keys_exposed(self):
        mi = model_info_from_sqlalchemy(models.Comment, expose_foreign_keys=True)
        self.assertIn('author_id', mi.attributes)
        self.assertIn('article_id', mi.attributes)

    def test_hybrid_property(self):
        mi = model_info_from_sqlalchemy(models.Person)
        self.assertEqual(set(mi.attributes), {'name', 'age', 'display_name'})

    def test_options(self):
        mi = model_info_from_sqlalchemy(models.UserProfile)
        self.assertEqual((mi.type, mi.collection), ('user-profile', 'user-profiles'))
        self.assertEqual(mi.id_attribute, 'profile_id')
        self.assertEqual(mi.attributes, ('bio',))

    def test_all_models(self):
        types = {mi.type for mi in model_infos_from_sqlalchemy(models)}
        self.assertEqual(
            types, {'person', 'article', 'comment', 'tag', 'user-profile'}
        )


class Configuration(unittest.TestCase):

    def tearDown(self):
        testing.tearDown()

    def test_registry_not_ready(self):
        pjs = pyramid_jsonapi_serialiser.JSONAPISerialiser(
            Configurator(settings={}), models
        )
        with self.assertRaises(RegistryNotReady):
            pjs.registry

    def test_rebuild(self):
        pjs = pyramid_jsonapi_serialiser.JSONAPISerialiser(
            Configurator(settings={}), models
        )
        first = pjs.build_registry()
        second = pjs.build_registry()
        self.assertIsNot(first, second)
        self.assertEqual(set(first), set(second))
        self.assertIs(pjs.registry, second)

    def test_includeme(self):
        config = testing.setUp(
            settings={'jsonapi_serialiser.models': 'test_project.models'}
        )
        config.include('pyramid_jsonapi_serialiser')
        self.assertIn('article', config.registry.jsonapi_serialiser.registry)

    def test_request_document(self):
        config = testing.setUp(
            settings={'jsonapi_serialiser.models': 'test_project.models'}
        )
        config.include('pyramid_jsonapi_serialiser')
        request = testing.DummyRequest(params={'fields[person]': 'name'})
        apply_request_extensions(request)
        doc = request.jsonapi_document(
            'person', {'id': 1, 'name': 'alice', 'age': 30},
            counts={'articles': {'1': 2}},
        )
        data = doc['data']
        self.assertEqual((data['type'], data['id']), ('person', '1'))
        self.assertEqual(data['attributes'], {'name': 'alice'})
        self.assertEqual(doc['links']['self'], '/people/1')
