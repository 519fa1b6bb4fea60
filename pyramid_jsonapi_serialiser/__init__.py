"""Serialise sqlalchemy backed records to JSON:API and negotiate responses in Pyramid."""

import logging

from pyramid.httpexceptions import HTTPError
from pyramid.settings import asbool
from pyramid.tweens import MAIN
import pyramid_settings_wrapper

from pyramid_jsonapi_serialiser.http_query import parse_selection
from pyramid_jsonapi_serialiser.links import (
    ResourceLinkGenerator,
    RoutePatternConstructor,
)
from pyramid_jsonapi_serialiser.model_info import model_infos_from_sqlalchemy
from pyramid_jsonapi_serialiser.registry import (
    RegistryNotReady,
    SchemaNotRegistered,
    SerialiseContext,
    build_registry,
)
from pyramid_jsonapi_serialiser.responders import (
    MEDIA_TYPE,
    Responders,
    jsonapi_renderer,
    negotiate_response,
    responder_name,
)
from pyramid_jsonapi_serialiser.serialiser import Serialiser
from pyramid_jsonapi_serialiser.validation import DocumentValidator
import pyramid_jsonapi_serialiser.version

__version__ = pyramid_jsonapi_serialiser.version.get_version()

__all__ = (
    'JSONAPISerialiser',
    'MEDIA_TYPE',
    'SerialiseContext',
    'includeme',
)


class JSONAPISerialiser():
    """Class encapsulating the serialiser and negotiation for an app.

    Arguments:
        config (pyramid.config.Configurator): pyramid config object from app.
        models (module or iterable): a models module or iterable of models.
    """

    # Default configuration values
    config_defaults = {
        'api_version': {'val': '', 'desc': 'API version for prefixing resource links and the api path.'},
        'base_url': {'val': '', 'desc': 'Scheme and host prepended to generated links. Empty means root relative links.'},
        'expose_foreign_keys': {'val': False, 'desc': 'Expose foreign key fields as attributes.'},
        'models': {'val': '', 'desc': 'Dotted name of the models module (used by includeme).'},
        'route_pattern_prefix': {'val': '', 'desc': '"Parent" prefix for all resource paths.'},
        'route_pattern_sep': {'val': '/', 'desc': 'Separator for path patterns.'},
        'schema_file': {'val': '', 'desc': 'File containing jsonschema JSON for document validation.'},
        'schema_validation': {'val': False, 'desc': 'Validate outgoing JSON:API documents against the jsonschema?'},
        'unknown_association_guard': {'val': True, 'desc': 'Reject /<collection>/<id>/<unknown relationship> with 400.'},
        'validate_headers': {'val': True, 'desc': 'Reject bad JSON:API Content-Type (415) and Accept (406) headers.'},
    }

    def __init__(self, config, models, responders=None):
        self.config = config
        self.settings = pyramid_settings_wrapper.Settings(
            config.registry.settings,
            defaults=self.config_defaults,
            default_keys_only=True,
            prefix=['jsonapi_serialiser']
        )
        self.models = models
        self.rp_constructor = RoutePatternConstructor(self.settings)
        self.links = ResourceLinkGenerator(
            str(self.settings.base_url), self.rp_constructor
        )
        self.responders = responders or Responders()
        self.validator = None
        self._registry = None

    def settings_flag(self, name):
        return asbool(getattr(self.settings, name))

    @property
    def registry(self):
        """The SchemaRegistry.

        Raises:
            RegistryNotReady: if create_serialiser() has not been called.
        """
        if self._registry is None:
            raise RegistryNotReady(
                'Schema registry used before model metadata was loaded. '
                'Call create_serialiser() first.'
            )
        return self._registry

    def build_registry(self):
        """(Re)build the schema registry from the models."""
        self._registry = build_registry(
            model_infos_from_sqlalchemy(
                self.models,
                expose_foreign_keys=self.settings_flag('expose_foreign_keys'),
            ),
            self.links,
        )
        return self._registry

    def create_serialiser(self):
        """Build the registry and install tween, views and request methods."""
        self.build_registry()
        if self.settings_flag('schema_validation'):
            self.validator = DocumentValidator(str(self.settings.schema_file) or None)

        self.config.registry.jsonapi_serialiser = self
        self.config.add_renderer('jsonapi', jsonapi_renderer())
        self.config.add_tween(
            'pyramid_jsonapi_serialiser.tweens.jsonapi_tween_factory',
            over=MAIN,
        )
        self.config.add_request_method(
            lambda request: parse_selection(request.params),
            'jsonapi_selection', reify=True
        )
        self.config.add_request_method(
            lambda request: self.responders.bind(request),
            'jsonapi_responders', reify=True
        )
        self.config.add_request_method(
            lambda request, *args, **kwargs: self.request_document(
                request, *args, **kwargs
            ),
            'jsonapi_document'
        )

        # Add error views
        path_info = self.rp_constructor.pattern_from_components(
            self.rp_constructor.api_prefix(),
            start_sep=True,
            end_sep=True
        )
        self.config.add_notfound_view(self.error, path_info=path_info)
        self.config.add_forbidden_view(self.error, path_info=path_info)
        self.config.add_exception_view(
            self.error, context=HTTPError, path_info=path_info
        )
        self.config.add_exception_view(
            self.error, context=Exception, path_info=path_info
        )

    def serialiser(self, selection=None):
        return Serialiser(self.registry, selection)

    def serialise(self, type_token, data, context=None, selection=None):
        """Serialise data as resources of type type_token."""
        return self.serialiser(selection).serialise(type_token, data, context)

    def request_document(
        self, request, type_token, data, counts=None, total=None,
        counts_by_type=None
    ):
        """Serialise data using the request's sparse fieldsets and includes.

        Available as ``request.jsonapi_document(type_token, data, ...)``.
        """
        return self.serialise(
            type_token, data,
            SerialiseContext(
                counts=counts or {}, total=total,
                counts_by_type=counts_by_type or {},
            ),
            request.jsonapi_selection,
        )

    def error(self, exc, request):
        """Exception view: answer exc with the negotiated responder."""
        negotiate_response(request)
        if isinstance(exc, SchemaNotRegistered):
            logging.error(
                '%s Was the schema registry built before serialising? path: %s',
                exc, request.path_info,
                exc_info=(type(exc), exc, exc.__traceback__)
            )
        elif not isinstance(exc, HTTPError):
            logging.error(
                'Unexpected exception raised: %s path: %s',
                exc.__class__, request.path_info,
                exc_info=(type(exc), exc, exc.__traceback__)
            )
        return self.responders.negotiated(responder_name(exc))(request, exc)


def includeme(config):
    """Pyramid includeme: models are named by the setting
    ``jsonapi_serialiser.models`` (a dotted module name).
    """
    models = config.maybe_dotted(
        config.registry.settings['jsonapi_serialiser.models']
    )
    serialiser = JSONAPISerialiser(config, models)
    serialiser.create_serialiser()
    return serialiser
