from pyramid.config import Configurator

# The jsonapi serialiser module.
import pyramid_jsonapi_serialiser

# Import models as a module: needed for JSONAPISerialiser.
from . import models
from . import test_data
from . import views


def main(global_config, **settings):
    """ This function returns a Pyramid WSGI application.
    """
    config = Configurator(settings=settings)

    # Lines specific to pyramid_jsonapi_serialiser.
    # Create a serialiser instance for our models.
    pjs = pyramid_jsonapi_serialiser.JSONAPISerialiser(config, models)
    # Build the schema registry, install the tween, views and renderer.
    pjs.create_serialiser()

    # Host routes live under the api prefix (if any).
    prefix = pjs.rp_constructor.api_prefix()
    config.add_route('echo', '/echo')
    config.add_route('rendered', prefix + '/rendered')
    config.add_route('boom', prefix + '/boom')
    config.add_route('unregistered', prefix + '/unregistered')
    config.add_route(
        'articles_post', prefix + '/articles', request_method='POST'
    )
    config.add_route('collection', prefix + '/{collection}')
    config.add_route('item', prefix + '/{collection}/{id}')
    config.add_route('related', prefix + '/{collection}/{id}/{relationship}')
    config.scan(views)

    test_data.reset()

    # Back to the usual pyramid stuff.
    app = config.make_wsgi_app()
    app.pjs = pjs
    return app
