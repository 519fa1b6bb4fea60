import sys
from setuptools import setup, find_packages
# Append project to sys.path so that we can import version 'directly'.
# Importing as 'from pyramid_jsonapi_serialiser import version' needs the
# deps we haven't installed yet!
sys.path.append("pyramid_jsonapi_serialiser")
from version import get_version

requires = [
    'inflect',
    'jsonschema',
    'pyramid',
    'pyramid_settings_wrapper',
    'SQLAlchemy',
    ]

test_requires = [
    'parameterized',
    'pytest',
    'WebOb',
    'webtest',
    ]

setup(
  name = 'pyramid_jsonapi_serialiser',
  packages = find_packages(exclude=['test_project', 'test_project.*']),
  install_requires=requires,
  extras_require={'test': test_requires},
  version=get_version(),
  description = 'Serialise sqlalchemy backed records as JSON:API documents and negotiate responses in pyramid',
  license = 'GNU Affero General Public License v3 or later (AGPLv3+)',
  keywords = ['json', 'api', 'json-api', 'jsonapi', 'jsonschema', 'pyramid', 'sqlalchemy', 'serialiser'],
  classifiers = [
      'Development Status :: 4 - Beta',
      'Framework :: Pyramid',
      'Intended Audience :: Developers',
      'License :: OSI Approved :: GNU Affero General Public License v3 or later (AGPLv3+)',
      'Programming Language :: Python :: 3',
      'Topic :: Internet :: WWW/HTTP',
      'Topic :: Internet :: WWW/HTTP :: Dynamic Content',
      'Topic :: Software Development :: Libraries :: Python Modules',
  ],
  package_data={'': ['schema/*.json']}
  )
