from setuptools import setup, find_packages

requires = [
    'parameterized',
    'pyramid',
    'pyramid_jsonapi_serialiser',
    'SQLAlchemy',
    'webtest',
    ]

setup(name='test_project',
      version='1.0',
      description='test_project',
      classifiers=[
        "Programming Language :: Python",
        "Framework :: Pyramid",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
        ],
      author='',
      author_email='',
      url='',
      keywords='web wsgi bfg pylons pyramid',
      packages=find_packages(),
      include_package_data=True,
      zip_safe=False,
      test_suite='test_project',
      install_requires=requires,
      entry_points="""\
      [paste.app_factory]
      main = test_project:main
      """,
      )
